"""Card compiler.

Compiles a ``QueryModel`` into a ``FilterSet`` over ``cards c`` joined with
their deck ``d`` and note ``n``. Ownership follows the deck.

State keywords
- new        -> c.state = 'new'
- review     -> c.state = 'review'
- learn      -> c.state in ('learn', 'relearn')
- suspended  -> c.suspended
- buried     -> c.buried
- due        -> not suspended, not buried, and either new or
                review/relearn with c.due <= now
- marked     -> the owning note is marked

Properties
- ivl, lapses, reps compare the stored integers.
- due N means "N days from now", compared in epoch milliseconds.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from DeckSearch.core.errors import CompileError
from DeckSearch.core.models import LEARNING_STATES
from DeckSearch.core.query import PropertyFilter, QueryModel
from DeckSearch.search.filters import (
    CARDS,
    FilterSet,
    Predicate,
    note_content_predicates,
    requires_distinct,
    validate_regexes,
)
from DeckSearch.utils.log import log

_PROPERTY_COLUMNS = {
    "ivl": "c.interval",
    "due": "c.due",
    "lapses": "c.lapses",
    "reps": "c.reps",
}
_SQL_OPERATORS = {">=": ">=", "<=": "<=", ">": ">", "<": "<", "=": "="}


def compile_for_cards(model: QueryModel, owner_id: int, *, now: datetime | None = None) -> FilterSet:
    """Compile a parsed query for card search.

    Args:
        model: Parsed query.
        owner_id: User whose decks the cards must live in.
        now: Reference moment for ``is:due`` and ``prop:due``; defaults to
            the current UTC time.

    Returns:
        Filter set for ``CardStore``.

    Raises:
        CompileError: If a regex pattern is invalid or a ``prop:due`` offset
            falls outside the supported date range.
    """
    validate_regexes(model)
    reference = now or datetime.now(timezone.utc)
    now_ms = to_millis(reference)

    predicates: list[Predicate] = [
        Predicate("d.user_id = ?", (owner_id,)),
        Predicate("d.deleted_at IS NULL"),
        Predicate("n.deleted_at IS NULL"),
    ]

    if model.decks_include:
        placeholders = ", ".join("?" for _ in model.decks_include)
        predicates.append(Predicate(f"d.name IN ({placeholders})", tuple(model.decks_include)))
    for deck_name in model.decks_exclude:
        predicates.append(Predicate("d.name <> ?", (deck_name,)))

    predicates.extend(note_content_predicates(model, "n"))

    for state in sorted(model.states):
        predicates.append(_state_predicate(state, owner_id, now_ms))
    for state in sorted(model.states_exclude):
        predicates.append(_state_predicate(state, owner_id, now_ms).negate())

    if model.flags:
        flags = tuple(sorted(model.flags))
        predicates.append(Predicate(f"c.flag IN ({', '.join('?' for _ in flags)})", flags))
    if model.flags_exclude:
        flags = tuple(sorted(model.flags_exclude))
        predicates.append(Predicate(f"c.flag NOT IN ({', '.join('?' for _ in flags)})", flags))

    for prop in model.property_filters:
        predicate = _property_predicate(prop, reference)
        predicates.append(predicate.negate() if prop.is_negated else predicate)

    filters = FilterSet(
        entity=CARDS,
        owner_id=owner_id,
        predicates=tuple(predicates),
        distinct=requires_distinct(model),
    )
    log.debug("Compiled card filters: %d predicates distinct=%s", len(filters.predicates), filters.distinct)
    return filters


def to_millis(moment: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def _state_predicate(state: str, owner_id: int, now_ms: int) -> Predicate:
    if state == "new":
        return Predicate("c.state = 'new'")
    if state == "review":
        return Predicate("c.state = 'review'")
    if state == "learn":
        return Predicate(f"c.state IN ({', '.join('?' for _ in LEARNING_STATES)})", LEARNING_STATES)
    if state == "suspended":
        return Predicate("c.suspended = 1")
    if state == "buried":
        return Predicate("c.buried = 1")
    if state == "due":
        return Predicate(
            "c.suspended = 0 AND c.buried = 0 AND "
            "(c.state = 'new' OR (c.state IN ('review', 'relearn') AND c.due <= ?))",
            (now_ms,),
        )
    if state == "marked":
        return Predicate(
            "EXISTS (SELECT 1 FROM notes mn WHERE mn.id = c.note_id AND mn.marked = 1 AND mn.user_id = ?)",
            (owner_id,),
        )
    raise ValueError(f"Unsupported state keyword: {state}")


def _property_predicate(prop: PropertyFilter, reference: datetime) -> Predicate:
    column = _PROPERTY_COLUMNS[prop.property]
    operator = _SQL_OPERATORS[prop.operator]
    if prop.property == "due":
        try:
            value = to_millis(reference + timedelta(days=prop.value))
        except OverflowError as error:
            raise CompileError(
                f"invalid due value in prop:due{prop.operator}{prop.value}: date out of range"
            ) from error
    else:
        value = prop.value
    return Predicate(f"{column} {operator} ?", (value,))
