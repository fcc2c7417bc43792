"""Note compiler.

Compiles a ``QueryModel`` into a ``FilterSet`` over the ``notes`` table
(alias ``n``).

Mapping
- owner        -> n.user_id = owner, soft-deleted notes excluded
- deck:        -> note has a card in the deck (any of the names)
- -deck:       -> note has no card in the deck
- tag: / -tag: -> JSON tag array, casefolded
- front:/back:/<field>:  -> substring inside that field
- text         -> substring / phrase / wildcard / regex / word over all fields
- is:marked    -> n.marked
- other is:, flag:, prop: are card-level and ignored here
"""

from __future__ import annotations

from DeckSearch.core.query import QueryModel
from DeckSearch.search.filters import (
    NOTES,
    FilterSet,
    Predicate,
    deck_member_predicate,
    note_content_predicates,
    requires_distinct,
    validate_regexes,
)
from DeckSearch.utils.log import log


def compile_for_notes(model: QueryModel, owner_id: int) -> FilterSet:
    """Compile a parsed query for note search.

    Args:
        model: Parsed query.
        owner_id: User the notes must belong to.

    Returns:
        Filter set for ``NoteStore``.

    Raises:
        CompileError: If a regex pattern is invalid.
    """
    validate_regexes(model)

    predicates: list[Predicate] = [
        Predicate("n.user_id = ?", (owner_id,)),
        Predicate("n.deleted_at IS NULL"),
    ]

    if model.decks_include:
        predicates.append(deck_member_predicate("n", owner_id, model.decks_include))
    for deck_name in model.decks_exclude:
        predicates.append(deck_member_predicate("n", owner_id, (deck_name,)).negate())

    predicates.extend(note_content_predicates(model, "n"))

    if "marked" in model.states:
        predicates.append(Predicate("n.marked = 1"))
    if "marked" in model.states_exclude:
        predicates.append(Predicate("n.marked = 0"))

    filters = FilterSet(
        entity=NOTES,
        owner_id=owner_id,
        predicates=tuple(predicates),
        distinct=requires_distinct(model),
    )
    log.debug("Compiled note filters: %d predicates distinct=%s", len(filters.predicates), filters.distinct)
    return filters
