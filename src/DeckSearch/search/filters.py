"""Compiled filter sets and the predicate builders both compilers share.

A ``FilterSet`` is a conjunction of parameterized SQL fragments. Fragments
refer to the table aliases the storage layer binds:

- ``n``: notes
- ``c``: cards
- ``d``: decks

and to the SQL functions it registers: ``fold``, ``unaccent`` and
``regexp`` (see ``DeckSearch.search.text``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Sequence

from DeckSearch.core.errors import CompileError
from DeckSearch.core.query import QueryModel, TextSearch
from DeckSearch.search.text import fold_text, unaccent_text

NOTES = "notes"
CARDS = "cards"

LIKE_ESCAPE = "\\"


@dataclass(frozen=True, slots=True)
class Predicate:
    """One SQL condition with its positional parameters."""

    sql: str
    params: tuple[Any, ...] = ()

    def negate(self) -> Predicate:
        return Predicate(f"NOT ({self.sql})", self.params)


@dataclass(frozen=True, slots=True)
class FilterSet:
    """Compiler output handed to the storage layer.

    Attributes:
        entity: ``notes`` or ``cards``; a store only accepts its own entity.
        owner_id: User every matching record must belong to.
        predicates: Conditions that must all hold.
        distinct: Whether result rows must be deduplicated by primary key.
    """

    entity: str
    owner_id: int
    predicates: tuple[Predicate, ...]
    distinct: bool = False

    def where_clause(self) -> tuple[str, list[Any]]:
        """Return ``(sql, params)`` joining every predicate with AND."""
        if not self.predicates:
            return "1 = 1", []
        sql = " AND ".join(f"({p.sql})" for p in self.predicates)
        params: list[Any] = []
        for predicate in self.predicates:
            params.extend(predicate.params)
        return sql, params


def validate_regexes(model: QueryModel) -> None:
    """Compile every regex text search, failing on the first bad pattern.

    Raises:
        CompileError: Naming the invalid pattern.
    """
    for search in model.text_searches:
        if not search.is_regex:
            continue
        try:
            re.compile(search.text)
        except re.error as error:
            raise CompileError(f"invalid regex pattern '{search.text}': {error}") from error


def escape_like(text: str, *, wildcard: bool = False) -> str:
    """Escape ``text`` for ``LIKE ... ESCAPE '\\'``.

    With ``wildcard`` set, ``*`` becomes ``%`` and ``_`` stays the
    single-character wildcard; otherwise both are literal.
    """
    escaped = text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", LIKE_ESCAPE + "%")
    if wildcard:
        return escaped.replace("*", "%")
    return escaped.replace("_", LIKE_ESCAPE + "_")


def word_boundary_pattern(search: TextSearch) -> str:
    """Build the case-insensitive whole-word regex for a ``w:`` search."""
    text = search.text
    if search.is_wildcard:
        body = "".join(
            r"\w*" if ch == "*" else r"\w" if ch == "_" else re.escape(ch) for ch in text
        )
    else:
        body = re.escape(text)
    return rf"(?i)(?<!\w){body}(?!\w)"


def deck_member_predicate(note_alias: str, owner_id: int, names: Sequence[str]) -> Predicate:
    """Note has at least one card in any of the named decks."""
    placeholders = ", ".join("?" for _ in names)
    return Predicate(
        "EXISTS (SELECT 1 FROM cards dc JOIN decks dd ON dc.deck_id = dd.id "
        f"WHERE dc.note_id = {note_alias}.id AND dd.user_id = ? AND dd.name IN ({placeholders}))",
        (owner_id, *names),
    )


def tag_predicates(model: QueryModel, note_alias: str) -> list[Predicate]:
    """Include-any and exclude-each tag conditions, compared casefolded."""
    predicates: list[Predicate] = []
    if model.tags_include:
        folded = tuple(fold_text(tag) for tag in model.tags_include)
        placeholders = ", ".join("?" for _ in folded)
        predicates.append(
            Predicate(
                f"EXISTS (SELECT 1 FROM json_each({note_alias}.tags) t WHERE fold(t.value) IN ({placeholders}))",
                folded,
            )
        )
    for tag in model.tags_exclude:
        predicates.append(
            Predicate(
                f"NOT EXISTS (SELECT 1 FROM json_each({note_alias}.tags) t WHERE fold(t.value) = ?)",
                (fold_text(tag),),
            )
        )
    return predicates


def field_search_predicates(model: QueryModel, note_alias: str) -> list[Predicate]:
    """Substring match inside one named field per ``field_searches`` entry."""
    return [
        text_search_predicate(TextSearch(text=value, field=name), note_alias)
        for name, value in model.field_searches.items()
    ]


def text_search_predicate(search: TextSearch, note_alias: str) -> Predicate:
    """Compile one text search into an existence check over note fields.

    The search holds when at least one field (or the named field) matches;
    a negated search holds when none does.
    """
    conditions: list[str] = []
    params: list[Any] = []
    if search.field is not None:
        conditions.append("fold(f.key) = ?")
        params.append(fold_text(search.field))

    value_expr = "unaccent(f.value)" if search.is_no_combining else "fold(f.value)"

    if search.is_word_boundary:
        conditions.append(f"regexp(?, {value_expr}) = 1")
        params.append(word_boundary_pattern(search))
    elif search.is_regex:
        conditions.append("regexp(?, f.value) = 1")
        params.append(search.text)
    else:
        normalized = unaccent_text(search.text) if search.is_no_combining else fold_text(search.text)
        conditions.append(f"{value_expr} LIKE ? ESCAPE '{LIKE_ESCAPE}'")
        params.append("%" + escape_like(normalized, wildcard=search.is_wildcard) + "%")

    exists = "NOT EXISTS" if search.is_negated else "EXISTS"
    where = " AND ".join(conditions)
    return Predicate(
        f"{exists} (SELECT 1 FROM json_each({note_alias}.fields_json) f WHERE {where})",
        tuple(params),
    )


def note_content_predicates(model: QueryModel, note_alias: str) -> list[Predicate]:
    """Tag, field and text predicates evaluated against a note row."""
    predicates = tag_predicates(model, note_alias)
    predicates.extend(field_search_predicates(model, note_alias))
    predicates.extend(text_search_predicate(search, note_alias) for search in model.text_searches)
    return predicates


def requires_distinct(model: QueryModel) -> bool:
    """Deck membership and ``marked`` join other tables and may repeat rows."""
    return bool(
        model.decks_include
        or model.decks_exclude
        or "marked" in model.states
        or "marked" in model.states_exclude
    )
