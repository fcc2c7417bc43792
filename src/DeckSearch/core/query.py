from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

STATE_KEYWORDS = frozenset({"new", "due", "review", "learn", "suspended", "buried", "marked"})
NOTE_STATES = frozenset({"marked"})

PROPERTY_NAMES = ("ivl", "due", "lapses", "reps")
# Longer operators first so ">" never matches inside ">=".
PROPERTY_OPERATORS = (">=", "<=", ">", "<", "=")

MIN_FLAG = 0
MAX_FLAG = 7


@dataclass(frozen=True, slots=True)
class PropertyFilter:
    """Numeric comparison against a card attribute (``prop:ivl>=10``).

    Attributes:
        property: One of ``PROPERTY_NAMES``.
        operator: One of ``PROPERTY_OPERATORS``.
        value: Integer operand. For ``due`` it is a day offset from now.
        is_negated: Set by a leading ``-`` on the token.
    """

    property: str
    operator: str
    value: int
    is_negated: bool = False


@dataclass(frozen=True, slots=True)
class TextSearch:
    """One text predicate.

    At most one of ``is_exact``/``is_wildcard``/``is_regex`` is set.
    ``is_no_combining`` and ``is_word_boundary`` are modifiers and may be
    combined with any of them.

    Attributes:
        text: Search text or regular expression, without DSL prefixes.
        is_exact: Quoted phrase.
        is_wildcard: Contains ``*`` (any run) or ``_`` (one character).
        is_regex: ``re:`` pattern; validated at compile time only.
        is_no_combining: ``nc:`` accent- and case-insensitive comparison.
        is_word_boundary: ``w:`` whole-word match.
        is_negated: Leading ``-``.
        field: Field name the search is scoped to; None means any field.
    """

    text: str
    is_exact: bool = False
    is_wildcard: bool = False
    is_regex: bool = False
    is_no_combining: bool = False
    is_word_boundary: bool = False
    is_negated: bool = False
    field: str | None = None


@dataclass(frozen=True, slots=True)
class QueryModel:
    """Parsed search query.

    Built once per query string by the parser and consumed unchanged by one
    compiler. All terms are combined with AND; ``has_or`` and
    ``has_grouping`` only record that the input looked like it wanted more.

    Attributes:
        field_searches: Field name -> substring; the last token for a field wins.
        tags_include: Tags a note must carry (any of them).
        tags_exclude: Tags a note must not carry.
        decks_include: Deck names (any of them).
        decks_exclude: Deck names to leave out.
        states: Recognized ``is:`` keywords.
        states_exclude: Recognized ``-is:`` keywords.
        flags: ``flag:`` numbers (any of them).
        flags_exclude: ``-flag:`` numbers.
        property_filters: ``prop:`` comparisons.
        text_searches: Free-text and field-scoped text predicates.
        has_or: Input contained `` or `` (any case).
        has_grouping: Input contained a parenthesis.
    """

    field_searches: Mapping[str, str] = field(default_factory=dict)
    tags_include: tuple[str, ...] = ()
    tags_exclude: tuple[str, ...] = ()
    decks_include: tuple[str, ...] = ()
    decks_exclude: tuple[str, ...] = ()
    states: frozenset[str] = frozenset()
    states_exclude: frozenset[str] = frozenset()
    flags: frozenset[int] = frozenset()
    flags_exclude: frozenset[int] = frozenset()
    property_filters: tuple[PropertyFilter, ...] = ()
    text_searches: tuple[TextSearch, ...] = ()
    has_or: bool = False
    has_grouping: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "field_searches", MappingProxyType(dict(self.field_searches)))

    @property
    def has_card_filters(self) -> bool:
        """Whether any predicate can only be answered from card rows."""
        return bool(
            (self.states - NOTE_STATES)
            or (self.states_exclude - NOTE_STATES)
            or self.flags
            or self.flags_exclude
            or self.property_filters
        )

    @property
    def is_empty(self) -> bool:
        return not (
            self.field_searches
            or self.tags_include
            or self.tags_exclude
            or self.decks_include
            or self.decks_exclude
            or self.states
            or self.states_exclude
            or self.flags
            or self.flags_exclude
            or self.property_filters
            or self.text_searches
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable view with stable ordering."""
        return {
            "field_searches": dict(self.field_searches),
            "tags_include": list(self.tags_include),
            "tags_exclude": list(self.tags_exclude),
            "decks_include": list(self.decks_include),
            "decks_exclude": list(self.decks_exclude),
            "states": sorted(self.states),
            "states_exclude": sorted(self.states_exclude),
            "flags": sorted(self.flags),
            "flags_exclude": sorted(self.flags_exclude),
            "property_filters": [
                {
                    "property": pf.property,
                    "operator": pf.operator,
                    "value": pf.value,
                    "is_negated": pf.is_negated,
                }
                for pf in self.property_filters
            ],
            "text_searches": [
                {
                    "text": ts.text,
                    "is_exact": ts.is_exact,
                    "is_wildcard": ts.is_wildcard,
                    "is_regex": ts.is_regex,
                    "is_no_combining": ts.is_no_combining,
                    "is_word_boundary": ts.is_word_boundary,
                    "is_negated": ts.is_negated,
                    "field": ts.field,
                }
                for ts in self.text_searches
            ],
            "has_or": self.has_or,
            "has_grouping": self.has_grouping,
        }


@dataclass(slots=True)
class QueryBuilder:
    """Mutable accumulator the classifier appends to, frozen by ``build``."""

    field_searches: dict[str, str] = field(default_factory=dict)
    tags_include: list[str] = field(default_factory=list)
    tags_exclude: list[str] = field(default_factory=list)
    decks_include: list[str] = field(default_factory=list)
    decks_exclude: list[str] = field(default_factory=list)
    states: set[str] = field(default_factory=set)
    states_exclude: set[str] = field(default_factory=set)
    flags: set[int] = field(default_factory=set)
    flags_exclude: set[int] = field(default_factory=set)
    property_filters: list[PropertyFilter] = field(default_factory=list)
    text_searches: list[TextSearch] = field(default_factory=list)
    has_or: bool = False
    has_grouping: bool = False

    def build(self) -> QueryModel:
        return QueryModel(
            field_searches=self.field_searches,
            tags_include=tuple(self.tags_include),
            tags_exclude=tuple(self.tags_exclude),
            decks_include=tuple(self.decks_include),
            decks_exclude=tuple(self.decks_exclude),
            states=frozenset(self.states),
            states_exclude=frozenset(self.states_exclude),
            flags=frozenset(self.flags),
            flags_exclude=frozenset(self.flags_exclude),
            property_filters=tuple(self.property_filters),
            text_searches=tuple(self.text_searches),
            has_or=self.has_or,
            has_grouping=self.has_grouping,
        )
