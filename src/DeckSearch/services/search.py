"""Search service: parse once, compile per entity, query the stores."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Sequence, Union

from DeckSearch.core.models import Card, Note
from DeckSearch.core.query import QueryModel
from DeckSearch.search.cards import compile_for_cards
from DeckSearch.search.filters import CARDS, NOTES
from DeckSearch.search.notes import compile_for_notes
from DeckSearch.search.parser import parse
from DeckSearch.utils.log import log

if TYPE_CHECKING:
    from DeckSearch.storage.cards import CardStore
    from DeckSearch.storage.notes import NoteStore

RESULT_TYPES = (NOTES, CARDS)
DEFAULT_LIMIT = 50
MAX_LIMIT = 500


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One page of search results.

    Attributes:
        result_type: ``notes`` or ``cards``.
        items: Matching entities on this page, newest first.
        total: Number of matches across all pages.
        query: The parsed query that produced the page.
    """

    result_type: str
    items: Sequence[Union[Note, Card]]
    total: int
    query: QueryModel


@dataclass(slots=True)
class DeckSearchService:
    """Application service answering DSL searches for one store pair."""

    note_store: NoteStore
    card_store: CardStore
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = MAX_LIMIT

    def search(
        self,
        owner_id: int,
        query: str,
        *,
        result_type: str = NOTES,
        limit: int = 0,
        offset: int = 0,
        now: datetime | None = None,
    ) -> SearchResult:
        """Run ``query`` for ``owner_id``.

        Args:
            owner_id: User whose records are searched.
            query: Raw DSL string; empty matches everything the user owns.
            result_type: ``notes`` or ``cards``.
            limit: Page size; zero or negative uses the default, and the
                maximum caps it.
            offset: Matches to skip; negative values count as 0.
            now: Reference time for due-related card filters.

        Returns:
            The requested page and the total match count.

        Raises:
            ValueError: If ``result_type`` is unknown.
            ParseError: If the query does not parse.
            CompileError: If a regex in the query is invalid or a ``prop:due``
                offset falls outside the supported date range.
        """
        if result_type not in RESULT_TYPES:
            raise ValueError(f"Unsupported result type: {result_type} (valid: {', '.join(RESULT_TYPES)})")
        limit = self._resolve_limit(limit)
        offset = max(offset, 0)

        model = parse(query)
        if model.has_or or model.has_grouping:
            log.warning("OR and parentheses are not supported; all terms are combined with AND: %s", query)

        if result_type == CARDS:
            items, total = self._search_cards(model, owner_id, limit, offset, now)
        elif model.has_card_filters:
            items, total = self._search_notes_via_cards(model, owner_id, limit, offset, now)
        else:
            filters = compile_for_notes(model, owner_id)
            items = self.note_store.find(filters, limit=limit, offset=offset)
            total = self.note_store.count(filters)

        log.info("Search completed: type=%s owner=%s total=%d page=%d", result_type, owner_id, total, len(items))
        return SearchResult(result_type=result_type, items=tuple(items), total=total, query=model)

    def _resolve_limit(self, limit: int) -> int:
        if limit <= 0:
            return self.default_limit
        return min(limit, self.max_limit)

    def _search_cards(
        self,
        model: QueryModel,
        owner_id: int,
        limit: int,
        offset: int,
        now: datetime | None,
    ) -> tuple[list[Card], int]:
        filters = compile_for_cards(model, owner_id, now=now)
        return self.card_store.find(filters, limit=limit, offset=offset), self.card_store.count(filters)

    def _search_notes_via_cards(
        self,
        model: QueryModel,
        owner_id: int,
        limit: int,
        offset: int,
        now: datetime | None,
    ) -> tuple[list[Note], int]:
        """Notes that match the note filters and own a card matching the card filters.

        Both sides are fetched in full and intersected here, so paging
        happens in Python.
        """
        card_filters = compile_for_cards(model, owner_id, now=now)
        note_ids = self.card_store.note_ids(card_filters)
        if not note_ids:
            return [], 0

        note_filters = compile_for_notes(model, owner_id)
        matching = [note for note in self.note_store.find(note_filters, limit=None) if note.id in note_ids]
        log.debug("Card filters kept %d of the notes matching note filters", len(matching))
        return matching[offset:offset + limit], len(matching)
