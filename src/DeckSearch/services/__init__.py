"""Search service layer for DeckSearch."""

from __future__ import annotations

from typing import TYPE_CHECKING

from DeckSearch.services.search import DeckSearchService, SearchResult
from DeckSearch.storage import CardStore, NoteStore

if TYPE_CHECKING:
    from DeckSearch.config import AppConfig
    from DeckSearch.storage import DatabaseManager


def create_search_service(config: AppConfig, db_manager: DatabaseManager) -> DeckSearchService:
    """Create a search service over the stores of ``db_manager``.

    Args:
        config: Application configuration containing search limits.
        db_manager: Open database.

    Returns:
        Configured DeckSearchService instance.
    """
    return DeckSearchService(
        note_store=NoteStore(db_manager),
        card_store=CardStore(db_manager),
        default_limit=config.search.default_limit,
        max_limit=config.search.max_limit,
    )


__all__ = [
    "DeckSearchService",
    "SearchResult",
    "create_search_service",
]
