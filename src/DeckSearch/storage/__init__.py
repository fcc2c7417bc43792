"""Storage layer for DeckSearch.

SQLite persistence for decks, notes and cards, queried with compiled
filter sets.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from DeckSearch.storage.cards import CardStore
from DeckSearch.storage.db import MEMORY_DB, DatabaseManager
from DeckSearch.storage.decks import DeckStore
from DeckSearch.storage.migration import run_migrations
from DeckSearch.storage.notes import NoteStore
from DeckSearch.utils.log import log

if TYPE_CHECKING:
    from DeckSearch.config import AppConfig


def create_storage(config: AppConfig, db_path: str | None = None) -> DatabaseManager:
    """Open the configured database.

    Args:
        config: Application configuration containing storage settings.
        db_path: Overrides ``storage.db_path`` when given.

    Returns:
        Database manager with the schema migrated.
    """
    path = db_path or config.storage.db_path
    db_manager = DatabaseManager(path if path == MEMORY_DB else Path(path))
    log.info("Database opened: %s", path)
    return db_manager


__all__ = [
    "DatabaseManager",
    "DeckStore",
    "NoteStore",
    "CardStore",
    "MEMORY_DB",
    "run_migrations",
    "create_storage",
]
