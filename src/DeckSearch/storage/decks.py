"""Deck store implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from DeckSearch.core.models import Deck
from DeckSearch.storage.common import now_millis
from DeckSearch.utils.log import log

if TYPE_CHECKING:
    from DeckSearch.storage.db import DatabaseManager


class DeckStore:
    """SQLite-backed deck records."""

    def __init__(self, db_manager: DatabaseManager):
        log.debug("Initializing DeckStore")
        self.conn = db_manager.get_connection()

    def add(self, user_id: int, name: str, *, created_at: int | None = None) -> Deck:
        """Insert a deck.

        Args:
            user_id: Owning user.
            name: Deck name; search matches it exactly.
            created_at: Creation time in epoch milliseconds; defaults to now.

        Returns:
            The stored deck.
        """
        created = now_millis() if created_at is None else created_at
        cursor = self.conn.execute(
            "INSERT INTO decks (user_id, name, created_at) VALUES (?, ?, ?)",
            (user_id, name, created),
        )
        self.conn.commit()
        return Deck(id=cursor.lastrowid, user_id=user_id, name=name, created_at=created)

    def get(self, deck_id: int) -> Deck | None:
        row = self.conn.execute("SELECT * FROM decks WHERE id = ?", (deck_id,)).fetchone()
        if row is None:
            return None
        return Deck(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            created_at=row["created_at"],
            deleted_at=row["deleted_at"],
        )

    def soft_delete(self, deck_id: int, *, deleted_at: int | None = None) -> bool:
        """Mark a deck deleted; its cards drop out of card search.

        Returns:
            True when a live deck was marked.
        """
        cursor = self.conn.execute(
            "UPDATE decks SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
            (now_millis() if deleted_at is None else deleted_at, deck_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0
