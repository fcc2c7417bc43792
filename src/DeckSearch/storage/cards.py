"""Card store implementation."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

from DeckSearch.core.models import CARD_STATES, Card
from DeckSearch.search.filters import CARDS, FilterSet
from DeckSearch.storage.common import ensure_entity, now_millis, page_params
from DeckSearch.utils.log import log

if TYPE_CHECKING:
    from DeckSearch.storage.db import DatabaseManager

# Aliases the card compiler refers to.
_CARD_FROM = "FROM cards c JOIN decks d ON c.deck_id = d.id JOIN notes n ON c.note_id = n.id"


class CardStore:
    """SQLite-backed cards, searchable with card filter sets."""

    def __init__(self, db_manager: DatabaseManager):
        log.debug("Initializing CardStore")
        self.conn = db_manager.get_connection()

    def add(
        self,
        note_id: int,
        deck_id: int,
        *,
        state: str = "new",
        due: int = 0,
        interval: int = 0,
        ease: float = 2.5,
        lapses: int = 0,
        reps: int = 0,
        position: int = 0,
        flag: int = 0,
        suspended: bool = False,
        buried: bool = False,
        home_deck_id: int | None = None,
        stability: float | None = None,
        difficulty: float | None = None,
        last_review_at: int | None = None,
        created_at: int | None = None,
    ) -> Card:
        """Insert a card with precomputed scheduling values.

        Args:
            note_id: Owning note.
            deck_id: Deck the card lives in.
            state: One of ``CARD_STATES``.
            due: Due moment in epoch milliseconds.
            created_at: Creation time in epoch milliseconds; defaults to now.

        Returns:
            The stored card.

        Raises:
            ValueError: If ``state`` is unknown.
        """
        if state not in CARD_STATES:
            raise ValueError(f"Unknown card state: {state} (valid: {', '.join(CARD_STATES)})")
        created = now_millis() if created_at is None else created_at
        cursor = self.conn.execute(
            """
            INSERT INTO cards (
                note_id, deck_id, home_deck_id, due, interval, ease, lapses, reps,
                state, position, flag, suspended, buried, stability, difficulty,
                last_review_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                note_id,
                deck_id,
                home_deck_id,
                due,
                interval,
                ease,
                lapses,
                reps,
                state,
                position,
                flag,
                int(suspended),
                int(buried),
                stability,
                difficulty,
                last_review_at,
                created,
                created,
            ),
        )
        self.conn.commit()
        row = self.conn.execute("SELECT * FROM cards WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return card_from_row(row)

    def find(self, filters: FilterSet, *, limit: int | None = 50, offset: int = 0) -> list[Card]:
        """Return matching cards, newest first.

        Args:
            filters: Output of ``compile_for_cards``.
            limit: Page size; None returns every match.
            offset: Rows to skip.

        Returns:
            Cards in ``created_at`` descending order (ties by id descending).

        Raises:
            ValueError: If ``filters`` was compiled for notes.
        """
        ensure_entity(filters, CARDS)
        where, params = filters.where_clause()
        select = "SELECT DISTINCT c.*" if filters.distinct else "SELECT c.*"
        sql = (
            f"{select} {_CARD_FROM} WHERE {where} "
            "ORDER BY c.created_at DESC, c.id DESC LIMIT ? OFFSET ?"
        )
        rows = self.conn.execute(sql, [*params, *page_params(limit, offset)]).fetchall()
        log.debug("Card search returned %d rows", len(rows))
        return [card_from_row(row) for row in rows]

    def count(self, filters: FilterSet) -> int:
        """Count every card matching ``filters``."""
        ensure_entity(filters, CARDS)
        where, params = filters.where_clause()
        row = self.conn.execute(f"SELECT COUNT(DISTINCT c.id) {_CARD_FROM} WHERE {where}", params).fetchone()
        return int(row[0])

    def note_ids(self, filters: FilterSet) -> set[int]:
        """Return the ids of notes owning at least one matching card."""
        ensure_entity(filters, CARDS)
        where, params = filters.where_clause()
        rows = self.conn.execute(f"SELECT DISTINCT c.note_id {_CARD_FROM} WHERE {where}", params)
        return {row[0] for row in rows}


def card_from_row(row: sqlite3.Row) -> Card:
    return Card(
        id=row["id"],
        note_id=row["note_id"],
        deck_id=row["deck_id"],
        home_deck_id=row["home_deck_id"],
        due=row["due"],
        interval=row["interval"],
        ease=row["ease"],
        lapses=row["lapses"],
        reps=row["reps"],
        state=row["state"],
        position=row["position"],
        flag=row["flag"],
        suspended=bool(row["suspended"]),
        buried=bool(row["buried"]),
        stability=row["stability"],
        difficulty=row["difficulty"],
        last_review_at=row["last_review_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
