"""Note store implementation."""

from __future__ import annotations

import json
import sqlite3
import uuid
from typing import TYPE_CHECKING, Mapping, Sequence

from DeckSearch.core.models import Note
from DeckSearch.search.filters import NOTES, FilterSet
from DeckSearch.storage.common import ensure_entity, now_millis, page_params
from DeckSearch.utils.log import log

if TYPE_CHECKING:
    from DeckSearch.storage.db import DatabaseManager


class NoteStore:
    """SQLite-backed notes, searchable with note filter sets.

    Fields are stored as a JSON object and tags as a JSON array so compiled
    predicates can reach them through ``json_each``.
    """

    def __init__(self, db_manager: DatabaseManager):
        log.debug("Initializing NoteStore")
        self.conn = db_manager.get_connection()

    def add(
        self,
        user_id: int,
        fields: Mapping[str, str],
        *,
        tags: Sequence[str] = (),
        marked: bool = False,
        guid: str | None = None,
        note_type_id: int | None = None,
        created_at: int | None = None,
    ) -> Note:
        """Insert a note.

        Args:
            user_id: Owning user.
            fields: Field name -> content, in display order.
            tags: Tags in insertion order.
            marked: Note-level marked flag.
            guid: Stable identifier; a random one is generated when omitted.
            note_type_id: Note type, if known.
            created_at: Creation time in epoch milliseconds; defaults to now.

        Returns:
            The stored note.
        """
        created = now_millis() if created_at is None else created_at
        note_guid = guid or uuid.uuid4().hex
        cursor = self.conn.execute(
            """
            INSERT INTO notes (
                user_id, guid, note_type_id, fields_json, tags, marked,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                note_guid,
                note_type_id,
                json.dumps(dict(fields), ensure_ascii=False),
                json.dumps(list(tags), ensure_ascii=False),
                int(marked),
                created,
                created,
            ),
        )
        self.conn.commit()
        return Note(
            id=cursor.lastrowid,
            user_id=user_id,
            guid=note_guid,
            note_type_id=note_type_id,
            fields=fields,
            tags=tags,
            marked=marked,
            created_at=created,
            updated_at=created,
        )

    def soft_delete(self, note_id: int, *, deleted_at: int | None = None) -> bool:
        """Mark a note deleted; it and its cards drop out of search.

        Returns:
            True when a live note was marked.
        """
        cursor = self.conn.execute(
            "UPDATE notes SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
            (now_millis() if deleted_at is None else deleted_at, note_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def find(self, filters: FilterSet, *, limit: int | None = 50, offset: int = 0) -> list[Note]:
        """Return matching notes, newest first.

        Args:
            filters: Output of ``compile_for_notes``.
            limit: Page size; None returns every match.
            offset: Rows to skip.

        Returns:
            Notes in ``created_at`` descending order (ties by id descending).

        Raises:
            ValueError: If ``filters`` was compiled for cards.
        """
        ensure_entity(filters, NOTES)
        where, params = filters.where_clause()
        select = "SELECT DISTINCT n.*" if filters.distinct else "SELECT n.*"
        sql = (
            f"{select} FROM notes n WHERE {where} "
            "ORDER BY n.created_at DESC, n.id DESC LIMIT ? OFFSET ?"
        )
        rows = self.conn.execute(sql, [*params, *page_params(limit, offset)]).fetchall()
        log.debug("Note search returned %d rows", len(rows))
        return [note_from_row(row) for row in rows]

    def count(self, filters: FilterSet) -> int:
        """Count every note matching ``filters``."""
        ensure_entity(filters, NOTES)
        where, params = filters.where_clause()
        row = self.conn.execute(
            f"SELECT COUNT(DISTINCT n.id) FROM notes n WHERE {where}", params
        ).fetchone()
        return int(row[0])


def note_from_row(row: sqlite3.Row) -> Note:
    return Note(
        id=row["id"],
        user_id=row["user_id"],
        guid=row["guid"],
        note_type_id=row["note_type_id"],
        fields=json.loads(row["fields_json"]),
        tags=json.loads(row["tags"]),
        marked=bool(row["marked"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        deleted_at=row["deleted_at"],
    )
