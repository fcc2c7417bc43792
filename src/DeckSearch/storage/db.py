"""SQLite database utilities."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from DeckSearch.search.text import fold_text, regexp_match, unaccent_text
from DeckSearch.storage.migration import run_migrations

MEMORY_DB = ":memory:"


class DatabaseManager:
    """Owns one SQLite connection with the search functions registered.

    Every manager opens its own connection and brings the schema up to date.
    Supports the context manager protocol for automatic cleanup.
    """

    def __init__(self, db_path: Path | str):
        """Open the database and run pending migrations.

        Args:
            db_path: Database file path, or ``":memory:"``.
        """
        self.db_path = str(db_path)
        self.conn = ensure_db(db_path)
        register_functions(self.conn)
        run_migrations(self.conn)

    def get_connection(self) -> sqlite3.Connection:
        return self.conn

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> DatabaseManager:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def ensure_db(db_path: Path | str) -> sqlite3.Connection:
    """Ensure the database directory exists and return a connection.

    Args:
        db_path: Database file path, or ``":memory:"``.

    Returns:
        SQLite connection with ``sqlite3.Row`` rows and foreign keys enforced.

    Raises:
        OSError: If directory creation fails.
        sqlite3.Error: If database connection fails.
    """
    if str(db_path) != MEMORY_DB:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def register_functions(conn: sqlite3.Connection) -> None:
    """Register ``fold``, ``unaccent`` and ``regexp`` used by compiled filters."""
    conn.create_function("fold", 1, fold_text, deterministic=True)
    conn.create_function("unaccent", 1, unaccent_text, deterministic=True)
    conn.create_function("regexp", 2, regexp_match, deterministic=True)
