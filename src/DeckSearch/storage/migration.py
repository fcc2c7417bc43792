"""Schema migration mechanism for DeckSearch's SQLite database.

Provides versioned, ordered migrations that are applied automatically when a
DatabaseManager opens a connection. Each migration runs in an explicit
transaction; failures roll back atomically.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from DeckSearch.utils.log import log

_SCHEMA_VERSION_DDL = """
CREATE TABLE IF NOT EXISTS schema_version (
    id      INTEGER PRIMARY KEY CHECK (id = 1),
    version INTEGER NOT NULL
)
"""


@dataclass(frozen=True)
class Migration:
    """A single versioned schema migration.

    Attributes:
        version: Monotonically increasing integer, starting at 1.
        description: Human-readable summary of what this migration does.
        sql: Semicolon-separated DDL statements. Statements must not contain
            semicolons themselves.
    """

    version: int
    description: str
    sql: str


# Append-only; never modify published entries.
MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="Initial schema: decks, notes, cards",
        sql="""
            CREATE TABLE IF NOT EXISTS decks (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              user_id INTEGER NOT NULL,
              name TEXT NOT NULL,
              created_at INTEGER NOT NULL,
              deleted_at INTEGER
            );

            CREATE TABLE IF NOT EXISTS notes (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              user_id INTEGER NOT NULL,
              guid TEXT NOT NULL,
              note_type_id INTEGER,
              fields_json TEXT NOT NULL DEFAULT '{}',
              tags TEXT NOT NULL DEFAULT '[]',
              marked INTEGER NOT NULL DEFAULT 0 CHECK (marked IN (0, 1)),
              created_at INTEGER NOT NULL,
              updated_at INTEGER NOT NULL,
              deleted_at INTEGER,
              UNIQUE(user_id, guid)
            );

            CREATE TABLE IF NOT EXISTS cards (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              note_id INTEGER NOT NULL,
              deck_id INTEGER NOT NULL,
              home_deck_id INTEGER,
              due INTEGER NOT NULL DEFAULT 0,
              interval INTEGER NOT NULL DEFAULT 0,
              ease REAL NOT NULL DEFAULT 2.5,
              lapses INTEGER NOT NULL DEFAULT 0,
              reps INTEGER NOT NULL DEFAULT 0,
              state TEXT NOT NULL DEFAULT 'new'
                CHECK (state IN ('new', 'learn', 'review', 'relearn')),
              position INTEGER NOT NULL DEFAULT 0,
              flag INTEGER NOT NULL DEFAULT 0 CHECK (flag BETWEEN 0 AND 7),
              suspended INTEGER NOT NULL DEFAULT 0,
              buried INTEGER NOT NULL DEFAULT 0,
              stability REAL,
              difficulty REAL,
              last_review_at INTEGER,
              created_at INTEGER NOT NULL,
              updated_at INTEGER NOT NULL,
              FOREIGN KEY (note_id) REFERENCES notes(id) ON DELETE CASCADE,
              FOREIGN KEY (deck_id) REFERENCES decks(id)
            );

            CREATE INDEX IF NOT EXISTS idx_decks_user_name
              ON decks(user_id, name);

            CREATE INDEX IF NOT EXISTS idx_notes_user_created
              ON notes(user_id, created_at DESC);

            CREATE INDEX IF NOT EXISTS idx_cards_note
              ON cards(note_id);

            CREATE INDEX IF NOT EXISTS idx_cards_deck
              ON cards(deck_id);

            CREATE INDEX IF NOT EXISTS idx_cards_due
              ON cards(state, due)
        """,
    ),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations to the database.

    Steps performed on every call:
      1. Check that the SQLite library ships the JSON functions.
      2. Validate that MIGRATIONS version numbers are consecutive from 1.
      3. Ensure the schema_version bookkeeping table exists.
      4. Execute each migration newer than the stored version, inside an
         explicit transaction.

    Args:
        conn: Active SQLite connection.

    Raises:
        RuntimeError: If the SQLite library has no JSON support.
        ValueError: If MIGRATIONS contains a version gap or does not start at 1.
        sqlite3.Error: If a migration statement fails (transaction is rolled back).
    """
    _check_json_support(conn)
    _validate_migration_list(MIGRATIONS)
    _ensure_version_table(conn)

    current_ver = _get_current_version(conn)
    pending = [m for m in MIGRATIONS if m.version > current_ver]

    if not pending:
        log.debug("schema already at version %d, no migrations to run", current_ver)
        return

    for migration in pending:
        _apply_migration(conn, migration)
        log.info("applied migration v%d: %s", migration.version, migration.description)


def _check_json_support(conn: sqlite3.Connection) -> None:
    """Raise RuntimeError unless ``json_each`` is available.

    Tags and note fields are stored as JSON and searched through json_each.
    """
    try:
        conn.execute("SELECT COUNT(*) FROM json_each('[1]')").fetchone()
    except sqlite3.OperationalError as e:
        raise RuntimeError(
            f"SQLite with JSON support is required (found {sqlite3.sqlite_version})."
        ) from e


def _validate_migration_list(migrations: list[Migration]) -> None:
    """Raise ValueError if migration version numbers are not consecutive from 1.

    An empty list is considered valid.
    """
    for expected, m in enumerate(migrations, start=1):
        if m.version != expected:
            raise ValueError(
                f"MIGRATIONS version gap: expected version {expected}, "
                f"got {m.version} (description: {m.description!r}). "
                "Migration versions must be consecutive starting from 1."
            )


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute(_SCHEMA_VERSION_DDL)
    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the applied schema version (0 for a fresh database)."""
    _ensure_version_table(conn)
    return _get_current_version(conn)


def _get_current_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row else 0


def _apply_migration(conn: sqlite3.Connection, migration: Migration) -> None:
    """Execute a single migration inside an explicit transaction.

    Statements run one by one with ``conn.execute`` (``executescript`` would
    commit implicitly). The schema_version row is written in the same
    transaction.

    Raises:
        sqlite3.Error: If any statement fails; the transaction is rolled back.
    """
    conn.execute("BEGIN")
    try:
        for stmt in (s.strip() for s in migration.sql.split(";")):
            if stmt:
                conn.execute(stmt)
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (id, version) VALUES (1, ?)",
            (migration.version,),
        )
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise
