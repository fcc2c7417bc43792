"""Tests for the schema migration mechanism.

Scenarios:
  1. fresh database: all tables created, schema_version written
  2. already current: a second run executes no DDL
  3. new migration: v2 applied to an existing DB, old rows intact
  4. failing migration: transaction rolled back, version unchanged
Plus: version-gap validation raises ValueError.
"""

import sqlite3
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

import DeckSearch.storage.migration as migration_module
from DeckSearch.storage.db import DatabaseManager
from DeckSearch.storage.migration import MIGRATIONS, Migration, get_schema_version, run_migrations

_LATEST_VERSION = max(m.version for m in MIGRATIONS)


def _table_names(conn: sqlite3.Connection) -> set[str]:
    return {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}


class MigrationTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self._conn = sqlite3.connect(str(Path(self._tmpdir.name) / "decks.db"))

    def tearDown(self) -> None:
        self._conn.close()
        self._tmpdir.cleanup()


class TestFreshDatabase(MigrationTestCase):
    def test_tables_and_version(self) -> None:
        run_migrations(self._conn)
        self.assertTrue({"decks", "notes", "cards", "schema_version"} <= _table_names(self._conn))
        self.assertEqual(get_schema_version(self._conn), _LATEST_VERSION)

    def test_second_run_is_a_no_op(self) -> None:
        run_migrations(self._conn)
        with patch.object(migration_module, "_apply_migration") as apply:
            run_migrations(self._conn)
        apply.assert_not_called()


class TestNewMigration(MigrationTestCase):
    def test_v2_applies_and_keeps_rows(self) -> None:
        run_migrations(self._conn)
        self._conn.execute("INSERT INTO decks (user_id, name, created_at) VALUES (1, 'Default', 0)")
        self._conn.commit()

        v2 = Migration(
            version=_LATEST_VERSION + 1,
            description="add deck description",
            sql="ALTER TABLE decks ADD COLUMN description TEXT",
        )
        with patch.object(migration_module, "MIGRATIONS", [*MIGRATIONS, v2]):
            run_migrations(self._conn)

        self.assertEqual(get_schema_version(self._conn), _LATEST_VERSION + 1)
        row = self._conn.execute("SELECT name, description FROM decks").fetchone()
        self.assertEqual(row, ("Default", None))


class TestFailingMigration(MigrationTestCase):
    def test_rollback(self) -> None:
        run_migrations(self._conn)
        broken = Migration(
            version=_LATEST_VERSION + 1,
            description="broken",
            sql="CREATE TABLE extra (id INTEGER); INSERT INTO missing_table VALUES (1)",
        )
        with patch.object(migration_module, "MIGRATIONS", [*MIGRATIONS, broken]):
            with self.assertRaises(sqlite3.Error):
                run_migrations(self._conn)

        self.assertEqual(get_schema_version(self._conn), _LATEST_VERSION)
        self.assertNotIn("extra", _table_names(self._conn))


class TestValidation(MigrationTestCase):
    def test_version_gap(self) -> None:
        gap = [Migration(version=1, description="a", sql="SELECT 1"), Migration(version=3, description="b", sql="SELECT 1")]
        with patch.object(migration_module, "MIGRATIONS", gap):
            with self.assertRaisesRegex(ValueError, "version gap"):
                run_migrations(self._conn)


class TestDatabaseManager(unittest.TestCase):
    def test_memory_database_is_migrated(self) -> None:
        with DatabaseManager(":memory:") as manager:
            conn = manager.get_connection()
            self.assertEqual(get_schema_version(conn), _LATEST_VERSION)
            self.assertEqual(conn.execute("SELECT fold('ÄBC')").fetchone()[0], "äbc")
            self.assertEqual(conn.execute("SELECT unaccent('Café')").fetchone()[0], "cafe")
            self.assertEqual(conn.execute("SELECT regexp('^a.c$', 'abc')").fetchone()[0], 1)

    def test_file_database_creates_parent_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "decks.db"
            with DatabaseManager(path):
                pass
            self.assertTrue(path.exists())

    def test_managers_are_independent(self) -> None:
        with DatabaseManager(":memory:") as first, DatabaseManager(":memory:") as second:
            first.get_connection().execute("INSERT INTO decks (user_id, name, created_at) VALUES (1, 'x', 0)")
            count = second.get_connection().execute("SELECT COUNT(*) FROM decks").fetchone()[0]
        self.assertEqual(count, 0)


if __name__ == "__main__":
    unittest.main()
