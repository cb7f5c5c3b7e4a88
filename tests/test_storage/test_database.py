"""Tests for src/dungeon_rpg/storage/database.py."""
from __future__ import annotations

import sqlite3

import pytest

from dungeon_rpg.storage.database import MEMORY, Database, _MIGRATIONS


class TestDatabaseInitialize:
    def test_all_migrations_applied(self, in_memory_db):
        assert in_memory_db.applied_versions() == set(range(1, len(_MIGRATIONS) + 1))

    def test_migration_names_recorded(self, in_memory_db):
        with in_memory_db.get_connection() as conn:
            names = [r["name"] for r in conn.execute("SELECT name FROM schema_version ORDER BY version")]
        assert names == _MIGRATIONS

    def test_idempotent_rerun(self, in_memory_db):
        in_memory_db.initialize()
        with in_memory_db.get_connection() as conn:
            versions = conn.execute("SELECT count(*) FROM schema_version").fetchone()[0]
        assert versions == len(_MIGRATIONS)

    def test_key_tables_exist(self, in_memory_db):
        with in_memory_db.get_connection() as conn:
            tables = {
                r[0] for r in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table'"
                ).fetchall()
            }
        assert {"players", "room_encounters", "leases"} <= tables

    def test_creates_parent_directory(self, tmp_path):
        db = Database(str(tmp_path / "nested" / "dir" / "game.db"))
        db.initialize()
        assert (tmp_path / "nested" / "dir").is_dir()
        db.close()

    def test_in_memory_database(self):
        db = Database(MEMORY)
        db.initialize()
        assert db.applied_versions() == {1, 2}
        db.close()


class TestGetConnection:
    def test_commits_on_success(self, in_memory_db):
        with in_memory_db.get_connection() as conn:
            conn.execute("INSERT INTO leases VALUES ('k', 't', 1.0)")
        with in_memory_db.get_connection() as conn:
            assert conn.execute("SELECT count(*) FROM leases").fetchone()[0] == 1

    def test_rolls_back_on_error(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            with in_memory_db.get_connection() as conn:
                conn.execute("INSERT INTO leases VALUES ('k', 't', 1.0)")
                conn.execute("INSERT INTO leases VALUES ('k', 'u', 2.0)")
        with in_memory_db.get_connection() as conn:
            assert conn.execute("SELECT count(*) FROM leases").fetchone()[0] == 0

    def test_close_and_reopen(self, in_memory_db):
        in_memory_db.close()
        with in_memory_db.get_connection() as conn:
            assert conn.execute("SELECT 1").fetchone()[0] == 1
