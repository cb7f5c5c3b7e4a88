"""SQLite access for players, room encounters and room leases."""
from __future__ import annotations

import contextlib
import importlib
import logging
import pathlib
import sqlite3
import threading
from typing import Generator

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

_MIGRATIONS = [
    "001_initial",
    "002_leases",
]


class Database:
    """One shared connection per process, serialized by a re-entrant lock.

    Room lease acquisition and turn persistence may come from different
    threads in the same process (tests, embedding), so every statement goes
    through ``get_connection``.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        if db_path != MEMORY:
            pathlib.Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def initialize(self) -> None:
        """Apply pending migrations in order. Safe to call repeatedly."""
        with self._lock:
            conn = self._open()
            conn.execute(
                "CREATE TABLE IF NOT EXISTS schema_version "
                "(version INTEGER PRIMARY KEY, name TEXT)"
            )
            applied = self._applied(conn)
            for version, name in enumerate(_MIGRATIONS, 1):
                if version in applied:
                    continue
                module = importlib.import_module(f"dungeon_rpg.storage.migrations.{name}")
                module.upgrade(conn)
                conn.execute("INSERT INTO schema_version VALUES (?, ?)", (version, name))
                logger.info("Applied migration %s to %s", name, self.db_path)
            conn.commit()

    def applied_versions(self) -> set[int]:
        with self._lock:
            return self._applied(self._open())

    @contextlib.contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield the shared connection; commit on success, roll back on error."""
        with self._lock:
            conn = self._open()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    # -- Helpers --

    def _open(self) -> sqlite3.Connection:
        if self._connection is None:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if self.db_path != MEMORY:
                conn.execute("PRAGMA journal_mode=WAL")
            self._connection = conn
        return self._connection

    @staticmethod
    def _applied(conn: sqlite3.Connection) -> set[int]:
        return {row[0] for row in conn.execute("SELECT version FROM schema_version")}
