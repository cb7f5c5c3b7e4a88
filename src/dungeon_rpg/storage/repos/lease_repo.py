from __future__ import annotations

import time
from typing import Callable

from dungeon_rpg.storage.database import Database
from dungeon_rpg.storage.locks import LeaseStore


def _now_ms() -> float:
    return time.time() * 1000


class SqliteLeaseStore(LeaseStore):
    """Lease store backed by the ``leases`` table, shared by every process on the file."""

    def __init__(self, db: Database, clock: Callable[[], float] = _now_ms) -> None:
        self.db = db
        self._clock = clock

    def acquire(self, key: str, token: str, ttl_ms: float) -> bool:
        now = self._clock()
        with self.db.get_connection() as conn:
            conn.execute("DELETE FROM leases WHERE key = ? AND expires_at <= ?", (key, now))
            cur = conn.execute(
                "INSERT OR IGNORE INTO leases (key, token, expires_at) VALUES (?, ?, ?)",
                (key, token, now + ttl_ms),
            )
            return cur.rowcount == 1

    def get(self, key: str) -> str | None:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT token FROM leases WHERE key = ? AND expires_at > ?",
                (key, self._clock()),
            ).fetchone()
        return row["token"] if row else None

    def release(self, key: str, token: str) -> bool:
        with self.db.get_connection() as conn:
            cur = conn.execute(
                "DELETE FROM leases WHERE key = ? AND token = ? AND expires_at > ?",
                (key, token, self._clock()),
            )
            return cur.rowcount == 1
