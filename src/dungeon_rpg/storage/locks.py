"""Room mutual-exclusion guard built on TTL leases.

A lease is a key holding a random token until it expires. Acquiring is
set-if-absent, releasing is compare-and-delete on the token, so a caller
whose lease already expired can never free someone else's.
"""
from __future__ import annotations

import contextlib
import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Generator, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOCK_PREFIX = "dungeon:lock:"
DEFAULT_TTL_MS = 5000
DEFAULT_ATTEMPTS = 5
DEFAULT_BACKOFF_MS = 50


class LockUnavailableError(RuntimeError):
    """The room lease could not be acquired within the retry budget."""

    def __init__(self, room_id: str, attempts: int) -> None:
        super().__init__(f"Could not lock room {room_id} after {attempts} attempts")
        self.room_id = room_id
        self.attempts = attempts


def _now_ms() -> float:
    return time.monotonic() * 1000


class LeaseStore(ABC):
    """Key-value backend offering the three lease primitives."""

    @abstractmethod
    def acquire(self, key: str, token: str, ttl_ms: float) -> bool:
        """Set ``key`` to ``token`` only if no live lease holds it."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Token of the live lease on ``key``, if any."""

    @abstractmethod
    def release(self, key: str, token: str) -> bool:
        """Delete ``key`` only if it still holds ``token``."""


class InMemoryLeaseStore(LeaseStore):
    """Process-local lease store, safe across threads."""

    def __init__(self, clock: Callable[[], float] = _now_ms) -> None:
        self._leases: dict[str, tuple[str, float]] = {}
        self._mutex = threading.Lock()
        self._clock = clock

    def _live(self, key: str) -> tuple[str, float] | None:
        entry = self._leases.get(key)
        if entry is not None and entry[1] <= self._clock():
            del self._leases[key]
            return None
        return entry

    def acquire(self, key: str, token: str, ttl_ms: float) -> bool:
        with self._mutex:
            if self._live(key) is not None:
                return False
            self._leases[key] = (token, self._clock() + ttl_ms)
            return True

    def get(self, key: str) -> str | None:
        with self._mutex:
            entry = self._live(key)
            return entry[0] if entry else None

    def release(self, key: str, token: str) -> bool:
        with self._mutex:
            entry = self._live(key)
            if entry is None or entry[0] != token:
                return False
            del self._leases[key]
            return True


class RoomLock:
    """Serializes every action sequence that mutates one room."""

    def __init__(
        self,
        store: LeaseStore,
        attempts: int = DEFAULT_ATTEMPTS,
        backoff_ms: float = DEFAULT_BACKOFF_MS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.attempts = attempts
        self.backoff_ms = backoff_ms
        self._sleep = sleep

    @staticmethod
    def key_for(room_id: str) -> str:
        return f"{LOCK_PREFIX}{room_id}"

    def _acquire(self, room_id: str, ttl_ms: float) -> str:
        key = self.key_for(room_id)
        token = str(uuid.uuid4())
        for attempt in range(1, self.attempts + 1):
            if self.store.acquire(key, token, ttl_ms):
                logger.debug("Locked %s on attempt %d", key, attempt)
                return token
            logger.debug("Room %s busy (attempt %d/%d)", room_id, attempt, self.attempts)
            if attempt < self.attempts:
                self._sleep(self.backoff_ms / 1000)
        logger.warning("Giving up on room %s after %d attempts", room_id, self.attempts)
        raise LockUnavailableError(room_id, self.attempts)

    @contextlib.contextmanager
    def hold(self, room_id: str, ttl_ms: float = DEFAULT_TTL_MS) -> Generator[str, None, None]:
        """Hold the room's lease for the duration of the block."""
        token = self._acquire(room_id, ttl_ms)
        try:
            yield token
        finally:
            if not self.store.release(self.key_for(room_id), token):
                logger.warning("Lease on room %s expired before release", room_id)

    def with_lock(self, room_id: str, ttl_ms: float, fn: Callable[[], T]) -> T:
        """Run ``fn`` while holding the room's lease and return its result."""
        with self.hold(room_id, ttl_ms):
            return fn()
