from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Protocol


class EphemeralStore(Protocol):
    """
    TTL key-value store for short-lived state (OTP codes, pending registrations).

    Every key is written with a time-to-live; expired keys behave exactly as
    absent ones. ``delete`` is idempotent.
    """

    def get(self, key: str) -> str | None: ...

    def set(
        self, key: str, value: str, *, ttl: timedelta, only_if_absent: bool = False
    ) -> bool:
        """
        Store ``value`` under ``key`` for ``ttl``.

        :param only_if_absent: Atomic set-if-absent. When the key already holds
            a live value nothing is written.
        :returns: ``True`` when the value was written.
        """

    def delete(self, *keys: str) -> int:
        """Remove ``keys``. :returns: Number of keys that existed."""


class InMemoryEphemeralStore(EphemeralStore):
    """
    Process-local TTL store guarded by a lock.

    Suitable for tests and single-process development servers. Expired entries
    are evicted lazily on access.
    """

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, tuple[str, float]] = {}
        self._clock = clock or time.monotonic

    def _live(self, key: str, now: float) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= now:
            del self._data[key]
            return None
        return value

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._live(key, self._clock())

    def set(
        self, key: str, value: str, *, ttl: timedelta, only_if_absent: bool = False
    ) -> bool:
        seconds = ttl.total_seconds()
        if seconds <= 0:
            raise ValueError("ttl must be positive.")
        with self._lock:
            now = self._clock()
            if only_if_absent and self._live(key, now) is not None:
                return False
            self._data[key] = (value, now + seconds)
            return True

    def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            now = self._clock()
            for key in keys:
                if self._live(key, now) is not None:
                    removed += 1
                self._data.pop(key, None)
        return removed

    def ttl(self, key: str) -> float | None:
        """Remaining lifetime in seconds, or ``None`` when the key is absent."""
        with self._lock:
            now = self._clock()
            if self._live(key, now) is None:
                return None
            return self._data[key][1] - now
