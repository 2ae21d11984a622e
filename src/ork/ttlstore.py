"""Key-value store whose entries expire when not refreshed."""

import threading
import time
from collections.abc import Callable, Hashable
from typing import Any


class TTLStore:
    """
    Thread-safe mapping where every entry carries its own time-to-live.

    Setting a key again resets its expiry. Expired entries are never returned
    and are dropped lazily on access or by ``purge_expired``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initialize the TTLStore.

        Args:
            clock: Monotonic time source in seconds, injectable for tests.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[Hashable, tuple[Any, float]] = {}

    def get(self, key: Hashable) -> tuple[Any, bool]:
        """Return ``(value, True)`` for a live key, ``(None, False)`` otherwise."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None, False
            return value, True

    def set(self, key: Hashable, value: Any, ttl: float) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def items(self) -> list[tuple[Hashable, Any]]:
        """Return a list of the live ``(key, value)`` pairs."""
        now = self._clock()
        with self._lock:
            return [(key, value) for key, (value, expires_at) in self._entries.items() if now < expires_at]

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __len__(self) -> int:
        return len(self.items())

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key)[1]
