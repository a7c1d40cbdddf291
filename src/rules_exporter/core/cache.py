"""Thread-safe key/value cache with per-entry expiry.

Expiry is lazy: ``get`` never returns an entry whose deadline has passed,
whether or not ``cleanup`` has run. ``cleanup`` only bounds memory.
"""

import threading
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the clock reading after which it is stale."""

    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    """In-memory cache whose entries expire ``ttl`` seconds after ``set``.

    Entries are replaced as whole immutable objects under a lock, so a
    reader racing a writer sees either the old or the new entry.

    Args:
        clock: Monotonic time source in seconds. Injected by tests to
            simulate the passage of time.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}
        self._lock = threading.Lock()

    def set(self, key: K, value: V, ttl: float) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        entry = CacheEntry(value=value, expires_at=self._clock() + ttl)
        with self._lock:
            self._entries[key] = entry

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the live value for ``key``, or ``default`` on a miss.

        A miss is either an absent key or an entry past its expiry.
        """
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or self._clock() > entry.expires_at:
            return default
        return entry.value

    def delete(self, key: K) -> None:
        """Remove ``key`` if present."""
        with self._lock:
            self._entries.pop(key, None)

    def cleanup(self) -> int:
        """Purge every expired entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now > e.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet purged."""
        with self._lock:
            return len(self._entries)
