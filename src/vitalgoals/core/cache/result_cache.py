"""Bounded in-memory TTL cache for calculation results.

Entries are keyed by an input fingerprint. At capacity the oldest-inserted
entry is evicted. Expired entries are dropped lazily on lookup, or in bulk
via ``sweep_expired()``. Safe to share between threads.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100
DEFAULT_TTL_SECONDS = 300.0


@dataclass
class _Entry:
    value: Any
    stored_at: float


@dataclass(frozen=True)
class CacheStats:
    size: int
    capacity: int
    hit_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "capacity": self.capacity,
            "hit_rate": round(self.hit_rate, 4),
        }


class ResultCache:
    """Fingerprint -> value map with a TTL and oldest-first eviction."""

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity <= 0:
            raise ValueError("Cache capacity must be positive")
        if ttl_seconds <= 0:
            raise ValueError("Cache TTL must be positive")
        self._capacity = capacity
        self._ttl = ttl_seconds
        self._clock = clock
        self._data: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def _expired(self, entry: _Entry, now: float) -> bool:
        # Valid only while younger than the TTL
        return now - entry.stored_at >= self._ttl

    def get(self, key: str) -> Any | None:
        """Cached value for ``key``, or None if absent or expired."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._data[key]
                logger.debug("Cache entry expired for key %s", key[:12])
                return None
            return entry.value

    def put(self, key: str, value: Any) -> None:
        """Store ``value``. Evicts the oldest-inserted entry when full."""
        with self._lock:
            # Re-inserting moves the key to the back of the insertion order
            self._data.pop(key, None)
            if len(self._data) >= self._capacity:
                oldest = next(iter(self._data))
                del self._data[oldest]
                logger.debug("Cache full (%d); evicted %s", self._capacity, oldest[:12])
            self._data[key] = _Entry(value=value, stored_at=self._clock())

    def sweep_expired(self) -> int:
        """Remove every expired entry. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._data.items() if self._expired(e, now)]
            for key in expired:
                del self._data[key]
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def stats(self, hit_rate: float = 0.0) -> CacheStats:
        """Snapshot of size and capacity; ``hit_rate`` comes from the monitor."""
        return CacheStats(size=len(self), capacity=self._capacity, hit_rate=hit_rate)
