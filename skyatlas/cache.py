"""
In-memory TTL cache shared by the enrichment and live-feed clients.

Provides a time-aware key/value store with:
- Lazy expiration: stale entries are evicted when looked up, never by a sweeper
- Thread-safe operations for concurrent access from request and polling threads
- An injectable clock so tests can drive time by hand

There is no size bound. The key space is the set of countries and flights a
session touches, which stays small; keys that are never re-queried simply
linger until ``clear()``.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


@dataclass
class CacheEntry(Generic[V]):
    """A cached value and the clock reading at which it was stored."""
    value: V
    stored_at: float


class TTLCache(Generic[K, V]):
    """
    Thread-safe keyed store whose entries expire after a fixed TTL.

    ``get`` returns a value only while ``now - stored_at < ttl``. The TTL
    is set once at construction and cannot be changed afterwards.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f'ttl_seconds must be positive, got {ttl_seconds}')

        self._ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[K, CacheEntry[V]] = {}
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def get(self, key: K) -> Optional[V]:
        """
        Get a cached value.

        Returns None if not cached or expired. Expired entries are
        removed as a side effect.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                age = self._clock() - entry.stored_at
                if age < self._ttl_seconds:
                    self._hits += 1
                    return entry.value
                # Expired
                del self._entries[key]
                logger.debug(f'Evicted stale cache entry {key!r} (age {age:.1f}s)')

            self._misses += 1
            return None

    def set(self, key: K, value: V) -> None:
        """Store a value, replacing any previous entry for the key."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def clear(self) -> None:
        """Clear entire cache."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        # Presence only, stale entries included
        with self._lock:
            return key in self._entries

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                'entries': len(self._entries),
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / lookups if lookups > 0 else 0,
                'ttl_seconds': self._ttl_seconds,
            }
