"""
Result Cache - Bounded in-memory memoization of analytics results.

One writer computes and publishes; readers only see published,
immutable snapshots.
"""
from collections import OrderedDict
from threading import Lock
from typing import Any, Dict, Generic, Hashable, Optional, TypeVar

from trainlab.core.config import settings
from trainlab.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class AnalyticsCache(Generic[T]):
    """
    Thread-safe LRU cache of published results.

    Entries are never mutated after publishing; a newer result for the
    same key replaces the old one.
    """

    def __init__(self, max_entries: Optional[int] = None):
        """
        Initialize the cache.

        Args:
            max_entries: Capacity, defaults to CACHE_MAX_ENTRIES
        """
        self._entries: "OrderedDict[Hashable, T]" = OrderedDict()
        self._lock = Lock()
        self._max_entries = max(1, max_entries or settings.CACHE_MAX_ENTRIES)
        self._latest_key: Optional[Hashable] = None
        self._hits = 0
        self._misses = 0

    def get(self, key: Hashable) -> Optional[T]:
        """
        Get a published result.

        Args:
            key: Request cache key

        Returns:
            Result or None if not cached
        """
        with self._lock:
            result = self._entries.get(key)
            if result is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return result

    def publish(self, key: Hashable, result: T) -> T:
        """Store a result and make it the latest snapshot."""
        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            self._latest_key = key

            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cached analytics result", key=str(evicted))

            return result

    def latest(self) -> Optional[T]:
        """Most recently published result, if still cached."""
        with self._lock:
            if self._latest_key is None:
                return None
            return self._entries.get(self._latest_key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._latest_key = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self._max_entries,
                "hits": self._hits,
                "misses": self._misses,
            }
