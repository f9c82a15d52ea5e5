"""
Response Cache - in-process TTL map for chat replies

Short-circuits repeat recruitment questions within a time window. Keys are
the normalized query text (lowercased, trimmed, whitespace collapsed).

Eviction is lazy: an expired entry is ignored and dropped on its next
lookup, and ``clear()`` empties everything. There is no size bound.

Usage:
    cache = ResponseCache(ttl_seconds=600)

    answer = cache.get(query)
    if answer is None:
        answer = await generate(query)
        cache.set(query, answer)
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from recruitchat.middleware.metrics import record_cache_hit, record_cache_miss

logger = logging.getLogger(__name__)


def cache_key(query: str) -> str:
    return " ".join((query or "").lower().split())


class ResponseCache:
    """
    Thread-safe expiring map of query -> answer.

    Attributes:
        ttl_seconds: Lifetime of an entry
        stats: Hit/miss counters
    """

    def __init__(self, ttl_seconds: int = 600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()
        self.stats = {"hits": 0, "misses": 0}

    def get(self, query: str) -> Optional[str]:
        """Cached answer for the query, or None on miss or expiry."""
        key = cache_key(query)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                answer, created = entry
                if self._clock() - created < self.ttl_seconds:
                    self.stats["hits"] += 1
                    record_cache_hit()
                    logger.debug(f"Cache hit: {key!r}")
                    return answer
                del self._entries[key]

            self.stats["misses"] += 1
            record_cache_miss()
            return None

    def set(self, query: str, answer: str) -> None:
        with self._lock:
            self._entries[cache_key(query)] = (answer, self._clock())

    def clear(self) -> int:
        """Drop every entry; returns how many were removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        logger.info(f"Response cache cleared ({removed} entries)")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics including hit rate.

        Returns:
            Dict with hits, misses, total, hit_rate, entries and ttl_seconds
        """
        with self._lock:
            hits = self.stats["hits"]
            misses = self.stats["misses"]
            entries = len(self._entries)
        total = hits + misses
        return {
            "hits": hits,
            "misses": misses,
            "total": total,
            "hit_rate": hits / total if total > 0 else 0.0,
            "entries": entries,
            "ttl_seconds": self.ttl_seconds,
        }
