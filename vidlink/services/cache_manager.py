"""
In-memory response cache for vidlink.
Provides TTL-based caching of resolved video responses with hit/miss tracking.
"""
import time
from typing import Any, Callable, Dict, Optional, Union

from cachetools import TTLCache

from vidlink.core.config import settings


class _ResponseCache(TTLCache):
    """TTLCache that reports capacity evictions."""

    def __init__(self, maxsize, ttl, timer, on_evict: Callable[[], None]):
        super().__init__(maxsize=maxsize, ttl=ttl, timer=timer)
        self._on_evict = on_evict

    def popitem(self):
        key, value = super().popitem()
        self._on_evict()
        return key, value


class CacheManager:
    """
    Process-local cache keyed by the request URL.

    Features:
    - Fixed TTL per entry (cachetools ``TTLCache``)
    - Capacity bound; expired entries go first, then the least recently used
    - Hit/miss tracking for monitoring

    Entries are only written after a successful extraction, so errors are
    never cached. All bookkeeping happens without awaiting, which keeps the
    structure consistent under interleaved requests on one event loop.
    """

    def __init__(
        self,
        ttl: Optional[float] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl if ttl is not None else settings.cache_ttl
        self.max_entries = max_entries if max_entries is not None else settings.cache_max_entries
        self._clock = clock
        self._cache = self._new_cache()

        # Performance tracking
        self.stats = {
            'hits': 0,
            'misses': 0,
            'evictions': 0,
            'total_requests': 0
        }

    def __len__(self) -> int:
        return len(self._cache)

    def _new_cache(self) -> _ResponseCache:
        return _ResponseCache(
            maxsize=self.max_entries,
            ttl=self.ttl,
            timer=self._clock,
            on_evict=self._record_eviction
        )

    def _record_eviction(self):
        self.stats['evictions'] += 1

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a cached response.

        Args:
            key: Request URL

        Returns:
            Cached response body or None if absent or expired
        """
        self.stats['total_requests'] += 1
        self._cache.expire()
        value = self._cache.get(key)

        if value is None:
            self.stats['misses'] += 1
            return None

        self.stats['hits'] += 1
        return value

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        """
        Cache a response body with the configured TTL.

        Args:
            key: Request URL
            value: Response body to cache
        """
        self._cache[key] = value

    def clear(self) -> None:
        """Drop every entry."""
        # Clearing is not an eviction
        self._cache = self._new_cache()

    def get_cache_stats(self) -> Dict[str, Union[int, float]]:
        """
        Get cache performance statistics.

        Returns:
            Dict containing hit rate, miss rate and raw counters
        """
        total = self.stats['total_requests']

        return {
            'hit_rate': round((self.stats['hits'] / total) * 100, 2) if total else 0.0,
            'miss_rate': round((self.stats['misses'] / total) * 100, 2) if total else 0.0,
            'total_requests': total,
            'hits': self.stats['hits'],
            'misses': self.stats['misses'],
            'evictions': self.stats['evictions'],
            'size': len(self._cache),
            'max_entries': self.max_entries
        }
