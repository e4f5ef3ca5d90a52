"""Time-bounded caching for async producers with stale-while-revalidate.

A cached entry is fresh for ``max_age`` seconds. After that, with SWR
enabled, the stale value is still returned immediately while a single
background task refreshes it; without SWR a stale entry is a miss.
Producer errors are never cached. Requests carrying a matching bypass
config (see ``cache_bypass``) skip the cache entirely, neither reading
nor writing it.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from functools import wraps
from typing import Any, TypeVar

from ..constants import CACHE_MAX_AGE_ONE_HOUR
from .cache_bypass import current_bypass_config, should_bypass_cache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheState(Enum):
    MISS = "miss"
    FRESH = "fresh"
    STALE = "stale"


class SWRCache:
    """Thread-safe store that remembers when each entry was written.

    Entries are never dropped for age alone, since a stale entry can still
    be served while it revalidates. At capacity, entries older than
    ``max_age`` are evicted first, then the oldest.
    """

    def __init__(self, maxsize: int = 1000, max_age: float = CACHE_MAX_AGE_ONE_HOUR):
        """Initialize an empty cache holding at most ``maxsize`` entries."""
        self.maxsize = maxsize
        self.max_age = max_age
        self._cache: dict[str, tuple[Any, float]] = {}  # key -> (value, stored_at)
        self._lock = threading.RLock()
        self._hits = 0
        self._stale_hits = 0
        self._misses = 0

    def get(self, key: str) -> tuple[CacheState, Any]:
        """Look up a key, reporting whether the entry is fresh or stale."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return CacheState.MISS, None

            value, stored_at = entry
            if time.monotonic() - stored_at < self.max_age:
                self._hits += 1
                return CacheState.FRESH, value

            self._stale_hits += 1
            return CacheState.STALE, value

    def set(self, key: str, value: Any) -> None:
        """Store a value, evicting expired then oldest entries at capacity."""
        with self._lock:
            if key not in self._cache and len(self._cache) >= self.maxsize:
                self._evict_expired()
                if len(self._cache) >= self.maxsize:
                    self._evict_oldest()
            self._cache[key] = (value, time.monotonic())

    def _evict_expired(self) -> int:
        """Remove entries older than max_age and return how many went."""
        cutoff = time.monotonic() - self.max_age
        expired = [k for k, (_, stored_at) in self._cache.items() if stored_at <= cutoff]
        for key in expired:
            del self._cache[key]
        return len(expired)

    def _evict_oldest(self) -> None:
        """Remove the entry written longest ago."""
        if not self._cache:
            return
        oldest_key = min(self._cache, key=lambda k: self._cache[k][1])
        del self._cache[oldest_key]

    def clear(self) -> None:
        """Drop every entry and reset the counters."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._stale_hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int | float]:
        """Hit, stale-hit and miss counts plus current size."""
        with self._lock:
            total = self._hits + self._stale_hits + self._misses
            hit_rate = ((self._hits + self._stale_hits) / total * 100) if total > 0 else 0
            return {
                "hits": self._hits,
                "stale_hits": self._stale_hits,
                "misses": self._misses,
                "size": len(self._cache),
                "maxsize": self.maxsize,
                "max_age_seconds": self.max_age,
                "hit_rate_percent": round(hit_rate, 2),
            }


def _default_key(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    key_parts = [repr(arg) for arg in args]
    key_parts.extend(f"{k}={v!r}" for k, v in sorted(kwargs.items()))
    return ":".join(key_parts)


def cached_function(
    name: str,
    max_age: float = CACHE_MAX_AGE_ONE_HOUR,
    swr: bool = True,
    get_key: Callable[..., str] | None = None,
    bypass_key: str | None = None,
    category: str = "handler",
    maxsize: int = 1000,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Cache the results of an async function.

    Args:
        name: Cache namespace, also used in log records
        max_age: Seconds an entry stays fresh
        swr: Serve stale entries while refreshing them in the background
        get_key: Builds the cache key from the call arguments
        bypass_key: Key that bypasses only this cache when requested
        category: Bypass category this cache belongs to ("fetch" or "handler")
        maxsize: Maximum number of entries

    Example:
        @cached_function("npm-package", max_age=300, category="fetch",
                         bypass_key="npm-package")
        async def fetch_packument(name: str) -> Packument:
            return await registry.fetch_packument(name)
    """
    cache = SWRCache(maxsize=maxsize, max_age=max_age)

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        refreshing: dict[str, asyncio.Task[None]] = {}

        async def refresh(key: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
            try:
                cache.set(key, await func(*args, **kwargs))
                logger.debug(f"Revalidated {key}", extra={"event": "cache_refresh", "cache": name})
            except Exception as e:
                logger.warning(
                    f"Background refresh failed for {key}, keeping stale value: {e}",
                    extra={"event": "cache_refresh_failed", "cache": name, "error": str(e)},
                )

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            if should_bypass_cache(current_bypass_config(), category, bypass_key):
                logger.debug(
                    f"BYPASS ({bypass_key or category}): {name}",
                    extra={"event": "cache_bypass", "cache": name},
                )
                return await func(*args, **kwargs)

            suffix = get_key(*args, **kwargs) if get_key else _default_key(args, kwargs)
            key = f"{name}:{suffix}"

            state, value = cache.get(key)
            if state is CacheState.FRESH:
                return value

            if state is CacheState.STALE and swr:
                if key not in refreshing:
                    task = asyncio.ensure_future(refresh(key, args, kwargs))
                    refreshing[key] = task
                    task.add_done_callback(lambda _t: refreshing.pop(key, None))
                return value

            result = await func(*args, **kwargs)
            cache.set(key, result)
            return result

        wrapper.cache = cache  # type: ignore[attr-defined]
        wrapper.cache_clear = cache.clear  # type: ignore[attr-defined]
        wrapper.cache_stats = cache.stats  # type: ignore[attr-defined]
        wrapper.refreshing = refreshing  # type: ignore[attr-defined]

        return wrapper

    return decorator
