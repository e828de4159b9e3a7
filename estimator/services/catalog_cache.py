"""Catalog Cache for the BuildCost estimator.

Time-bounded, per-key cache in front of a catalog fetch function, with
request coalescing so a burst of misses issues one fetch.

Per-key state:

    EMPTY -> FETCHING -> FRESH -> STALE -> FETCHING -> FRESH -> ...

- EMPTY/STALE + get: start one fetch task; concurrent callers for the same
  key await that task instead of fetching again (single-flight).
- Fetch success: store the value with the clock time; entry is FRESH.
- Fetch failure with a STALE value: serve the stale value and log it.
- Fetch failure on a cold key: every waiter gets DataUnavailableError.
- FRESH entries expire after the TTL and become STALE; they are never
  deleted by expiry.
- Storing a new key beyond maxsize evicts the least recently used stored
  key. Keys with a fetch in flight are never evicted.

A caller cancelled while waiting does not cancel the shared fetch; the
fetch completes and populates the cache for the other waiters.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

import structlog

from config.errors import DataUnavailableError
from config.settings import settings

logger = structlog.get_logger()

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class CacheState(str, Enum):
    """Lifecycle state of a cache key."""

    EMPTY = "empty"
    FETCHING = "fetching"
    FRESH = "fresh"
    STALE = "stale"


@dataclass
class CacheEntry(Generic[V]):
    """A cached value and the clock time it was fetched at."""

    value: V
    fetched_at: float


class CatalogCache(Generic[K, V]):
    """Single-flight TTL cache over an async fetch function.

    Args:
        fetch: Coroutine function loading the value for a key
        ttl_seconds: Freshness window (defaults to settings.catalog_cache_ttl_seconds)
        maxsize: Maximum stored keys (defaults to settings.catalog_cache_maxsize)
        clock: Time source in seconds, injectable for tests
        name: Cache name used in logs and as the error source
    """

    def __init__(
        self,
        fetch: Callable[[K], Awaitable[V]],
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        name: str = "catalog",
        maxsize: Optional[int] = None,
    ):
        ttl = settings.catalog_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl}")
        maxsize = settings.catalog_cache_maxsize if maxsize is None else maxsize
        if maxsize < 1:
            raise ValueError(f"maxsize must be at least 1, got {maxsize}")

        self._fetch = fetch
        self._ttl = ttl
        self._maxsize = maxsize
        self._clock = clock
        self.name = name

        # Insertion order is recency order, least recent first
        self._entries: Dict[K, CacheEntry[V]] = {}
        self._inflight: Dict[K, asyncio.Task] = {}

        self._hits = 0
        self._misses = 0
        self._coalesced = 0
        self._failures = 0
        self._stale_served = 0
        self._evictions = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def maxsize(self) -> int:
        return self._maxsize

    def _is_fresh(self, entry: CacheEntry[V]) -> bool:
        return self._clock() - entry.fetched_at < self._ttl

    def state(self, key: K) -> CacheState:
        """Current lifecycle state of a key."""
        if key in self._inflight:
            return CacheState.FETCHING
        entry = self._entries.get(key)
        if entry is None:
            return CacheState.EMPTY
        return CacheState.FRESH if self._is_fresh(entry) else CacheState.STALE

    async def get(self, key: K) -> V:
        """Get the value for a key, fetching it on a miss.

        Raises:
            DataUnavailableError: If the fetch fails and no previous value exists.
        """
        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry):
            self._hits += 1
            self._touch(key)
            logger.debug("catalog_cache_hit", cache=self.name, key=str(key))
            return entry.value

        task = self._inflight.get(key)
        if task is None:
            self._misses += 1
            logger.debug(
                "catalog_cache_miss",
                cache=self.name,
                key=str(key),
                stale=entry is not None,
            )
            task = asyncio.get_running_loop().create_task(self._refresh(key))
            task.add_done_callback(_consume_exception)
            self._inflight[key] = task
        else:
            self._coalesced += 1

        return await asyncio.shield(task)

    async def _refresh(self, key: K) -> V:
        try:
            value = await self._fetch(key)
        except Exception as e:
            self._failures += 1
            entry = self._entries.get(key)
            if entry is not None:
                self._stale_served += 1
                logger.warning(
                    "catalog_refresh_failed",
                    cache=self.name,
                    key=str(key),
                    error=str(e),
                    stale_age_seconds=round(self._clock() - entry.fetched_at, 1),
                )
                return entry.value

            logger.error("catalog_fetch_failed", cache=self.name, key=str(key), error=str(e))
            raise DataUnavailableError(
                f"{self.name} catalog is unavailable",
                source=self.name,
                details={"key": str(key), "error": str(e)},
            ) from e
        finally:
            self._inflight.pop(key, None)

        self._store(key, value)
        logger.debug("catalog_cache_set", cache=self.name, key=str(key))
        return value

    def _touch(self, key: K) -> None:
        self._entries[key] = self._entries.pop(key)

    def _store(self, key: K, value: V) -> None:
        self._entries.pop(key, None)
        while len(self._entries) >= self._maxsize:
            victim = next((k for k in self._entries if k not in self._inflight), None)
            if victim is None:
                break
            del self._entries[victim]
            self._evictions += 1
            logger.debug("catalog_cache_evicted", cache=self.name, key=str(victim))
        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())

    def invalidate(self, key: K) -> bool:
        """Drop the stored value for a key. Returns True if one existed.

        An in-flight fetch for the key still completes and stores its value.
        """
        removed = self._entries.pop(key, None) is not None
        if removed:
            logger.info("catalog_cache_invalidated", cache=self.name, key=str(key))
        return removed

    def clear(self) -> None:
        """Drop every stored value."""
        self._entries.clear()
        logger.info("catalog_cache_cleared", cache=self.name)

    def stats(self) -> Dict[str, Any]:
        """Entry counts and hit/miss counters."""
        fresh = sum(1 for entry in self._entries.values() if self._is_fresh(entry))
        return {
            "name": self.name,
            "ttl_seconds": self._ttl,
            "maxsize": self._maxsize,
            "entries": len(self._entries),
            "fresh": fresh,
            "stale": len(self._entries) - fresh,
            "in_flight": len(self._inflight),
            "hits": self._hits,
            "misses": self._misses,
            "coalesced": self._coalesced,
            "failures": self._failures,
            "stale_served": self._stale_served,
            "evictions": self._evictions,
        }


def _consume_exception(task: asyncio.Task) -> None:
    # Marks the failure as retrieved when every waiter was cancelled
    if not task.cancelled():
        task.exception()
