# app/utils/cache.py
"""Per-process TTL cache with an injectable clock, entry ages and metrics."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Generic, Hashable, TypeVar

from app.utils.time import Clock

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A live cache value together with its age at lookup time."""

    value: V
    created_at: float
    age_seconds: float
    remaining_seconds: float


class TTLCache(Generic[V]):
    """
    Tiny per-process TTL cache with explicit invalidation.

    Entries expire ``ttl_seconds`` after they were written; an expired entry is
    treated as absent and dropped on the next lookup. Writes are last-writer-wins.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        ttl_seconds: float = 30,
        maxsize: int = 128,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize the TTL cache.
        Args:
            enabled: Whether the cache is enabled
            ttl_seconds: Time-to-live for cache entries in seconds
            maxsize: Maximum number of entries in the cache
            clock: Monotonic seconds source (tests pass a fake clock)
        """
        self.enabled = enabled and ttl_seconds > 0 and maxsize > 0
        self.ttl = ttl_seconds if self.enabled else 0
        self.maxsize = max(1, maxsize) if self.enabled else 0
        self._clock = clock
        self._store: OrderedDict[Hashable, tuple[float, V]] = OrderedDict()
        self._lock = Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get_entry(self, key: Hashable) -> CacheEntry[V] | None:
        """Return the live entry for *key* with its age, or ``None`` if missing or expired."""
        if not self.enabled:
            return None

        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is not None:
                created_at, value = entry
                age = now - created_at
                if age < self.ttl:
                    self._hits += 1
                    self._store.move_to_end(key)
                    return CacheEntry(
                        value=value,
                        created_at=created_at,
                        age_seconds=age,
                        remaining_seconds=self.ttl - age,
                    )
                self._store.pop(key, None)
            self._misses += 1
        return None

    def get(self, key: Hashable, loader: Callable[[], V] | None = None) -> V | None:
        """Get a cache value by key, loading it if missing or expired."""
        entry = self.get_entry(key)
        if entry is not None:
            return entry.value
        if not self.enabled:
            self._misses += 1
        if loader is None:
            return None
        value = loader()
        self.set(key, value)
        return value

    def set(self, key: Hashable, value: V | None) -> None:
        """Set a cache entry; a ``None`` value removes the key."""
        if not self.enabled:
            return
        with self._lock:
            if value is None:
                self._store.pop(key, None)
                return
            self._store[key] = (self._clock(), value)
            self._store.move_to_end(key)
            if len(self._store) > self.maxsize:
                evicted, _ = self._store.popitem(last=False)
                self._evictions += 1
                logger.debug("Cache evicted %r (maxsize=%d)", evicted, self.maxsize)

    def invalidate(self, key: Hashable) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics for monitoring.

        Returns:
            Dictionary with enabled, size, maxsize, ttl_seconds, hits, misses,
            hit_rate (0-100), evictions and utilization (0-100).
        """
        with self._lock:
            size = len(self._store)
            hits = self._hits
            misses = self._misses
            evictions = self._evictions

        total_requests = hits + misses
        hit_rate = (hits / total_requests * 100) if total_requests > 0 else 0.0
        utilization = (size / self.maxsize * 100) if self.maxsize > 0 else 0.0

        return {
            "enabled": self.enabled,
            "size": size,
            "maxsize": self.maxsize,
            "ttl_seconds": self.ttl,
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hit_rate, 2),
            "evictions": evictions,
            "utilization": round(utilization, 2),
        }


class CacheRegistry:
    """
    Registry of named TTLCache instances for the health endpoint.

    One registry lives in the service container, so every app instance
    (and every test) starts with an empty set of caches.
    """

    def __init__(self) -> None:
        self._caches: dict[str, TTLCache] = {}
        self._registry_lock = Lock()

    def register(self, name: str, cache: TTLCache) -> None:
        """
        Register a cache for monitoring.

        Args:
            name: Unique identifier for the cache (e.g., "soil_analysis.results")
            cache: TTLCache instance to register
        """
        with self._registry_lock:
            if name in self._caches:
                raise ValueError(f"Cache '{name}' is already registered")
            self._caches[name] = cache

    def unregister(self, name: str) -> None:
        with self._registry_lock:
            self._caches.pop(name, None)

    def get_all_stats(self) -> dict[str, dict[str, Any]]:
        with self._registry_lock:
            caches = dict(self._caches)
        return {name: cache.get_stats() for name, cache in caches.items()}

    def get_summary(self) -> dict[str, Any]:
        """
        Aggregate metrics across all registered caches.

        Returns:
            total_caches, total_size, total_hits, total_misses,
            overall_hit_rate and enabled_caches.
        """
        all_stats = self.get_all_stats()
        total_hits = sum(stats["hits"] for stats in all_stats.values())
        total_misses = sum(stats["misses"] for stats in all_stats.values())
        total_requests = total_hits + total_misses
        overall_hit_rate = (total_hits / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "total_caches": len(all_stats),
            "total_size": sum(stats["size"] for stats in all_stats.values()),
            "total_hits": total_hits,
            "total_misses": total_misses,
            "overall_hit_rate": round(overall_hit_rate, 2),
            "enabled_caches": sum(1 for stats in all_stats.values() if stats["enabled"]),
        }
