"""Bounded in-memory cache with per-entry TTL.

Entries expire lazily on read and are also dropped by :meth:`InMemoryCache.cleanup`,
which the application runs periodically. When the cache is full, ``set``
evicts the oldest inserted key first. Overwriting a key does not move it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL_MS = 60_000


@dataclass
class CacheEntry(Generic[V]):
    """Cached value with its absolute expiry (epoch ms)."""

    value: V
    expires_at: float


class InMemoryCache(Generic[V]):
    """Thread-safe TTL cache bounded by entry count.

    One instance holds one kind of value; use ``InMemoryCache[Any]`` for a
    general purpose store.

    Attributes:
        max_size: Maximum number of stored entries.
        default_ttl_ms: TTL used when ``set`` is called without one.
        cleanup_interval_ms: How often :meth:`cleanup` should run.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        *,
        default_ttl_ms: int = DEFAULT_TTL_MS,
        cleanup_interval_ms: int = DEFAULT_TTL_MS,
        clock: Clock = system_clock,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        if default_ttl_ms < 0:
            raise ValueError("default_ttl_ms must be >= 0")

        self.max_size = max_size
        self.default_ttl_ms = default_ttl_ms
        self.cleanup_interval_ms = cleanup_interval_ms
        self._clock = clock
        # dict preserves insertion order, which drives eviction
        self._store: dict[str, CacheEntry[V]] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryCache(max_size={self.max_size}, size={len(self._store)}, "
            f"hits={self._hits}, misses={self._misses}, evictions={self._evictions})"
        )

    def set(self, key: str, value: V, ttl_ms: int | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl_ms`` milliseconds.

        When the cache is full the first key in insertion order is evicted
        before the write, even if ``key`` itself is already present.
        """
        ttl = self.default_ttl_ms if ttl_ms is None else ttl_ms

        with self._lock:
            if len(self._store) >= self.max_size:
                self._evict_oldest_locked()

            self._store[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

        logger.debug("cache.set", extra={"cache_key": key, "ttl_ms": ttl})

    def get(self, key: str) -> V | None:
        """Return the value for ``key``, or None when missing or expired."""

        entry = self._lookup(key)
        return None if entry is None else entry.value

    def get_or_set(self, key: str, factory: Callable[[], V], ttl_ms: int | None = None) -> V:
        """Return the cached value, computing and storing it on a miss.

        A stored ``None`` counts as a hit, so the factory runs once per TTL.
        """

        entry = self._lookup(key)
        if entry is not None:
            return entry.value

        value = factory()
        self.set(key, value, ttl_ms)
        return value

    def _lookup(self, key: str) -> CacheEntry[V] | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "not_found"})
                return None

            if self._clock() >= entry.expires_at:
                del self._store[key]
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "expired"})
                return None

            self._hits += 1

        logger.debug("cache.hit", extra={"cache_key": key})
        return entry

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns whether it was present."""

        with self._lock:
            deleted = self._store.pop(key, None) is not None

        if deleted:
            logger.debug("cache.deleted", extra={"cache_key": key})
        return deleted

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
        logger.debug("cache.cleared")

    def cleanup(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed.
        """

        with self._lock:
            now = self._clock()
            expired = [k for k, entry in self._store.items() if now >= entry.expires_at]
            for key in expired:
                del self._store[key]

        if expired:
            logger.debug("cache.cleanup", extra={"removed": len(expired), "size": len(self)})
        return len(expired)

    def stats(self) -> dict[str, Any]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "size": len(self._store),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _evict_oldest_locked(self) -> None:
        oldest = next(iter(self._store), None)
        if oldest is None:
            return
        del self._store[oldest]
        self._evictions += 1
        logger.debug("cache.evicted", extra={"cache_key": oldest})
