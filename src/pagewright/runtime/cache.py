"""Bounded FIFO cache for render results."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pagewright.constants import DEFAULTS

__all__ = ["CacheStats", "RenderCache"]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of cache counters."""

    size: int
    max_size: int
    hits: int
    misses: int
    evictions: int
    expirations: int
    keys: tuple[str, ...]

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "hit_rate": self.hit_rate,
            "keys": list(self.keys),
        }


class RenderCache(Generic[T]):
    """Thread-safe cache with first-in-first-out eviction and optional TTL.

    When full, inserting a new key evicts the entry that was inserted first;
    reads do not change eviction order. Overwriting an existing key keeps its
    position and restarts its TTL. Expired entries are dropped lazily on
    access and on every insert.

    Examples:
        >>> cache = RenderCache[str](max_size=2, ttl_ms=0)
        >>> cache.set("a", "A"); cache.set("b", "B"); cache.set("c", "C")
        >>> cache.get("a") is None
        True
        >>> cache.keys()
        ['b', 'c']
    """

    def __init__(
        self,
        max_size: int = DEFAULTS.CACHE_MAX_SIZE,
        ttl_ms: float = DEFAULTS.CACHE_TTL_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._entries: OrderedDict[str, tuple[T, float | None]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def _expiry(self) -> float | None:
        if self.ttl_ms <= 0:
            return None
        return self._clock() + self.ttl_ms / 1000.0

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    def _purge_locked(self) -> None:
        expired = [key for key, (_, exp) in self._entries.items() if self._expired(exp)]
        for key in expired:
            del self._entries[key]
        self._expirations += len(expired)

    def get(self, key: str) -> T | None:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            value, expires_at = entry
            if self._expired(expires_at):
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None
            self._hits += 1
            return value

    def set(self, key: str, value: T) -> None:
        """Store ``value`` under ``key``, evicting the oldest entry if full."""
        with self._lock:
            self._purge_locked()
            if key in self._entries:
                self._entries[key] = (value, self._expiry())
                return
            while len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
                self._evictions += 1
            self._entries[key] = (value, self._expiry())

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove every entry and return how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def keys(self) -> list[str]:
        """Live keys in insertion order."""
        with self._lock:
            self._purge_locked()
            return list(self._entries)

    def __len__(self) -> int:
        return len(self.keys())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in self.keys()

    def stats(self) -> CacheStats:
        with self._lock:
            self._purge_locked()
            return CacheStats(
                size=len(self._entries),
                max_size=self.max_size,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
                keys=tuple(self._entries),
            )
