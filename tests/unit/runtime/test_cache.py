"""Unit tests for RenderCache."""

from __future__ import annotations

import pytest

from pagewright.runtime.cache import RenderCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestEviction:
    def test_oldest_insert_is_evicted(self) -> None:
        cache: RenderCache[str] = RenderCache(max_size=2, ttl_ms=0)
        cache.set("a", "A")
        cache.set("b", "B")
        cache.set("c", "C")
        assert cache.get("a") is None
        assert cache.keys() == ["b", "c"]
        assert cache.stats().evictions == 1

    def test_reads_do_not_refresh_order(self) -> None:
        cache: RenderCache[str] = RenderCache(max_size=2, ttl_ms=0)
        cache.set("a", "A")
        cache.set("b", "B")
        assert cache.get("a") == "A"
        cache.set("c", "C")
        assert "a" not in cache
        assert "b" in cache

    def test_overwrite_keeps_position(self) -> None:
        cache: RenderCache[str] = RenderCache(max_size=2, ttl_ms=0)
        cache.set("a", "A")
        cache.set("b", "B")
        cache.set("a", "A2")
        cache.set("c", "C")
        assert cache.keys() == ["b", "c"]

    def test_max_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            RenderCache(max_size=0)


class TestExpiry:
    def test_entry_expires_after_ttl(self, clock: FakeClock) -> None:
        cache: RenderCache[str] = RenderCache(max_size=5, ttl_ms=1000, clock=clock)
        cache.set("a", "A")
        clock.now += 0.5
        assert cache.get("a") == "A"
        clock.now += 0.5
        assert cache.get("a") is None
        assert cache.stats().expirations == 1

    def test_zero_ttl_never_expires(self, clock: FakeClock) -> None:
        cache: RenderCache[str] = RenderCache(max_size=5, ttl_ms=0, clock=clock)
        cache.set("a", "A")
        clock.now += 10_000
        assert cache.get("a") == "A"

    def test_expired_entries_are_purged_on_insert(self, clock: FakeClock) -> None:
        cache: RenderCache[str] = RenderCache(max_size=2, ttl_ms=1000, clock=clock)
        cache.set("a", "A")
        cache.set("b", "B")
        clock.now += 2
        cache.set("c", "C")
        stats = cache.stats()
        assert stats.evictions == 0
        assert stats.expirations == 2
        assert stats.keys == ("c",)


class TestStats:
    def test_counters(self) -> None:
        cache: RenderCache[int] = RenderCache(max_size=3, ttl_ms=0)
        cache.set("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("missing")
        stats = cache.stats()
        assert (stats.hits, stats.misses, stats.size) == (2, 1, 1)
        assert stats.hit_rate == pytest.approx(2 / 3)
        assert stats.to_dict()["keys"] == ["a"]

    def test_clear_and_delete(self) -> None:
        cache: RenderCache[int] = RenderCache(max_size=3, ttl_ms=0)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.delete("a")
        assert not cache.delete("a")
        assert cache.clear() == 1
        assert len(cache) == 0
