"""Unit tests for the bounded in-memory TTL cache."""

import threading

import pytest

from app.utils.memory_cache import InMemoryCache


def test_get_before_ttl_returns_value(clock) -> None:
    cache = InMemoryCache(clock=clock)
    cache.set("k", {"v": 1}, 10)

    clock.advance(9)

    assert cache.get("k") == {"v": 1}


def test_expired_entry_is_absent_and_physically_removed(clock) -> None:
    cache = InMemoryCache(clock=clock)
    cache.set("k", "value", 10)

    clock.advance(10)

    assert cache.get("k") is None
    assert "k" not in cache
    assert cache.delete("k") is False


def test_default_ttl_is_used_when_omitted(clock) -> None:
    cache = InMemoryCache(clock=clock)
    cache.set("k", 1)

    clock.advance(59_999)
    assert cache.get("k") == 1

    clock.advance(1)
    assert cache.get("k") is None


def test_capacity_evicts_oldest_insert() -> None:
    cache = InMemoryCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3
    assert cache.stats()["evictions"] == 1


def test_reads_do_not_refresh_eviction_order() -> None:
    cache = InMemoryCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get("a") == 1

    cache.set("c", 3)

    assert cache.get("a") is None
    assert cache.get("b") == 2


def test_overwrite_when_full_still_evicts_oldest() -> None:
    cache = InMemoryCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)

    # Full: evicts "a" first, then overwrites "b" in place
    cache.set("b", 20)
    assert len(cache) == 1
    assert cache.get("a") is None
    assert cache.get("b") == 20


def test_overwrite_below_capacity_does_not_move_key() -> None:
    cache = InMemoryCache(max_size=3)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)

    cache.set("d", 4)

    # "a" kept its original slot ahead of "b", so it went first
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("d") == 4


def test_eviction_after_delete_uses_remaining_insertion_order() -> None:
    cache = InMemoryCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.delete("a")
    cache.set("c", 3)
    cache.set("d", 4)

    assert cache.get("b") is None
    assert cache.get("c") == 3
    assert cache.get("d") == 4


def test_delete_reports_presence() -> None:
    cache = InMemoryCache()
    cache.set("k", 1)

    assert cache.delete("k") is True
    assert cache.delete("k") is False
    assert cache.delete("missing") is False


def test_clear_is_idempotent() -> None:
    cache = InMemoryCache()
    cache.clear()
    assert len(cache) == 0

    cache.set("a", 1)
    cache.set("b", 2)
    cache.clear()

    assert cache.get("a") is None
    assert cache.delete("b") is False
    assert len(cache) == 0


def test_cleanup_removes_every_expired_entry(clock) -> None:
    cache = InMemoryCache(clock=clock)
    for i in range(5):
        cache.set(f"old-{i}", i, 100)
    cache.set("fresh", "x", 10_000)

    clock.advance(100)

    assert cache.cleanup() == 5
    assert len(cache) == 1
    assert cache.get("fresh") == "x"
    assert cache.cleanup() == 0


def test_hit_and_miss_counters(clock) -> None:
    cache = InMemoryCache(clock=clock)
    cache.get("missing")
    cache.set("k", 1, 10)
    cache.get("k")
    clock.advance(10)
    cache.get("k")

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 2
    assert stats["size"] == 0
    assert stats["max_size"] == 1000


def test_get_or_set_computes_once_until_expiry(clock) -> None:
    cache = InMemoryCache(clock=clock)
    calls = []

    def factory() -> int:
        calls.append(1)
        return len(calls)

    assert cache.get_or_set("k", factory, 50) == 1
    assert cache.get_or_set("k", factory, 50) == 1

    clock.advance(50)
    assert cache.get_or_set("k", factory, 50) == 2
    assert len(calls) == 2


def test_get_or_set_caches_none_results(clock) -> None:
    cache = InMemoryCache(clock=clock)
    calls = []

    def factory() -> None:
        calls.append(1)

    assert cache.get_or_set("k", factory, 50) is None
    assert cache.get_or_set("k", factory, 50) is None
    assert len(calls) == 1

    clock.advance(50)
    cache.get_or_set("k", factory, 50)
    assert len(calls) == 2


def test_invalid_max_size() -> None:
    with pytest.raises(ValueError):
        InMemoryCache(max_size=0)


def test_concurrent_sets_respect_capacity() -> None:
    cache = InMemoryCache(max_size=20)

    def _writer(idx: int) -> None:
        cache.set(f"k-{idx}", idx)

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 20
    assert cache.stats()["evictions"] == 30
