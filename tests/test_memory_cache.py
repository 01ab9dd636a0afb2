"""
Tests for the in-memory TTL + LRU cache.
"""

import pytest

from price_reconciler.protocols import CacheStore
from price_reconciler.repositories import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    """Two-entry cache with a one second TTL."""
    return TTLCache(capacity=2, ttl=1.0, name="test", clock=clock)


def test_satisfies_protocol(cache):
    assert isinstance(cache, CacheStore)


def test_lru_eviction(cache):
    """Third key evicts the least recently used one."""
    cache.set("A", 1)
    cache.set("B", 2)
    cache.set("C", 3)

    assert cache.get("A") is None
    assert cache.get("B") == 2
    assert cache.get("C") == 3


def test_get_refreshes_recency(cache):
    cache.set("A", 1)
    cache.set("B", 2)
    assert cache.get("A") == 1

    cache.set("C", 3)

    assert "A" in cache
    assert "B" not in cache


def test_set_existing_key_does_not_evict(cache):
    cache.set("A", 1)
    cache.set("B", 2)
    cache.set("A", 10)

    assert len(cache) == 2
    assert cache.get("A") == 10
    assert cache.get("B") == 2


def test_expired_entry_is_a_miss(cache, clock):
    cache.set("A", 1)
    clock.now = 0.999
    assert cache.get("A") == 1

    clock.now = 1.0
    assert cache.get("A") is None
    assert len(cache) == 0

    stats = cache.stats()
    assert stats.hits == 1
    assert stats.misses == 1


def test_set_refreshes_expiry(cache, clock):
    cache.set("A", 1)
    clock.now = 0.8
    cache.set("A", 2)
    clock.now = 1.5

    assert cache.get("A") == 2


def test_default_returned_on_miss(cache):
    sentinel = object()
    assert cache.get("missing", sentinel) is sentinel


def test_cached_none_is_distinguishable_from_absent(cache):
    sentinel = object()
    cache.set("A", None)

    assert cache.get("A", sentinel) is None
    assert cache.stats().hits == 1


def test_cleanup_expired_removes_stale_entries(cache, clock):
    cache.set("A", 1)
    clock.now = 0.5
    cache.set("B", 2)
    clock.now = 1.2

    assert cache.cleanup_expired() == 1
    assert "A" not in cache
    assert "B" in cache
    assert cache.stats().misses == 0


def test_clear_resets_counters(cache):
    cache.set("A", 1)
    cache.get("A")
    cache.get("B")

    assert cache.clear() == 1
    stats = cache.stats()
    assert (stats.size, stats.hits, stats.misses) == (0, 0, 0)
    assert stats.hit_rate is None


def test_hit_rate(cache):
    cache.set("A", 1)
    cache.get("A")
    cache.get("A")
    cache.get("B")
    cache.get("C")

    stats = cache.stats()
    assert stats.hit_rate == 0.5
    assert stats.to_dict()["capacity"] == 2


def test_contains_does_not_touch_counters(cache):
    cache.set("A", 1)
    assert "A" in cache
    assert cache.stats().hits == 0


@pytest.mark.parametrize("capacity, ttl", [(0, 1.0), (1, 0), (1, -1.0)])
def test_invalid_configuration(capacity, ttl):
    with pytest.raises(ValueError):
        TTLCache(capacity=capacity, ttl=ttl)
