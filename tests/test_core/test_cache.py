"""Tests for the TTL cache."""

import pytest

from baseline_navigator.core.cache import TTLCache, create_cache


class TestTTLCache:
    def test_set_and_get(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        assert cache.get("a") == 1

    def test_missing_key(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        assert cache.get("nope") is None

    def test_entry_served_until_expiry(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        clock.advance(9.9)
        assert cache.get("a") == 1

    def test_entry_expires_at_ttl(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        clock.advance(10)
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_per_entry_ttl_override(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("short", 1, ttl=1)
        cache.set("long", 2)
        clock.advance(2)
        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_overwrite_resets_expiry(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        clock.advance(8)
        cache.set("a", 2)
        clock.advance(8)
        assert cache.get("a") == 2

    def test_lru_eviction(self, clock):
        cache = TTLCache(ttl=10, max_size=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")  # b is now least recently used
        cache.set("c", 3)

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache

    def test_contains_ignores_expired(self, clock):
        cache = TTLCache(ttl=5, clock=clock)
        cache.set("a", 1)
        clock.advance(5)
        assert "a" not in cache

    def test_delete(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        assert cache.delete("a") is True
        assert cache.delete("a") is False

    def test_clear(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_cleanup_expired(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("old", 1, ttl=1)
        cache.set("new", 2)
        clock.advance(5)

        assert cache.cleanup_expired() == 1
        assert len(cache) == 1

    def test_stats(self, clock):
        cache = TTLCache(ttl=10, clock=clock, name="analysis")
        cache.set("a", 1)
        cache.get("a")
        cache.get("b")

        stats = cache.get_stats()
        assert stats["name"] == "analysis"
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["size"] == 1
        assert stats["hit_ratio"] == 0.5

    @pytest.mark.parametrize("kwargs", [{"ttl": 0}, {"ttl": -1}, {"max_size": 0}])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            TTLCache(**kwargs)


class TestCreateCache:
    def test_defaults(self):
        cache = create_cache()
        assert cache.ttl == 300.0
        assert cache.max_size == 256

    def test_from_config(self, clock):
        cache = create_cache({"ttl": 5, "max_size": 3, "name": "recs"}, clock=clock)
        assert cache.get_stats()["ttl"] == 5
        assert cache.max_size == 3
        assert cache.name == "recs"
