"""
tests/test_cache.py -- MemoryCache expiry, RedisCache degradation and CacheAside reads.

A controllable clock drives MemoryCache so TTL behaviour is tested without
sleeping. RedisCache is exercised with a MagicMock client.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import redis

from cache.aside import CacheAside
from cache.store import MemoryCache, RedisCache, build_cache
from catalog.models import Category, Funko


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMemoryCache:
    def test_set_then_get_until_ttl_passes(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("k", b"v", ttl=300)

        clock.now += 299
        assert cache.get("k") == b"v"
        clock.now += 2
        assert cache.get("k") is None

    def test_remove(self):
        cache = MemoryCache()
        cache.set("k", b"v", ttl=60)
        cache.remove("k")
        cache.remove("never-set")
        assert cache.get("k") is None

    def test_purge_expired_drops_only_stale_entries(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("short", b"1", ttl=10)
        cache.set("long", b"2", ttl=1000)

        clock.now += 11
        assert cache.purge_expired() == 1
        assert len(cache) == 1
        assert cache.get("long") == b"2"


class TestRedisCache:
    def test_delegates_to_client(self):
        client = MagicMock()
        client.get.return_value = b"cached"
        cache = RedisCache("redis://localhost:6379/0", client=client)

        assert cache.get("funko:1") == b"cached"
        cache.set("funko:1", b"v", ttl=300)
        cache.remove("funko:1")

        client.set.assert_called_once_with("funko:1", b"v", ex=300)
        client.delete.assert_called_once_with("funko:1")

    def test_connection_errors_become_misses(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        client.set.side_effect = redis.ConnectionError("down")
        client.delete.side_effect = redis.ConnectionError("down")
        cache = RedisCache("redis://localhost:6379/0", client=client)

        assert cache.get("k") is None
        cache.set("k", b"v", ttl=1)
        cache.remove("k")


def test_build_cache_defaults_to_memory(settings):
    assert isinstance(build_cache(settings), MemoryCache)


class TestCacheAside:
    def test_miss_loads_once_then_hits(self):
        cache = MagicMock(wraps=MemoryCache())
        loader = MagicMock(return_value=Category(name="Marvel", id="c1"))
        aside = CacheAside(cache, "category", Category, ttl=300)

        first = aside.get("c1", loader)
        second = aside.get("c1", loader)

        assert first == second == Category(name="Marvel", id="c1")
        assert loader.call_count == 1
        assert cache.set.call_count == 1
        assert cache.set.call_args.args[0] == "category:c1"
        assert cache.set.call_args.args[2] == 300

    def test_missing_entity_is_not_cached(self):
        cache = MagicMock(wraps=MemoryCache())
        aside = CacheAside(cache, "funko", Funko, ttl=300)

        assert aside.get(99, lambda _id: None) is None
        assert cache.set.call_count == 0

    def test_invalidate_forces_reload(self):
        loader = MagicMock(side_effect=[Funko(name="Iron Man", price=10.0, id=1), Funko(name="Iron Man", price=12.5, id=1)])
        aside = CacheAside(MemoryCache(), "funko", Funko, ttl=300)

        assert aside.get(1, loader).price == 10.0
        aside.invalidate(1)
        assert aside.get(1, loader).price == 12.5
        assert loader.call_count == 2

    def test_unreadable_entry_is_treated_as_miss(self):
        cache = MemoryCache()
        cache.set("funko:1", b"{not json", ttl=300)
        aside = CacheAside(cache, "funko", Funko, ttl=300)

        funko = aside.get(1, lambda _id: Funko(name="Thor", price=9.0, id=1))

        assert funko.name == "Thor"
        assert aside.get(1, lambda _id: None).name == "Thor"
