"""
cache/store.py -- Byte-oriented cache backends with per-entry TTL.

CacheStore is the capability the cache-aside read path depends on:
    get(key) -> bytes | None
    set(key, value, ttl)
    remove(key)

Two interchangeable backends:
    MemoryCache -- in-process dict, lazily expired on read. Default.
    RedisCache  -- networked, selected when REDIS_URL is set. Best-effort:
                   connection errors are logged and turn into misses / no-ops
                   so the catalog keeps serving straight from the store.

Usage:
    cache = build_cache(settings)
    cache.set("funko:1", b'{"id": 1}', ttl=300)
    cache.get("funko:1")        # b'{"id": 1}' until the TTL passes
    cache.remove("funko:1")
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod

import redis

from core.config import Settings


class CacheStore(ABC):
    @abstractmethod
    def get(self, key: str) -> bytes | None: ...

    @abstractmethod
    def set(self, key: str, value: bytes, ttl: int) -> None: ...

    @abstractmethod
    def remove(self, key: str) -> None: ...

    def close(self) -> None:
        """Release backend resources. No-op by default."""


class MemoryCache(CacheStore):
    """Thread-safe in-process cache.

    Expired entries are dropped when read, and purge_expired() can be called
    periodically to trim entries nobody reads again.
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._entries: dict[str, tuple[bytes, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: bytes, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Delete all expired entries. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache(CacheStore):
    def __init__(self, url: str, logger: logging.Logger | None = None, client: redis.Redis | None = None) -> None:
        self._client = client if client is not None else redis.from_url(url)
        self._log = logger or logging.getLogger("funkostore.cache.redis")

    def get(self, key: str) -> bytes | None:
        try:
            return self._client.get(key)
        except redis.RedisError as exc:
            self._log.warning("Redis get failed for %s, treating as miss: %s", key, exc)
            return None

    def set(self, key: str, value: bytes, ttl: int) -> None:
        try:
            self._client.set(key, value, ex=ttl)
        except redis.RedisError as exc:
            self._log.warning("Redis set failed for %s: %s", key, exc)

    def remove(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            self._log.warning("Redis delete failed for %s: %s", key, exc)

    def close(self) -> None:
        self._client.close()


def build_cache(settings: Settings, logger: logging.Logger | None = None) -> CacheStore:
    """Return RedisCache when REDIS_URL is configured, else MemoryCache."""
    log = logger or logging.getLogger("funkostore.cache")
    if settings.redis_url:
        log.info("Using Redis cache at %s", settings.redis_url)
        return RedisCache(settings.redis_url, logger=log)
    log.info("Using in-process memory cache")
    return MemoryCache()
