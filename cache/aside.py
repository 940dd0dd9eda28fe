"""
cache/aside.py -- Cache-aside read-through for dataclass entities.

Read path (get):
  1. key = "{prefix}:{id}"
  2. cache hit  -> decode JSON into the entity dataclass, return. Store untouched.
  3. cache miss -> loader(id). None means not found; nothing is cached.
  4. store hit  -> encode as JSON bytes, cache with TTL, return.

Write path: callers invoke invalidate(id) after every successful update or
delete. Entries are replaced wholesale, never patched.

Known race, accepted: a read that misses, loads, and writes back can
interleave with a concurrent update + invalidate, leaving the old snapshot
cached until the TTL expires. There is no versioning or write-through.

Snapshots are self-contained, so denormalized fields go stale too: a cached
Funko keeps its old category name after the category is renamed, until the
funko itself is invalidated or its TTL runs out.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from cache.store import CacheStore

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 5 * 60


class CacheAside(Generic[T]):
    def __init__(
        self,
        cache: CacheStore,
        prefix: str,
        entity_type: type[T],
        ttl: int = DEFAULT_TTL_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._cache = cache
        self._prefix = prefix
        self._entity_type = entity_type
        self._ttl = ttl
        self._log = logger or logging.getLogger("funkostore.cache.aside")

    def key(self, entity_id: Any) -> str:
        return f"{self._prefix}:{entity_id}"

    def get(self, entity_id: Any, loader: Callable[[Any], T | None]) -> T | None:
        key = self.key(entity_id)
        cached = self._cache.get(key)
        if cached is not None:
            entity = self._decode(key, cached)
            if entity is not None:
                self._log.debug("Cache hit %s", key)
                return entity

        entity = loader(entity_id)
        if entity is None:
            return None

        self._cache.set(key, self._encode(entity), self._ttl)
        self._log.debug("Cache populated %s", key)
        return entity

    def invalidate(self, entity_id: Any) -> None:
        self._cache.remove(self.key(entity_id))

    def _encode(self, entity: T) -> bytes:
        return json.dumps(dataclasses.asdict(entity)).encode("utf-8")

    def _decode(self, key: str, raw: bytes) -> T | None:
        # A corrupt or schema-stale entry is a miss, not an error.
        try:
            return self._entity_type(**json.loads(raw))
        except (ValueError, TypeError) as exc:
            self._log.warning("Discarding unreadable cache entry %s: %s", key, exc)
            return None
