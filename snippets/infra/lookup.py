from __future__ import annotations

"""
两级查找（cache-aside）。

为什么单独抽出来：
- “先查 A，查不到再查 B，然后回填 A”是一个显式组合子，而不是散落在业务里的 if/else
- 缓存层的“不可用”在这里被降级成未命中；回填失败只记日志，不影响读请求
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from snippets.errors import CacheUnavailableError
from snippets.infra.cache import Cache
from snippets.storage.models import Snippet
from snippets.storage.store import DurableStore

logger = logging.getLogger(__name__)

Backfill = Callable[[str, Snippet], Awaitable[None]]


class Lookup(Protocol):
    async def lookup(self, key: str) -> Snippet | None: ...


@dataclass(frozen=True)
class CacheLookup:
    """缓存读：不可用视为未命中。"""

    cache: Cache

    async def lookup(self, key: str) -> Snippet | None:
        try:
            return await self.cache.get(key)
        except CacheUnavailableError as exc:
            logger.warning(f"Cache unavailable on read, falling back to store: {exc}")
            return None


@dataclass(frozen=True)
class StoreLookup:
    """持久化存储读：后端错误（StorageError）原样向上抛。"""

    store: DurableStore

    async def lookup(self, key: str) -> Snippet | None:
        return await self.store.get(key)


@dataclass(frozen=True)
class ReadThroughLookup:
    primary: Lookup
    secondary: Lookup
    backfill: Backfill

    async def lookup(self, key: str) -> Snippet | None:
        found = await self.primary.lookup(key)
        if found is not None:
            return found

        found = await self.secondary.lookup(key)
        if found is None:
            return None

        try:
            await self.backfill(key, found)
        except CacheUnavailableError as exc:
            logger.warning(f"Could not warm cache for {key}: {exc}")
        return found


def build_cache_aside_lookup(cache: Cache, store: DurableStore) -> ReadThroughLookup:
    return ReadThroughLookup(primary=CacheLookup(cache=cache), secondary=StoreLookup(store=store), backfill=cache.set)
