"""
SnippetService（核心流程编排）。

Put:
- 校验大小（任何 I/O 之前）
- key = sha256(content)
- DurableStore.get_or_create（唯一性完全交给存储的事务原语）
- 新建时写缓存；写缓存失败**上报**为 StorageError

Get:
- 两级查找：缓存 -> 存储 -> 回填缓存（回填失败吞掉）

注意：
- 服务本身无共享可变状态，不需要加锁
- 每次调用都有截止时间（`anyio.fail_after`），超时会取消进行中的 I/O
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import anyio

from snippets.errors import CacheUnavailableError
from snippets.errors import ContentTooLargeError
from snippets.errors import StorageError
from snippets.infra.cache import Cache
from snippets.infra.lookup import Lookup
from snippets.infra.lookup import build_cache_aside_lookup
from snippets.keys import derive_key
from snippets.keys import is_valid_key
from snippets.storage.models import MAX_CONTENT_BYTES
from snippets.storage.models import Snippet
from snippets.storage.store import DurableStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PutResult:
    key: str
    created: bool


@dataclass(frozen=True)
class SnippetService:
    """运行时依赖集合：存储、缓存，以及组合好的两级查找。"""

    store: DurableStore
    cache: Cache
    lookup: Lookup
    timeout_seconds: float | None = None

    async def put(self, content: bytes) -> PutResult:
        if len(content) > MAX_CONTENT_BYTES:
            raise ContentTooLargeError(size=len(content), limit=MAX_CONTENT_BYTES)

        key = derive_key(content)

        def new_snippet() -> Snippet:
            return Snippet(key=key, content=content, created_at=datetime.now(timezone.utc))

        try:
            with anyio.fail_after(self.timeout_seconds):
                record, created = await self.store.get_or_create(key, new_snippet)
                if created:
                    await self.cache.set(key, record)
        except CacheUnavailableError as exc:
            raise StorageError(f"Could not cache snippet {key}: {exc}") from exc
        except TimeoutError as exc:
            raise StorageError(f"Put of {key} timed out after {self.timeout_seconds}s") from exc
        return PutResult(key=key, created=created)

    async def get(self, key: str) -> Snippet | None:
        """返回记录；key 不存在（或格式不可能存在）时返回 None。"""
        if not is_valid_key(key):
            return None
        try:
            with anyio.fail_after(self.timeout_seconds):
                return await self.lookup.lookup(key)
        except TimeoutError as exc:
            raise StorageError(f"Get of {key} timed out after {self.timeout_seconds}s") from exc


def build_snippet_service(store: DurableStore, cache: Cache, timeout_seconds: float | None = None) -> SnippetService:
    """创建 service（缓存 -> 存储 -> 回填 的两级查找在这里装配）。"""
    return SnippetService(
        store=store,
        cache=cache,
        lookup=build_cache_aside_lookup(cache=cache, store=store),
        timeout_seconds=timeout_seconds,
    )
