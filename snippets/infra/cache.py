from __future__ import annotations

"""
缓存抽象。

当前提供：
- `Cache` Protocol：定义 get/set 接口
- `InMemoryCache`：便于本地运行/单元测试
- `NullCache`：什么都不存（纯透传），用于没有配置缓存后端的部署

约定：
- 未命中返回 None（正常结果，不是错误）
- 后端不可达抛 `CacheUnavailableError`，由调用方决定降级还是上报
- 缓存只是性能优化，永远不是数据源
"""

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Protocol

from snippets.storage.models import Snippet


class Cache(Protocol):
    """缓存接口协议（用于依赖倒置，方便替换 Redis/Memory）。"""

    async def get(self, key: str) -> Snippet | None: ...

    async def set(self, key: str, snippet: Snippet) -> None: ...


@dataclass
class InMemoryCache:
    """内存缓存：只用于开发/测试，不提供过期机制。"""

    store: MutableMapping[str, Snippet] = field(default_factory=dict)

    async def get(self, key: str) -> Snippet | None:
        return self.store.get(key)

    async def set(self, key: str, snippet: Snippet) -> None:
        self.store[key] = snippet


class NullCache:
    async def get(self, key: str) -> Snippet | None:
        return None

    async def set(self, key: str, snippet: Snippet) -> None:
        return None
