from __future__ import annotations

"""
DurableStore 接口协议。

核心原语 `get_or_create`：
- 对同一个 key 原子地“查到就返回 (record, False)，否则调用 factory 创建并返回 (record, True)”
- 并发调用者里**最多一个**拿到 created=True，其余都看到赢家的记录
"""

from collections.abc import Callable
from typing import Protocol

from snippets.storage.models import Snippet

SnippetFactory = Callable[[], Snippet]


class DurableStore(Protocol):
    """持久化存储协议（Postgres / 内存实现）。"""

    async def get(self, key: str) -> Snippet | None: ...

    async def get_or_create(self, key: str, factory: SnippetFactory) -> tuple[Snippet, bool]: ...
