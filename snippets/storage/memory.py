"""
内存版 DurableStore：只用于开发/测试。

和 Postgres 实现保持相同的并发语义：
- 事务内先读快照，再让出一次调度（模拟 I/O）
- 提交时发现 key 已被别人写入 -> `TransactionConflictError`，交给执行器重试
"""

from __future__ import annotations

import logging

import anyio

from snippets.errors import TransactionConflictError
from snippets.storage.models import Snippet
from snippets.storage.store import SnippetFactory
from snippets.storage.transaction import RetryPolicy
from snippets.storage.transaction import run_in_transaction

logger = logging.getLogger(__name__)


class InMemorySnippetStore:
    def __init__(self, retry_policy: RetryPolicy | None = None) -> None:
        self._records: dict[str, Snippet] = {}
        self._retry_policy = retry_policy or RetryPolicy()
        self.create_count = 0

    async def get(self, key: str) -> Snippet | None:
        await anyio.sleep(0)
        return self._records.get(key)

    async def get_or_create(self, key: str, factory: SnippetFactory) -> tuple[Snippet, bool]:
        async def attempt() -> tuple[Snippet, bool]:
            existing = self._records.get(key)
            if existing is not None:
                return existing, False
            record = factory()
            await anyio.sleep(0)
            if key in self._records:
                raise TransactionConflictError(key)
            self._records[key] = record
            self.create_count += 1
            logger.info(f"Created snippet {key} ({len(record.content)} bytes) in memory")
            return record, True

        return await run_in_transaction(attempt, self._retry_policy)

    def delete(self, key: str) -> None:
        """管理员删除（不经过服务层）。"""
        self._records.pop(key, None)

    def __len__(self) -> int:
        return len(self._records)
