"""
乐观事务执行器。

模型：
- `attempt()` 在一个单 key 事务里完成“读 -> 判断 -> 写”
- 后端检测到并发冲突时，`attempt` 抛 `TransactionConflictError`
- 执行器按指数退避（带抖动）重试，次数有上限；用尽后抛 `StorageError`

注意：
- 非冲突类异常**不重试**，原样向上抛
- 退避用 `anyio.sleep`，请求被取消时会立刻中断
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import anyio

from snippets.errors import StorageError
from snippets.errors import TransactionConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """重试策略（默认 3 次，与常见 datastore 事务默认值一致）。"""

    max_attempts: int = 3
    base_delay: float = 0.05
    max_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be > 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")

    def backoff(self, attempt: int) -> float:
        """第 `attempt` 次失败后的等待时间（秒）。"""
        delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        return delay * random.uniform(0.5, 1.0)


async def run_in_transaction(attempt: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
    last_conflict: TransactionConflictError | None = None
    for n in range(1, policy.max_attempts + 1):
        try:
            return await attempt()
        except TransactionConflictError as exc:
            last_conflict = exc
            logger.debug(f"Transaction conflict on {exc.key} (attempt {n}/{policy.max_attempts})")
            if n < policy.max_attempts:
                await anyio.sleep(policy.backoff(n))

    logger.warning(f"Transaction gave up after {policy.max_attempts} attempts: {last_conflict}")
    raise StorageError(f"Transaction could not commit after {policy.max_attempts} attempts") from last_conflict
