"""
错误类型（全部继承 `SnippetsError`）。

约定：
- 校验错误在任何 I/O 之前抛出
- 后端错误统一包装为 `StorageError`，并保留原始异常（`raise ... from exc`）
- `CacheUnavailableError` / `TransactionConflictError` 只在内部流转，不直接暴露给调用方
"""

from __future__ import annotations


class SnippetsError(Exception):
    """所有业务错误的基类。"""


class InvalidContentError(SnippetsError):
    """提交的内容不合法。"""


class ContentTooLargeError(InvalidContentError):
    """内容超过大小上限（不重试，属于客户端错误）。"""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Content is {size} bytes, limit is {limit}")
        self.size = size
        self.limit = limit


class StorageError(SnippetsError):
    """持久化存储或缓存写入失败。"""


class CacheUnavailableError(SnippetsError):
    """缓存后端不可用：读路径降级为直接查存储。"""


class TransactionConflictError(SnippetsError):
    """乐观事务冲突：由事务执行器重试。"""

    def __init__(self, key: str) -> None:
        super().__init__(f"Transaction conflict on key {key}")
        self.key = key
