"""
应用配置加载。

设计目标：
- **严格**：缺少必要环境变量就直接报错（避免“看起来跑了其实没配置好”）
- **类型安全**：使用 Pydantic 校验数字/布尔等，减少运行时踩坑
- **可测试**：核心加载函数接收 `environ` 显式输入，便于单元测试

开发模式（SNIPPETS_DEV_MODE）下允许不配置 Postgres/Redis，使用内存实现。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class StoreConfig(BaseModel):
    """持久化存储配置。database_url 为 None 时使用内存存储（仅开发模式）。"""

    database_url: str | None = None
    max_attempts: int = Field(default=3, gt=0)
    retry_base_delay: float = Field(default=0.05, ge=0)


class CacheConfig(BaseModel):
    """缓存配置。redis_url 为 None 时：开发模式用内存缓存，否则纯透传。"""

    redis_url: str | None = None
    ttl_seconds: int | None = Field(default=None, gt=0)


class SnippetsConfig(BaseModel):
    store: StoreConfig
    cache: CacheConfig
    operation_timeout_seconds: float = Field(default=10.0, gt=0)
    dev_mode: bool = False
    log_level: LogLevel = "INFO"


def _optional(environ: Mapping[str, str], key: str) -> str | None:
    value = environ.get(key)
    if value is None or not value.strip():
        return None
    return value.strip()


def load_config_from_env(environ: Mapping[str, str]) -> SnippetsConfig:
    """
    从环境变量加载并校验配置。

    - **输入**：`environ`（例如 `os.environ`）
    - **输出**：`SnippetsConfig`
    - **失败**：缺失/非法则抛 `ValueError`（Pydantic 的 ValidationError 也是 ValueError）
    """
    store: dict[str, object] = {"database_url": _optional(environ, "SNIPPETS_DATABASE_URL")}
    cache: dict[str, object] = {"redis_url": _optional(environ, "SNIPPETS_REDIS_URL")}
    settings: dict[str, object] = {"dev_mode": _optional(environ, "SNIPPETS_DEV_MODE") or "false"}

    # 只有显式设置的值才交给 Pydantic，其余走模型默认值
    for target, field_name, env_key in (
        (store, "max_attempts", "SNIPPETS_STORE_MAX_ATTEMPTS"),
        (store, "retry_base_delay", "SNIPPETS_STORE_RETRY_BASE_DELAY"),
        (cache, "ttl_seconds", "SNIPPETS_CACHE_TTL_SECONDS"),
        (settings, "operation_timeout_seconds", "SNIPPETS_OPERATION_TIMEOUT_SECONDS"),
        (settings, "log_level", "SNIPPETS_LOG_LEVEL"),
    ):
        value = _optional(environ, env_key)
        if value is not None:
            target[field_name] = value.upper() if field_name == "log_level" else value

    config = SnippetsConfig.model_validate({**settings, "store": store, "cache": cache})
    if config.store.database_url is None and not config.dev_mode:
        raise ValueError("Missing required env var: SNIPPETS_DATABASE_URL")
    return config
