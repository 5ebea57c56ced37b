"""
FastAPI 服务入口。

这里做三件事：
- 加载配置（严格校验环境变量）
- 组装外部依赖（Postgres 存储 / Redis 缓存，开发模式下为内存实现）
- 装配路由（health + snippets）

启动：
  uvicorn snippets.main:build_app --factory

注意：
- 业务流程不写在这里（由 `service.py` 负责）
- Redis client 会被复用，并在 shutdown 时关闭
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager

from fastapi import FastAPI

from snippets.api.routes import build_snippets_router
from snippets.api.routes import install_gateway_fallbacks
from snippets.config import SnippetsConfig
from snippets.config import load_config_from_env
from snippets.infra.cache import Cache
from snippets.infra.cache import InMemoryCache
from snippets.infra.cache import NullCache
from snippets.infra.redis_cache import RedisCache
from snippets.service import build_snippet_service
from snippets.storage.memory import InMemorySnippetStore
from snippets.storage.pg import PostgresSnippetStore
from snippets.storage.pg import ensure_schema
from snippets.storage.store import DurableStore
from snippets.storage.transaction import RetryPolicy

logger = logging.getLogger(__name__)


def build_store(config: SnippetsConfig) -> DurableStore:
    retry_policy = RetryPolicy(max_attempts=config.store.max_attempts, base_delay=config.store.retry_base_delay)
    if config.store.database_url is None:
        logger.warning("No database configured, snippets are kept in memory")
        return InMemorySnippetStore(retry_policy=retry_policy)
    return PostgresSnippetStore(dsn=config.store.database_url, retry_policy=retry_policy)


def build_cache(config: SnippetsConfig) -> Cache:
    if config.cache.redis_url is not None:
        return RedisCache.from_url(config.cache.redis_url, ttl_seconds=config.cache.ttl_seconds)
    if config.dev_mode:
        return InMemoryCache()
    return NullCache()


def build_app(environ: Mapping[str, str] | None = None) -> FastAPI:
    """创建并返回 FastAPI app（便于测试/复用）。"""

    # 1) 配置：缺失会直接抛错，启动失败（这是期望行为）
    config = load_config_from_env(os.environ if environ is None else environ)
    logging.basicConfig(level=config.log_level)

    # 2) 外部依赖：存储 + 缓存
    store = build_store(config)
    cache = build_cache(config)
    service = build_snippet_service(store=store, cache=cache, timeout_seconds=config.operation_timeout_seconds)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if isinstance(store, PostgresSnippetStore):
            await ensure_schema(store)
        yield
        if isinstance(cache, RedisCache):
            await cache.close()

    app = FastAPI(title="Snippets", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """健康检查：用于 k8s / LB 探活。"""
        return {"status": "ok"}

    # catch-all 路由必须最后注册
    app.include_router(build_snippets_router(service=service, dev_mode=config.dev_mode))
    install_gateway_fallbacks(app)
    return app
