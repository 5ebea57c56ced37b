"""
Redis 缓存实现（生产用）。

- value：Snippet 的 JSON（content 为 base64）
- key：`snippet:<sha256>`
- TTL：可配置；不配置时完全交给 Redis 自己的淘汰策略
"""

from __future__ import annotations

import logging

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from snippets.errors import CacheUnavailableError
from snippets.storage.models import Snippet

logger = logging.getLogger(__name__)


class RedisCache:
    def __init__(self, client: redis.Redis, ttl_seconds: int | None = None, key_prefix: str = "snippet") -> None:
        """
        - client: 复用的 `redis.asyncio.Redis`（连接池由它管理）
        - ttl_seconds: 写入时设置的过期时间；None 表示不设置
        - key_prefix: Redis key 前缀，避免与其它业务冲突
        """
        self._client = client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int | None = None) -> RedisCache:
        client = redis.Redis.from_url(url, socket_connect_timeout=5, socket_timeout=5)
        return cls(client=client, ttl_seconds=ttl_seconds)

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}"

    async def get(self, key: str) -> Snippet | None:
        try:
            raw = await self._client.get(self._key(key))
        except RedisError as exc:
            raise CacheUnavailableError(f"Redis get failed: {exc}") from exc
        if raw is None:
            return None
        try:
            return Snippet.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(f"Ignoring undecodable cache entry {self._key(key)}")
            raise CacheUnavailableError(f"Undecodable cache entry for {key}") from exc

    async def set(self, key: str, snippet: Snippet) -> None:
        try:
            await self._client.set(self._key(key), snippet.model_dump_json(), ex=self._ttl_seconds)
        except RedisError as exc:
            raise CacheUnavailableError(f"Redis set failed: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
