from __future__ import annotations

import logging

import psycopg
from psycopg import errors as pg_errors

from snippets.errors import StorageError
from snippets.errors import TransactionConflictError
from snippets.storage.models import Snippet
from snippets.storage.store import SnippetFactory
from snippets.storage.transaction import RetryPolicy
from snippets.storage.transaction import run_in_transaction

logger = logging.getLogger(__name__)

_SELECT_SNIPPET = "SELECT key, content, created_at FROM snippets WHERE key = %s"
_INSERT_SNIPPET = "INSERT INTO snippets (key, content, created_at) VALUES (%s, %s, %s)"

_CONFLICT_ERRORS = (pg_errors.SerializationFailure, pg_errors.UniqueViolation)


class PostgresSnippetStore:
    """Postgres 持久化存储。get_or_create 在 SERIALIZABLE 事务里执行，冲突时重试。"""

    def __init__(self, dsn: str, retry_policy: RetryPolicy | None = None) -> None:
        self._dsn = dsn
        self._retry_policy = retry_policy or RetryPolicy()

    async def connect(self) -> psycopg.AsyncConnection:
        return await psycopg.AsyncConnection.connect(self._dsn)

    async def get(self, key: str) -> Snippet | None:
        try:
            async with await self.connect() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(_SELECT_SNIPPET, (key,))
                    row = await cur.fetchone()
        except psycopg.Error as exc:
            raise StorageError(f"Could not read snippet {key}: {exc}") from exc
        if row is None:
            return None
        return _row_to_snippet(row)

    async def get_or_create(self, key: str, factory: SnippetFactory) -> tuple[Snippet, bool]:
        async def attempt() -> tuple[Snippet, bool]:
            async with await self.connect() as conn:
                await conn.set_isolation_level(psycopg.IsolationLevel.SERIALIZABLE)
                try:
                    async with conn.transaction():
                        async with conn.cursor() as cur:
                            await cur.execute(_SELECT_SNIPPET, (key,))
                            row = await cur.fetchone()
                            if row is not None:
                                return _row_to_snippet(row), False
                            record = factory()
                            await cur.execute(_INSERT_SNIPPET, (record.key, record.content, record.created_at))
                except _CONFLICT_ERRORS as exc:
                    raise TransactionConflictError(key) from exc
            logger.info(f"Created snippet {key} ({len(record.content)} bytes)")
            return record, True

        try:
            return await run_in_transaction(attempt, self._retry_policy)
        except psycopg.Error as exc:
            raise StorageError(f"Could not store snippet {key}: {exc}") from exc


async def ensure_schema(store: PostgresSnippetStore) -> None:
    async with await store.connect() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                CREATE TABLE IF NOT EXISTS snippets (
                    key TEXT PRIMARY KEY,
                    content BYTEA NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL
                )
                """
            )
        await conn.commit()


def _row_to_snippet(row: tuple[object, ...]) -> Snippet:
    return Snippet.model_validate({"key": row[0], "content": bytes(row[1]), "created_at": row[2]})
