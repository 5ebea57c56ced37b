from __future__ import annotations

from datetime import datetime, timezone

import pytest

from snippets.errors import CacheUnavailableError
from snippets.infra.cache import InMemoryCache
from snippets.infra.lookup import CacheLookup
from snippets.infra.lookup import ReadThroughLookup
from snippets.infra.lookup import build_cache_aside_lookup
from snippets.keys import derive_key
from snippets.storage.memory import InMemorySnippetStore
from snippets.storage.models import Snippet


class UnreachableCache:
    async def get(self, key: str) -> Snippet | None:
        raise CacheUnavailableError("down")

    async def set(self, key: str, snippet: Snippet) -> None:
        raise CacheUnavailableError("down")


class StaticLookup:
    def __init__(self, records: dict[str, Snippet]) -> None:
        self.records = records
        self.calls: list[str] = []

    async def lookup(self, key: str) -> Snippet | None:
        self.calls.append(key)
        return self.records.get(key)


def _snippet(content: bytes) -> Snippet:
    return Snippet(key=derive_key(content), content=content, created_at=datetime.now(timezone.utc))


@pytest.mark.anyio
async def test_primary_hit_skips_secondary() -> None:
    snippet = _snippet(b"a")
    primary = StaticLookup({snippet.key: snippet})
    secondary = StaticLookup({})
    backfilled: list[str] = []

    async def backfill(key: str, found: Snippet) -> None:
        backfilled.append(key)

    lookup = ReadThroughLookup(primary=primary, secondary=secondary, backfill=backfill)
    assert await lookup.lookup(snippet.key) == snippet
    assert secondary.calls == []
    assert backfilled == []


@pytest.mark.anyio
async def test_secondary_hit_backfills_primary() -> None:
    snippet = _snippet(b"a")
    store = InMemorySnippetStore()
    await store.get_or_create(snippet.key, lambda: snippet)
    cache = InMemoryCache()

    lookup = build_cache_aside_lookup(cache=cache, store=store)

    assert await lookup.lookup(snippet.key) == snippet
    assert cache.store[snippet.key] == snippet


@pytest.mark.anyio
async def test_miss_everywhere_is_none() -> None:
    lookup = build_cache_aside_lookup(cache=InMemoryCache(), store=InMemorySnippetStore())
    assert await lookup.lookup(derive_key(b"missing")) is None


@pytest.mark.anyio
async def test_unreachable_cache_degrades_to_store() -> None:
    snippet = _snippet(b"a")
    store = InMemorySnippetStore()
    await store.get_or_create(snippet.key, lambda: snippet)

    assert await CacheLookup(cache=UnreachableCache()).lookup(snippet.key) is None
    lookup = build_cache_aside_lookup(cache=UnreachableCache(), store=store)
    assert await lookup.lookup(snippet.key) == snippet
