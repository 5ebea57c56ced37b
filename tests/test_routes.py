from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from snippets.api.routes import build_snippets_router
from snippets.errors import StorageError
from snippets.infra.cache import InMemoryCache
from snippets.keys import derive_key
from snippets.main import build_app
from snippets.service import build_snippet_service
from snippets.storage.models import MAX_CONTENT_BYTES
from snippets.storage.models import Snippet
from snippets.storage.store import SnippetFactory


class BrokenStore:
    async def get(self, key: str) -> Snippet | None:
        raise StorageError("database down")

    async def get_or_create(self, key: str, factory: SnippetFactory) -> tuple[Snippet, bool]:
        raise StorageError("database down")


@pytest.fixture
def client() -> TestClient:
    return TestClient(build_app(environ={"SNIPPETS_DEV_MODE": "1"}))


def _broken_client() -> TestClient:
    service = build_snippet_service(store=BrokenStore(), cache=InMemoryCache())
    app = FastAPI()
    app.include_router(build_snippets_router(service=service, dev_mode=False))
    return TestClient(app)


def test_post_then_get_round_trip(client: TestClient) -> None:
    created = client.post("/", content=b"hello world")
    assert created.status_code == 201
    assert created.text == derive_key(b"hello world")
    assert created.headers["access-control-allow-origin"] == "*"

    again = client.post("/", content=b"hello world")
    assert again.status_code == 200
    assert again.text == created.text

    read = client.get(f"/{created.text}")
    assert read.status_code == 200
    assert read.content == b"hello world"
    assert read.headers["content-type"] == "text/plain; charset=utf-8"
    assert read.headers["cache-control"] == "public, max-age=3600"
    assert read.headers["access-control-allow-origin"] == "*"


def test_head_reads_like_get(client: TestClient) -> None:
    key = client.post("/", content=b"hello").text
    response = client.head(f"/{key}")
    assert response.status_code == 200
    assert response.headers["cache-control"] == "public, max-age=3600"


def test_size_limit(client: TestClient) -> None:
    assert client.post("/", content=b"x" * MAX_CONTENT_BYTES).status_code == 201

    too_big = client.post("/", content=b"x" * (MAX_CONTENT_BYTES + 1))
    assert too_big.status_code == 400
    assert too_big.text == "Request body is too big"


def test_unknown_key_is_404(client: TestClient) -> None:
    response = client.get(f"/{derive_key(b'never written')}")
    assert response.status_code == 404
    assert response.text == "404 page not found"


def test_post_to_other_path_is_404(client: TestClient) -> None:
    assert client.post("/somewhere", content=b"hello").status_code == 404


@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE", "OPTIONS"])
def test_unsupported_methods_are_405(client: TestClient, method: str) -> None:
    response = client.request(method, "/")
    assert response.status_code == 405
    assert response.headers["access-control-allow-origin"] == "*"


def test_demo_form_only_in_dev_mode(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"] == "text/html; charset=utf-8"
    assert "submit-button" in response.text

    assert _broken_client().get("/").status_code == 404


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_storage_error_on_read_is_500() -> None:
    response = _broken_client().get(f"/{derive_key(b'hello')}")
    assert response.status_code == 500
    assert response.text.startswith("Could not retrieve data:")


def test_storage_error_on_write_is_400() -> None:
    response = _broken_client().post("/", content=b"hello")
    assert response.status_code == 400
    assert response.text.startswith("Could not store the request body:")


@pytest.mark.parametrize("method", ["TRACE", "PURGE"])
def test_verbs_outside_dispatch_table_are_plain_405_with_cors(client: TestClient, method: str) -> None:
    response = client.request(method, "/")
    assert response.status_code == 405
    assert response.text == "Method Not Allowed"
    assert response.headers["content-type"].startswith("text/plain")
    assert response.headers["access-control-allow-origin"] == "*"


def test_health_carries_cors_header(client: TestClient) -> None:
    assert client.get("/health").headers["access-control-allow-origin"] == "*"
