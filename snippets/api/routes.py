"""
HTTP 接入层（Gateway）。

职责：
- 把 HTTP 方法映射到 SnippetService 调用（显式的 method -> handler 分发表，启动时构建）
- 把业务错误翻译成状态码 + 简短文本
- 所有响应都带 `Access-Control-Allow-Origin: *`

路由：
- GET/HEAD /<key>：读取
- GET /：开发模式下返回测试表单
- POST /：写入，返回 key（新建 201，已存在 200）
- 其它方法：405（分发表之外的任意动词由 `install_gateway_fallbacks` 兜底）
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter
from fastapi import FastAPI
from fastapi import Request
from fastapi import Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect

from snippets.api.demo_form import DEMO_FORM
from snippets.errors import ContentTooLargeError
from snippets.errors import StorageError
from snippets.service import SnippetService
from snippets.storage.models import MAX_CONTENT_BYTES

logger = logging.getLogger(__name__)

Handler = Callable[[Request, str], Awaitable[Response]]

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# 内容不可变，但可能因安全原因被删除：客户端缓存不要太久（1 小时）
READ_CACHE_CONTROL = "public, max-age=3600"


def _not_found() -> Response:
    return PlainTextResponse("404 page not found", status_code=404)


async def _read_body(request: Request, limit: int) -> bytes:
    """流式读取请求体，超过 limit 立即停止（不把超大请求读进内存）。"""
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise ContentTooLargeError(size=len(body), limit=limit)
    return bytes(body)


def build_snippets_router(service: SnippetService, dev_mode: bool) -> APIRouter:
    """创建 snippets 路由。"""
    router = APIRouter()

    async def read_snippet(request: Request, path: str) -> Response:
        if not path:
            if dev_mode:
                return HTMLResponse(DEMO_FORM)
            return _not_found()

        try:
            snippet = await service.get(path)
        except StorageError as exc:
            logger.error(f"Read of {path} failed: {exc}")
            return PlainTextResponse(f"Could not retrieve data: {exc}", status_code=500)
        if snippet is None:
            return _not_found()

        return Response(
            content=snippet.content,
            headers={"Content-Type": "text/plain; charset=utf-8", "Cache-Control": READ_CACHE_CONTROL},
        )

    async def write_snippet(request: Request, path: str) -> Response:
        if path:
            return _not_found()

        try:
            content = await _read_body(request, limit=MAX_CONTENT_BYTES)
        except ContentTooLargeError:
            return PlainTextResponse("Request body is too big", status_code=400)
        except ClientDisconnect as exc:
            return PlainTextResponse(f"Could not read the request body: {exc}", status_code=400)

        try:
            result = await service.put(content)
        except ContentTooLargeError:
            return PlainTextResponse("Request body is too big", status_code=400)
        except StorageError as exc:
            logger.error(f"Write failed: {exc}")
            return PlainTextResponse(f"Could not store the request body: {exc}", status_code=400)

        return PlainTextResponse(result.key, status_code=201 if result.created else 200)

    handlers: dict[str, Handler] = {
        "GET": read_snippet,
        "HEAD": read_snippet,
        "POST": write_snippet,
    }

    @router.api_route("/{path:path}", methods=ALL_METHODS)
    async def dispatch(request: Request, path: str) -> Response:
        handler = handlers.get(request.method)
        if handler is None:
            response: Response = PlainTextResponse("Method Not Allowed", status_code=405)
        else:
            response = await handler(request, path)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    return router


def install_gateway_fallbacks(app: FastAPI) -> None:
    """
    app 级兜底：
    - 路由没登记的动词（TRACE/CONNECT/自定义）由路由层抛 405，这里统一成纯文本
    - CORS 头在中间件里加，覆盖包括框架生成的错误在内的所有响应
    """

    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 405:
            return PlainTextResponse("Method Not Allowed", status_code=405)
        return await http_exception_handler(request, exc)

    @app.middleware("http")
    async def allow_any_origin(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response
