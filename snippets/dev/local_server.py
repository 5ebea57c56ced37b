"""
本地开发 server（内存存储 + 内存缓存 + 测试表单）。

用途：
- 不需要 Postgres/Redis，直接在浏览器打开 http://127.0.0.1:8080/ 提交内容

启动：
  python -m snippets.dev.local_server
"""

from __future__ import annotations

import uvicorn

from snippets.main import build_app


def main() -> None:
    app = build_app(environ={"SNIPPETS_DEV_MODE": "1", "SNIPPETS_LOG_LEVEL": "DEBUG"})
    uvicorn.run(app, host="127.0.0.1", port=8080)


if __name__ == "__main__":
    main()
