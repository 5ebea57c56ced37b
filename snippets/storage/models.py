from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

MAX_CONTENT_BYTES = 10 * 1024


class Snippet(BaseModel):
    """一条持久化记录。创建后不可变；JSON 序列化时 content 用 base64。"""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    key: str
    content: bytes
    created_at: datetime
