from __future__ import annotations

import hashlib
import re

KEY_LENGTH = 64

_KEY_PATTERN = re.compile(r"[0-9a-f]{64}")


def derive_key(content: bytes) -> str:
    """内容 -> key：SHA-256 的小写十六进制（只含 [0-9a-f]，可以直接放进子域名）。"""
    return hashlib.sha256(content).hexdigest()


def is_valid_key(key: str) -> bool:
    return _KEY_PATTERN.fullmatch(key) is not None
