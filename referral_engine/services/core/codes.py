"""Генерация и нормализация реферальных кодов."""

from __future__ import annotations

import re
import secrets

DEFAULT_PREFIX = "DS"
DEFAULT_RANDOM_BYTES = 4
CUSTOM_CODE_MAX_LENGTH = 12

_NOT_ALNUM = re.compile(r"[^A-Z0-9]")


def generate_code(prefix: str = DEFAULT_PREFIX, random_bytes: int = DEFAULT_RANDOM_BYTES) -> str:
    """Префикс + криптостойкий hex-суффикс в верхнем регистре (DS1A2B3C4D)."""

    return f"{prefix}{secrets.token_hex(random_bytes).upper()}"


def normalize_code(code: str) -> str:
    """Верхний регистр и только [A-Z0-9]; длина не ограничивается."""

    return _NOT_ALNUM.sub("", code.upper())


def sanitize_code(custom_code: str, max_length: int = CUSTOM_CODE_MAX_LENGTH) -> str:
    """Как ``normalize_code``, но не длиннее ``max_length``."""

    return normalize_code(custom_code)[:max_length]


__all__ = ["CUSTOM_CODE_MAX_LENGTH", "generate_code", "normalize_code", "sanitize_code"]
