"""JWT-утилиты для API реферального кабинета."""

from __future__ import annotations

import time
from typing import Any, Dict

import jwt
from jwt import InvalidTokenError

from config.settings import get_settings


def issue_session_token(user_id: str, ttl_minutes: int | None = None) -> str:
    """Выдаёт короткоживущий JWT, ``sub`` — внешний id пользователя."""

    security = get_settings().security
    ttl = security.jwt_ttl_minutes if ttl_minutes is None else ttl_minutes
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + ttl * 60,
    }
    return jwt.encode(payload, security.jwt_secret.get_secret_value(), algorithm=security.jwt_algorithm)


def decode_session_token(token: str) -> Dict[str, Any]:
    security = get_settings().security
    try:
        payload = jwt.decode(
            token,
            security.jwt_secret.get_secret_value(),
            algorithms=[security.jwt_algorithm],
        )
    except InvalidTokenError as exc:
        raise ValueError("Недействительный токен сессии") from exc
    if not payload.get("sub"):
        raise ValueError("В токене нет идентификатора пользователя")
    return payload


__all__ = ["decode_session_token", "issue_session_token"]
