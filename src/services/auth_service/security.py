# src/services/auth_service/security.py
"""
Сессионные JWT (HS256): выпуск и проверка.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from src.shared.models.enums import UserRole
from src.shared.models.user import SessionClaims


class AuthenticationError(Exception):
    """Нет действующей сессии или токена (HTTP 401)."""


def _secret() -> tuple[str, str]:
    from src.config import settings

    if not settings.auth.JWT_SECRET:
        raise RuntimeError("JWT_SECRET не задан")
    return settings.auth.JWT_SECRET, settings.auth.JWT_ALGORITHM


def create_session_token(
    uid: str,
    email: str | None,
    role: UserRole | str,
    custom_claims: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> str:
    """Выпускает токен сессии на SESSION_DAYS дней."""
    from src.config import settings

    secret, algorithm = _secret()
    issued = now or datetime.now(timezone.utc)
    payload = {
        "uid": uid,
        "email": email,
        "role": str(role),
        "customClaims": custom_claims or {},
        "iat": issued,
        "exp": issued + timedelta(days=settings.auth.SESSION_DAYS),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_session_token(token: str) -> SessionClaims:
    """
    Проверяет подпись и срок действия.

    Raises:
        AuthenticationError: токен истёк или подделан
    """
    secret, algorithm = _secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm], options={"require": ["exp", "uid"]})
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token expirado") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Token inválido") from e

    try:
        return SessionClaims.model_validate(payload)
    except ValueError as e:
        raise AuthenticationError("Token inválido") from e
