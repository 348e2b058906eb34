# src/shared/models/user.py
"""
Модели пользователей и сессий.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from src.shared.models.common import ApiModel
from src.shared.models.enums import UserRole, UserStatus


class UserProfile(ApiModel):
    """Профиль из коллекции users (кэшируется в Redis)."""

    uid: str
    email: str | None = None
    name: str | None = None
    phone: str | None = None
    photo_url: str | None = Field(default=None, alias="photoURL")
    role: UserRole = UserRole.CLIENT
    status: UserStatus = UserStatus.ACTIVE
    custom_claims: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN or bool(self.custom_claims.get("admin"))

    @property
    def is_staff(self) -> bool:
        return self.is_admin or self.role == UserRole.EMPLOYEE


class AuthUser(ApiModel):
    """Пользователь, прошедший проверку Bearer-токена Firebase."""

    uid: str
    email: str | None = None
    role: UserRole = UserRole.CLIENT
    custom_claims: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN or bool(self.custom_claims.get("admin"))

    @property
    def is_staff(self) -> bool:
        return self.is_admin or self.role == UserRole.EMPLOYEE


class LoginRequest(ApiModel):
    type: Literal["google", "email"] | None = None
    id_token: str | None = None
    email: str | None = None
    password: str | None = None


class SessionClaims(ApiModel):
    """Содержимое JWT сессии."""

    uid: str
    email: str | None = None
    role: UserRole = UserRole.CLIENT
    custom_claims: dict[str, Any] = Field(default_factory=dict)
