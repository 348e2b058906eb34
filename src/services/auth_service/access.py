# src/services/auth_service/access.py
"""
Правила доступа к разделам приложения по ролям.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from src.shared.models.enums import UserRole

PUBLIC_ROUTES = (
    "/login",
    "/register",
    "/forgot-password",
    "/api/auth/callback",
    "/api/webhooks",
    "/api/health",
)

PROTECTED_ROUTES = (
    "/dashboard",
    "/admin",
    "/client",
    "/driver",
    "/profile",
    "/appointments",
    "/pets",
    "/services",
    "/taxi-dog",
)

ROLE_ROUTES: dict[UserRole, tuple[str, ...]] = {
    UserRole.ADMIN: ("/admin",),
    UserRole.CLIENT: ("/client", "/appointments", "/pets", "/taxi-dog"),
    UserRole.DRIVER: ("/driver", "/taxi-dog"),
    UserRole.EMPLOYEE: ("/admin/appointments", "/admin/clients", "/admin/pets"),
}

# Доступны любой роли
COMMON_ROUTES = ("/dashboard", "/profile")

DASHBOARDS: dict[UserRole, str] = {
    UserRole.ADMIN: "/admin",
    UserRole.CLIENT: "/client",
    UserRole.DRIVER: "/driver",
    UserRole.EMPLOYEE: "/admin/appointments",
}


def _role(value: UserRole | str) -> UserRole | None:
    try:
        return UserRole(value)
    except ValueError:
        return None


def is_public_path(path: str) -> bool:
    # "/" публичен только как корень, иначе он совпал бы с любым путём
    return path == "/" or path.startswith(PUBLIC_ROUTES)


def is_protected_path(path: str) -> bool:
    return path.startswith(PROTECTED_ROUTES)


def check_role_access(path: str, role: UserRole | str, custom_claims: dict[str, Any] | None = None) -> bool:
    if _role(role) == UserRole.ADMIN or (custom_claims or {}).get("admin") is True:
        return True

    allowed = ROLE_ROUTES.get(_role(role), ())
    if path.startswith(allowed):
        return True
    return path.startswith(COMMON_ROUTES)


def dashboard_for_role(role: UserRole | str) -> str:
    return DASHBOARDS.get(_role(role), "/dashboard")


def login_redirect(path: str) -> str:
    return f"/login?redirect={quote(path, safe='/')}"
