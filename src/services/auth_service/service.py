# src/services/auth_service/service.py
"""
Бизнес-логика аутентификации.

Вход через Firebase (Google ID-токен или email/пароль), сессия в JWT,
первичное создание профиля в users и публикация user.created.
"""

from __future__ import annotations

from typing import Any

from src.common.constants import Collections
from src.common.logger import log_info, log_warning
from src.infra.documents import DocumentStore, utc_now
from src.infra.event_bus import EventBus
from src.infra.firebase import FirebaseAuthError, FirebaseClient
from src.services.auth_service.access import (
    check_role_access,
    dashboard_for_role,
    is_protected_path,
    is_public_path,
    login_redirect,
)
from src.services.auth_service.profiles import ProfileCache
from src.services.auth_service.security import (
    AuthenticationError,
    create_session_token,
    decode_session_token,
)
from src.shared.events.user_events import UserCreated
from src.shared.models.enums import UserRole, UserStatus
from src.shared.models.user import AuthUser, LoginRequest

LOGGER_NAME = "petshop.auth"


class LoginError(Exception):
    """Ошибка входа с HTTP-статусом для ответа."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


# Коды Firebase Auth → (HTTP статус, сообщение)
FIREBASE_LOGIN_ERRORS: dict[str, tuple[int, str]] = {
    "EMAIL_NOT_FOUND": (401, "Email ou senha incorretos"),
    "INVALID_PASSWORD": (401, "Email ou senha incorretos"),
    "INVALID_LOGIN_CREDENTIALS": (401, "Email ou senha incorretos"),
    "user-not-found": (401, "Email ou senha incorretos"),
    "invalid-token": (401, "Token inválido"),
    "USER_DISABLED": (403, "Conta desabilitada"),
    "TOO_MANY_ATTEMPTS_TRY_LATER": (429, "Muitas tentativas. Tente novamente mais tarde"),
    "INVALID_EMAIL": (400, "Email inválido"),
}


def _public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {
        "uid": user.get("uid"),
        "email": user.get("email"),
        "name": user.get("name"),
        "photoURL": user.get("photoURL"),
        "role": user.get("role"),
        "status": user.get("status"),
    }


async def verify_bearer(
    authorization: str | None,
    firebase: FirebaseClient,
    profiles: ProfileCache,
) -> AuthUser:
    """
    Проверяет заголовок "Authorization: Bearer <ID-токен Firebase>".

    Raises:
        AuthenticationError: заголовка нет или токен не прошёл проверку
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Token de autorização necessário")

    id_token = authorization[len("Bearer "):].strip()
    try:
        decoded = await firebase.verify_id_token(id_token)
    except FirebaseAuthError as e:
        raise AuthenticationError("Token inválido") from e

    uid = decoded["uid"]
    profile = await profiles.get(uid)
    claims = {key: decoded[key] for key in ("admin", "role") if key in decoded}
    if profile is not None:
        claims = {**profile.custom_claims, **claims}

    return AuthUser(
        uid=uid,
        email=decoded.get("email") or (profile.email if profile else None),
        role=profile.role if profile else UserRole.CLIENT,
        custom_claims=claims,
    )


class AuthService:
    """Вход, текущая сессия, обновление и выход."""

    def __init__(
        self,
        store: DocumentStore,
        firebase: FirebaseClient,
        event_bus: EventBus,
        profiles: ProfileCache,
    ) -> None:
        self.store = store
        self.firebase = firebase
        self.event_bus = event_bus
        self.profiles = profiles

    # === ВХОД ===

    async def _firebase_user(self, request: LoginRequest) -> dict[str, Any]:
        login_type = request.type or "email"

        if login_type == "google" and request.id_token:
            decoded = await self.firebase.verify_id_token(request.id_token)
            return await self.firebase.get_user(decoded["uid"])

        if login_type == "email" and request.email and request.password:
            signed = await self.firebase.sign_in_with_password(request.email, request.password)
            return await self.firebase.get_user(signed["uid"])

        raise LoginError(400, "Dados de login inválidos")

    async def login(self, request: LoginRequest) -> tuple[str, dict[str, Any]]:
        """
        Возвращает (JWT сессии, профиль).

        Raises:
            LoginError: неверные данные или отказ Firebase
        """
        try:
            record = await self._firebase_user(request)
        except FirebaseAuthError as e:
            status_code, message = FIREBASE_LOGIN_ERRORS.get(e.code, (500, "Erro interno do servidor"))
            await log_warning(f"Вход отклонён Firebase: {e.code}", logger_name=LOGGER_NAME)
            raise LoginError(status_code, message) from e

        uid = record["uid"]
        now = utc_now()
        user = await self.store.get(Collections.USERS, uid)

        if user is None:
            user = {
                "uid": uid,
                "email": record.get("email"),
                "name": record.get("display_name") or "",
                "photoURL": record.get("photo_url") or "",
                "role": UserRole.CLIENT.value,
                "status": UserStatus.ACTIVE.value,
                "createdAt": now,
                "updatedAt": now,
            }
            await self.store.set(Collections.USERS, uid, user)
            await self.event_bus.publish(UserCreated(
                user_id=uid,
                email=record.get("email"),
                name=user["name"],
                role=UserRole.CLIENT.value,
            ))
            await log_info(f"Создан профиль пользователя {uid}", logger_name=LOGGER_NAME)

        token = create_session_token(
            uid=uid,
            email=record.get("email"),
            role=user.get("role", UserRole.CLIENT.value),
            custom_claims=record.get("custom_claims") or {},
        )

        await self.store.update(Collections.USERS, uid, {"lastLoginAt": now, "updatedAt": now})
        await self.profiles.invalidate(uid)

        return token, _public_user({**user, "uid": uid, "email": record.get("email")})

    # === СЕССИЯ ===

    async def me(self, token: str | None) -> dict[str, Any]:
        """
        Профиль владельца cookie-сессии.

        Raises:
            AuthenticationError: нет токена или он недействителен
            LookupError: профиль удалён
            PermissionError: учётная запись не активна
        """
        if not token:
            raise AuthenticationError("Token não encontrado")

        claims = decode_session_token(token)
        user = await self.store.get(Collections.USERS, claims.uid)
        if user is None:
            raise LookupError("Usuário não encontrado")
        if user.get("status") != UserStatus.ACTIVE.value:
            raise PermissionError("Conta desabilitada")

        record = await self.firebase.get_user(claims.uid)
        return {
            **_public_user(user),
            "customClaims": record.get("custom_claims") or {},
            "createdAt": user.get("createdAt"),
            "lastLoginAt": user.get("lastLoginAt"),
        }

    async def refresh(self, token: str | None) -> tuple[str, dict[str, Any]]:
        """Перевыпускает токен с актуальной ролью и claims."""
        if not token:
            raise AuthenticationError("Token não encontrado")

        claims = decode_session_token(token)
        user = await self.store.get(Collections.USERS, claims.uid)
        if user is None or user.get("status") != UserStatus.ACTIVE.value:
            raise PermissionError("Usuário inválido")

        record = await self.firebase.get_user(claims.uid)
        custom_claims = record.get("custom_claims") or {}
        new_token = create_session_token(
            uid=claims.uid,
            email=user.get("email"),
            role=user.get("role", UserRole.CLIENT.value),
            custom_claims=custom_claims,
        )
        return new_token, {**_public_user(user), "customClaims": custom_claims}

    async def logout(self, token: str | None) -> None:
        """Фиксирует выход и отзывает refresh-токены; ошибки не прерывают выход."""
        if not token:
            return

        try:
            claims = decode_session_token(token)
            now = utc_now()
            await self.store.update(Collections.USERS, claims.uid, {"lastLogoutAt": now, "updatedAt": now})
            await self.firebase.revoke_refresh_tokens(claims.uid)
        except (AuthenticationError, FirebaseAuthError) as e:
            await log_warning(f"Ошибка при обработке выхода: {e}", logger_name=LOGGER_NAME)

    # === ДОСТУП К СТРАНИЦАМ ===

    def authorize_path(self, path: str, token: str | None) -> dict[str, Any]:
        """
        Решение для страницы: allowed или redirect.
        clear_cookie=True, если токен в cookie недействителен.
        """
        if is_public_path(path) or not is_protected_path(path):
            return {"allowed": True, "redirect": None, "clearCookie": False}

        if not token:
            return {"allowed": False, "redirect": login_redirect(path), "clearCookie": False}

        try:
            claims = decode_session_token(token)
        except AuthenticationError:
            return {"allowed": False, "redirect": login_redirect(path), "clearCookie": True}

        if not check_role_access(path, claims.role, claims.custom_claims):
            return {"allowed": False, "redirect": dashboard_for_role(claims.role), "clearCookie": False}

        return {
            "allowed": True,
            "redirect": None,
            "clearCookie": False,
            "uid": claims.uid,
            "role": str(claims.role),
            "email": claims.email,
        }
