# tests/services/test_auth.py
"""
Тесты аутентификации: правила доступа, JWT сессии, вход и проверка Bearer-токена.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import RedisError

from src.infra.firebase import FirebaseAuthError
from src.services.auth_service.access import (
    check_role_access,
    dashboard_for_role,
    is_protected_path,
    is_public_path,
    login_redirect,
)
from src.services.auth_service.profiles import ProfileCache
from src.services.auth_service.security import AuthenticationError, create_session_token, decode_session_token
from src.services.auth_service.service import AuthService, LoginError, verify_bearer
from src.shared.events.user_events import UserCreated
from src.shared.models.enums import UserRole
from src.shared.models.user import LoginRequest, UserProfile


class TestAccessRules:
    @pytest.mark.parametrize("path", ["/", "/login", "/api/webhooks/stripe", "/api/health"])
    def test_public(self, path: str) -> None:
        assert is_public_path(path)

    def test_root_is_not_a_prefix(self) -> None:
        assert not is_public_path("/admin")

    def test_protected(self) -> None:
        assert is_protected_path("/taxi-dog/requests")
        assert not is_protected_path("/about")

    @pytest.mark.parametrize(
        "path,role,allowed",
        [
            ("/admin/reports", "admin", True),
            ("/admin/reports", "client", False),
            ("/client/pets", "client", True),
            ("/driver/route", "driver", True),
            ("/driver/route", "client", False),
            ("/admin/appointments", "employee", True),
            ("/admin/finance", "employee", False),
            ("/profile", "driver", True),
        ],
    )
    def test_role_access(self, path: str, role: str, allowed: bool) -> None:
        assert check_role_access(path, role) is allowed

    def test_admin_claim(self) -> None:
        assert check_role_access("/admin", "client", {"admin": True})

    def test_dashboards(self) -> None:
        assert dashboard_for_role(UserRole.DRIVER) == "/driver"
        assert dashboard_for_role("unknown") == "/dashboard"

    def test_login_redirect(self) -> None:
        assert login_redirect("/client/pets") == "/login?redirect=/client/pets"


class TestSessionToken:
    def test_roundtrip(self) -> None:
        token = create_session_token("u1", "ana@example.com", UserRole.DRIVER, {"admin": False})

        claims = decode_session_token(token)

        assert claims.uid == "u1"
        assert claims.role == UserRole.DRIVER
        assert claims.custom_claims == {"admin": False}

    def test_expired(self) -> None:
        token = create_session_token("u1", None, "client", now=datetime.now(timezone.utc) - timedelta(days=30))
        with pytest.raises(AuthenticationError, match="expirado"):
            decode_session_token(token)

    def test_tampered(self) -> None:
        token = create_session_token("u1", None, "client")
        with pytest.raises(AuthenticationError, match="inválido"):
            decode_session_token(token[:-3] + "abc")


@pytest.fixture
def profiles(mock_store: AsyncMock, mock_redis: AsyncMock) -> ProfileCache:
    return ProfileCache(mock_store, mock_redis)


class TestProfileCache:
    @pytest.mark.asyncio
    async def test_reads_through_and_caches(self, profiles: ProfileCache, mock_store: AsyncMock, mock_redis: AsyncMock) -> None:
        mock_store.get.return_value = {"id": "u1", "email": "a@b.c", "role": "employee"}

        profile = await profiles.get("u1")

        assert profile.role == UserRole.EMPLOYEE
        mock_redis.set_model.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redis_down_falls_back_to_store(
        self, profiles: ProfileCache, mock_store: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        mock_redis.get_model.side_effect = RedisError("down")
        mock_redis.set_model.side_effect = RedisError("down")
        mock_store.get.return_value = {"id": "u1", "role": "client"}

        assert (await profiles.get("u1")).uid == "u1"


class TestVerifyBearer:
    @pytest.mark.asyncio
    async def test_missing_header(self, mock_firebase: AsyncMock, profiles: ProfileCache) -> None:
        with pytest.raises(AuthenticationError):
            await verify_bearer(None, mock_firebase, profiles)
        with pytest.raises(AuthenticationError):
            await verify_bearer("Token abc", mock_firebase, profiles)

    @pytest.mark.asyncio
    async def test_invalid_token(self, mock_firebase: AsyncMock, profiles: ProfileCache) -> None:
        mock_firebase.verify_id_token.side_effect = FirebaseAuthError("invalid-token")
        with pytest.raises(AuthenticationError, match="Token inválido"):
            await verify_bearer("Bearer bad", mock_firebase, profiles)

    @pytest.mark.asyncio
    async def test_role_from_profile(self, mock_firebase: AsyncMock, mock_redis: AsyncMock, profiles: ProfileCache) -> None:
        mock_firebase.verify_id_token.return_value = {"uid": "d1", "email": "d@x.com"}
        mock_redis.get_model.return_value = UserProfile(uid="d1", role=UserRole.DRIVER)

        user = await verify_bearer("Bearer good", mock_firebase, profiles)

        assert user.uid == "d1"
        assert user.role == UserRole.DRIVER
        assert user.email == "d@x.com"

    @pytest.mark.asyncio
    async def test_admin_claim_in_token(self, mock_firebase: AsyncMock, profiles: ProfileCache) -> None:
        mock_firebase.verify_id_token.return_value = {"uid": "x1", "admin": True}

        user = await verify_bearer("Bearer good", mock_firebase, profiles)

        assert user.role == UserRole.CLIENT
        assert user.is_admin


@pytest.fixture
def auth_service(mock_store, mock_firebase, mock_event_bus, profiles) -> AuthService:
    mock_firebase.sign_in_with_password = AsyncMock(return_value={"uid": "user-1"})
    mock_firebase.revoke_refresh_tokens = AsyncMock(return_value=None)
    return AuthService(mock_store, mock_firebase, mock_event_bus, profiles)


class TestLogin:
    @pytest.mark.asyncio
    async def test_first_login_creates_profile(
        self, auth_service: AuthService, mock_store: AsyncMock, mock_event_bus: AsyncMock
    ) -> None:
        token, user = await auth_service.login(LoginRequest(type="email", email="ana@example.com", password="x"))

        assert decode_session_token(token).uid == "user-1"
        assert user["role"] == "client"
        assert mock_store.set.call_args[0][0] == "users"
        event = mock_event_bus.publish.call_args[0][0]
        assert isinstance(event, UserCreated)
        assert event.email == "ana@example.com"

    @pytest.mark.asyncio
    async def test_existing_profile_keeps_role(
        self, auth_service: AuthService, mock_store: AsyncMock, mock_event_bus: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        mock_store.get.return_value = {"id": "user-1", "role": "admin", "status": "active"}

        token, user = await auth_service.login(LoginRequest(type="google", idToken="google-token"))

        assert decode_session_token(token).role == UserRole.ADMIN
        mock_event_bus.publish.assert_not_awaited()
        mock_redis.delete.assert_awaited_once_with("user:profile:user-1")

    @pytest.mark.asyncio
    async def test_wrong_password(self, auth_service: AuthService, mock_firebase: AsyncMock) -> None:
        mock_firebase.sign_in_with_password.side_effect = FirebaseAuthError("INVALID_PASSWORD")

        with pytest.raises(LoginError) as exc:
            await auth_service.login(LoginRequest(email="ana@example.com", password="bad"))

        assert exc.value.status_code == 401
        assert str(exc.value) == "Email ou senha incorretos"

    @pytest.mark.asyncio
    async def test_incomplete_request(self, auth_service: AuthService) -> None:
        with pytest.raises(LoginError) as exc:
            await auth_service.login(LoginRequest(type="google"))
        assert exc.value.status_code == 400


class TestSession:
    @pytest.mark.asyncio
    async def test_me_without_token(self, auth_service: AuthService) -> None:
        with pytest.raises(AuthenticationError):
            await auth_service.me(None)

    @pytest.mark.asyncio
    async def test_me_disabled(self, auth_service: AuthService, mock_store: AsyncMock) -> None:
        mock_store.get.return_value = {"id": "user-1", "status": "inactive"}
        with pytest.raises(PermissionError):
            await auth_service.me(create_session_token("user-1", None, "client"))

    @pytest.mark.asyncio
    async def test_refresh_uses_current_role(self, auth_service: AuthService, mock_store: AsyncMock) -> None:
        mock_store.get.return_value = {"uid": "user-1", "role": "driver", "status": "active"}

        token, user = await auth_service.refresh(create_session_token("user-1", None, "client"))

        assert decode_session_token(token).role == UserRole.DRIVER
        assert user["customClaims"] == {}

    @pytest.mark.asyncio
    async def test_logout_ignores_invalid_token(self, auth_service: AuthService, mock_firebase: AsyncMock) -> None:
        await auth_service.logout("garbage")
        mock_firebase.revoke_refresh_tokens.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_logout_revokes(self, auth_service: AuthService, mock_firebase: AsyncMock) -> None:
        await auth_service.logout(create_session_token("user-1", None, "client"))
        mock_firebase.revoke_refresh_tokens.assert_awaited_once_with("user-1")


class TestAuthorizePath:
    def test_public(self, auth_service: AuthService) -> None:
        assert auth_service.authorize_path("/login", None)["allowed"] is True

    def test_no_token(self, auth_service: AuthService) -> None:
        result = auth_service.authorize_path("/client", None)
        assert result == {"allowed": False, "redirect": "/login?redirect=/client", "clearCookie": False}

    def test_bad_token_clears_cookie(self, auth_service: AuthService) -> None:
        result = auth_service.authorize_path("/client", "garbage")
        assert result["clearCookie"] is True

    def test_wrong_role_redirects_to_dashboard(self, auth_service: AuthService) -> None:
        token = create_session_token("d1", None, "driver")
        result = auth_service.authorize_path("/admin/reports", token)
        assert result == {"allowed": False, "redirect": "/driver", "clearCookie": False}

    def test_allowed(self, auth_service: AuthService) -> None:
        token = create_session_token("u1", "a@b.c", "client")
        result = auth_service.authorize_path("/pets/1", token)
        assert result["allowed"] is True
        assert result["role"] == "client"
