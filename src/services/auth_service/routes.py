# src/services/auth_service/routes.py
"""
Endpoints аутентификации:
- POST /api/auth/login - вход (Google или email/пароль)
- GET /api/auth/me - текущая сессия
- POST /api/auth/me - обновить токен сессии
- GET|POST /api/auth/logout - выход
- GET /api/auth/authorize - решение о доступе к странице
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, Query
from fastapi.responses import JSONResponse

from src.config import settings
from src.services.auth_service.dependencies import get_auth_service
from src.services.auth_service.security import AuthenticationError
from src.services.auth_service.service import AuthService, LoginError
from src.shared.models.common import ErrorResponse
from src.shared.models.user import LoginRequest

router = APIRouter(prefix="/api/auth", tags=["Auth"])

SessionCookie = Annotated[str | None, Cookie(alias=settings.auth.COOKIE_NAME)]
Service = Annotated[AuthService, Depends(get_auth_service)]


def _set_session_cookie(response: JSONResponse, token: str) -> None:
    response.set_cookie(
        settings.auth.COOKIE_NAME,
        token,
        max_age=settings.auth.session_seconds,
        httponly=True,
        secure=settings.system.is_production,
        samesite="lax",
    )


def _clear_session_cookie(response: JSONResponse) -> None:
    response.delete_cookie(settings.auth.COOKIE_NAME)


def _session_error(status_code: int, message: str, clear_cookie: bool = True) -> JSONResponse:
    response = JSONResponse({"error": message, "authenticated": False}, status_code=status_code)
    if clear_cookie:
        _clear_session_cookie(response)
    return response


@router.post(
    "/login",
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Вход",
)
async def login(request: LoginRequest, service: Service) -> JSONResponse:
    try:
        token, user = await service.login(request)
    except LoginError as e:
        return JSONResponse({"error": str(e)}, status_code=e.status_code)

    response = JSONResponse({"success": True, "user": user, "token": token})
    _set_session_cookie(response, token)
    return response


@router.get("/me", summary="Текущая сессия")
async def me(service: Service, token: SessionCookie = None) -> JSONResponse:
    if not token:
        return _session_error(401, "Token não encontrado", clear_cookie=False)

    try:
        user = await service.me(token)
    except AuthenticationError as e:
        return _session_error(401, str(e))
    except LookupError as e:
        return _session_error(404, str(e))
    except PermissionError as e:
        return _session_error(403, str(e))

    return JSONResponse({"authenticated": True, "user": user})


@router.post("/me", summary="Обновить токен сессии")
async def refresh(service: Service, token: SessionCookie = None) -> JSONResponse:
    if not token:
        return JSONResponse({"error": "Token não encontrado"}, status_code=401)

    try:
        new_token, user = await service.refresh(token)
    except AuthenticationError as e:
        response = JSONResponse({"error": str(e)}, status_code=401)
        _clear_session_cookie(response)
        return response
    except PermissionError as e:
        response = JSONResponse({"error": str(e)}, status_code=403)
        _clear_session_cookie(response)
        return response

    response = JSONResponse({"success": True, "token": new_token, "user": user})
    _set_session_cookie(response, new_token)
    return response


@router.api_route("/logout", methods=["GET", "POST"], summary="Выход")
async def logout(service: Service, token: SessionCookie = None) -> JSONResponse:
    await service.logout(token)
    response = JSONResponse({"success": True, "message": "Logout realizado com sucesso"})
    _clear_session_cookie(response)
    return response


@router.get("/authorize", summary="Доступ к странице по роли")
async def authorize(
    service: Service,
    path: Annotated[str, Query(min_length=1)],
    token: SessionCookie = None,
) -> JSONResponse:
    decision = service.authorize_path(path, token)
    clear_cookie = decision.pop("clearCookie")
    response = JSONResponse(decision)
    if clear_cookie:
        _clear_session_cookie(response)
    return response
