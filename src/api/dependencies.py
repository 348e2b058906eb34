# src/api/dependencies.py
"""
Dependency Injection для HTTP-шлюза.

Инфраструктура регистрируется один раз в lifespan (init_dependencies),
роутеры получают её через Depends. В тестах зависимости подменяются
через app.dependency_overrides.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request
from redis.exceptions import RedisError

from src.common.logger import log_warning
from src.config import settings
from src.infra.documents import DocumentStore
from src.infra.event_bus import EventBus
from src.infra.firebase import FirebaseClient
from src.infra.mailer import EmailClient, get_email_client
from src.infra.mercadopago_client import MercadoPagoClient
from src.infra.mercadopago_client import get_mercadopago as get_mercadopago_client
from src.infra.redis_client import RedisClient
from src.infra.sms import SmsClient, get_sms_client
from src.infra.stripe_gateway import StripeGateway, get_stripe_gateway
from src.services.auth_service.profiles import ProfileCache
from src.services.auth_service.security import AuthenticationError
from src.services.auth_service.service import verify_bearer
from src.shared.models.user import AuthUser


_store: DocumentStore | None = None
_redis: RedisClient | None = None
_event_bus: EventBus | None = None
_firebase: FirebaseClient | None = None


async def init_dependencies(
    store: DocumentStore,
    redis: RedisClient,
    event_bus: EventBus,
    firebase: FirebaseClient,
) -> None:
    """Инициализировать зависимости при старте приложения."""
    global _store, _redis, _event_bus, _firebase
    _store = store
    _redis = redis
    _event_bus = event_bus
    _firebase = firebase


async def cleanup_dependencies() -> None:
    global _store, _redis, _event_bus, _firebase
    _store = None
    _redis = None
    _event_bus = None
    _firebase = None


def get_store() -> DocumentStore:
    if _store is None:
        raise RuntimeError("DocumentStore не инициализирован. Вызовите init_dependencies()")
    return _store


def get_redis() -> RedisClient:
    if _redis is None:
        raise RuntimeError("Redis не инициализирован. Вызовите init_dependencies()")
    return _redis


def get_event_bus() -> EventBus:
    if _event_bus is None:
        raise RuntimeError("EventBus не инициализирован. Вызовите init_dependencies()")
    return _event_bus


def get_firebase() -> FirebaseClient:
    if _firebase is None:
        raise RuntimeError("Firebase не инициализирован. Вызовите init_dependencies()")
    return _firebase


def get_stripe() -> StripeGateway:
    return get_stripe_gateway()


def get_mercadopago() -> MercadoPagoClient:
    return get_mercadopago_client()


def get_sms() -> SmsClient:
    return get_sms_client()


def get_email() -> EmailClient:
    return get_email_client()


def get_profile_cache(
    store: Annotated[DocumentStore, Depends(get_store)],
    redis: Annotated[RedisClient, Depends(get_redis)],
) -> ProfileCache:
    return ProfileCache(store, redis)


# =============================================================================
# АУТЕНТИФИКАЦИЯ
# =============================================================================

async def get_current_user(
    firebase: Annotated[FirebaseClient, Depends(get_firebase)],
    profiles: Annotated[ProfileCache, Depends(get_profile_cache)],
    authorization: Annotated[str | None, Header()] = None,
) -> AuthUser:
    """Bearer ID-токен Firebase → AuthUser с ролью из профиля."""
    try:
        return await verify_bearer(authorization, firebase, profiles)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))


async def require_admin(
    user: Annotated[AuthUser, Depends(get_current_user)],
) -> AuthUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Acesso negado")
    return user


async def require_staff(
    user: Annotated[AuthUser, Depends(get_current_user)],
) -> AuthUser:
    if not user.is_staff:
        raise HTTPException(status_code=403, detail="Acesso negado")
    return user


# =============================================================================
# RATE LIMIT
# =============================================================================

def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def webhook_rate_limit(
    request: Request,
    redis: Annotated[RedisClient, Depends(get_redis)],
) -> None:
    """Фиксированное окно по IP; сверх лимита 429."""
    cfg = settings.rate_limit
    ip = client_ip(request)
    try:
        count = await redis.incr_window(f"ratelimit:webhooks:{ip}", cfg.RATE_LIMIT_WINDOW)
    except RedisError as e:
        await log_warning(f"Rate limit недоступен: {e}", logger_name="petshop.api")
        return

    if count > cfg.RATE_LIMIT_REQUESTS:
        raise HTTPException(status_code=429, detail="Too many requests")


CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
AdminUser = Annotated[AuthUser, Depends(require_admin)]
StaffUser = Annotated[AuthUser, Depends(require_staff)]
Store = Annotated[DocumentStore, Depends(get_store)]
EventBusDep = Annotated[EventBus, Depends(get_event_bus)]
