# src/services/auth_service/profiles.py
"""
Кэш профилей пользователей (роль и статус нужны на каждом запросе).
"""

from __future__ import annotations

from redis.exceptions import RedisError

from src.common.constants import Collections
from src.common.logger import log_warning
from src.config import settings
from src.infra.documents import DocumentStore
from src.infra.redis_client import RedisClient
from src.shared.models.user import UserProfile

LOGGER_NAME = "petshop.auth"


def profile_key(uid: str) -> str:
    return f"user:profile:{uid}"


class ProfileCache:
    """Read-through кэш users/{uid} в Redis с TTL PROFILE_TTL."""

    def __init__(self, store: DocumentStore, redis: RedisClient) -> None:
        self.store = store
        self.redis = redis

    async def get(self, uid: str) -> UserProfile | None:
        try:
            cached = await self.redis.get_model(profile_key(uid), UserProfile)
        except RedisError as e:
            await log_warning(f"Кэш профилей недоступен: {e}", logger_name=LOGGER_NAME)
            cached = None
        if cached is not None:
            return cached

        doc = await self.store.get(Collections.USERS, uid)
        if doc is None:
            return None

        profile = UserProfile.model_validate({**doc, "uid": doc.get("uid") or doc["id"]})
        try:
            await self.redis.set_model(profile_key(uid), profile, ttl=settings.redis_ttl.PROFILE_TTL)
        except RedisError as e:
            await log_warning(f"Не удалось закэшировать профиль {uid}: {e}", logger_name=LOGGER_NAME)
        return profile

    async def invalidate(self, uid: str) -> None:
        try:
            await self.redis.delete(profile_key(uid))
        except RedisError as e:
            await log_warning(f"Не удалось сбросить кэш профиля {uid}: {e}", logger_name=LOGGER_NAME)
