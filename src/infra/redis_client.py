# src/infra/redis_client.py
"""
Клиент Redis: кэш профилей и отчётов, счётчики rate limit, короткие блокировки.
Поддерживает типизированные операции с Pydantic моделями.
"""

from __future__ import annotations

import json
from typing import Type, TypeVar

import redis.asyncio as redis
from pydantic import BaseModel

from src.common.logger import log_error, log_info

T = TypeVar("T", bound=BaseModel)

LOGGER_NAME = "petshop.redis"


class RedisClient:
    """
    Асинхронный клиент Redis (Singleton).
    Все ключи получают префикс пространства имён проекта.
    """

    _instance: RedisClient | None = None
    _client: redis.Redis | None = None

    def __new__(cls) -> RedisClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._client = None
        self._namespace = "petshop"

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    def _make_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def connect(
        self,
        url: str | None = None,
        max_connections: int = 50,
        namespace: str | None = None,
    ) -> None:
        """Подключается к Redis и проверяет соединение командой PING."""
        if self._client is not None:
            return

        if url is None:
            from src.config import settings
            url = settings.redis.url
            max_connections = settings.redis.REDIS_MAX_CONNECTIONS
            namespace = settings.redis.REDIS_NAMESPACE
        if namespace:
            self._namespace = namespace

        await log_info("Подключение к Redis...", logger_name=LOGGER_NAME)

        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )
        await self._client.ping()

        await log_info("Подключение к Redis установлено", logger_name=LOGGER_NAME)

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", logger_name=LOGGER_NAME)

    # =========================================================================
    # БАЗОВЫЕ ОПЕРАЦИИ
    # =========================================================================

    async def get(self, key: str) -> str | None:
        return await self.client.get(self._make_key(key))

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        return await self.client.set(self._make_key(key), value, ex=ttl)

    async def delete(self, key: str) -> int:
        return await self.client.delete(self._make_key(key))

    async def exists(self, key: str) -> bool:
        return await self.client.exists(self._make_key(key)) > 0

    async def ttl(self, key: str) -> int:
        return await self.client.ttl(self._make_key(key))

    async def acquire_lock(self, key: str, ttl: int) -> bool:
        """
        SET NX EX: True, если ключ был свободен и теперь занят этим вызовом.
        Используется, чтобы несколько воркеров не обработали одно и то же.
        """
        return bool(await self.client.set(self._make_key(key), "1", ex=ttl, nx=True))

    async def incr_window(self, key: str, window: int) -> int:
        """
        Счётчик фиксированного окна: INCR, при первом обращении EXPIRE window.
        Возвращает текущее значение счётчика.
        """
        full_key = self._make_key(key)
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.incr(full_key)
            pipe.expire(full_key, window, nx=True)
            count, _ = await pipe.execute()
        return int(count)

    # =========================================================================
    # ТИПИЗИРОВАННЫЕ ОПЕРАЦИИ (PYDANTIC)
    # =========================================================================

    async def get_model(self, key: str, model_class: Type[T]) -> T | None:
        """Читает и валидирует Pydantic модель; битые данные считаются промахом кэша."""
        data = await self.get(key)
        if data is None:
            return None

        try:
            return model_class.model_validate_json(data)
        except ValueError as e:
            await log_error(f"Ошибка десериализации модели {model_class.__name__}: {e}", logger_name=LOGGER_NAME)
            return None

    async def set_model(self, key: str, model: BaseModel, ttl: int | None = None) -> bool:
        return await self.set(key, model.model_dump_json(), ttl=ttl)

    # =========================================================================
    # JSON ОПЕРАЦИИ
    # =========================================================================

    async def get_json(self, key: str) -> dict | list | None:
        data = await self.get(key)
        if data is None:
            return None

        try:
            return json.loads(data)
        except json.JSONDecodeError:
            return None

    async def set_json(self, key: str, data: dict | list, ttl: int | None = None) -> bool:
        return await self.set(key, json.dumps(data, ensure_ascii=False, default=str), ttl=ttl)

    # =========================================================================
    # HEALTH CHECK
    # =========================================================================

    async def health_check(self) -> bool:
        try:
            return await self.client.ping()
        except Exception as e:
            await log_error(f"Health check Redis failed: {e}", logger_name=LOGGER_NAME)
            return False


def get_redis() -> RedisClient:
    """Возвращает глобальный экземпляр RedisClient."""
    return RedisClient()


async def init_redis() -> None:
    """Подключается к Redis по настройкам из конфигурации."""
    from src.config import settings

    await get_redis().connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
        namespace=settings.redis.REDIS_NAMESPACE,
    )
    await log_info(
        f"Redis подключён: {settings.redis.REDIS_HOST}:{settings.redis.REDIS_PORT}/{settings.redis.REDIS_DB}",
        logger_name=LOGGER_NAME,
    )


async def close_redis() -> None:
    await get_redis().disconnect()
    await log_info("Redis отключён", logger_name=LOGGER_NAME)
