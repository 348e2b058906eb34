# src/infra/__init__.py
"""
Инфраструктурный слой.
Работа с внешними сервисами: PostgreSQL, Redis, RabbitMQ, Firebase,
платёжные шлюзы, SMS и email.
"""

from src.infra.database import DatabaseManager, get_db
from src.infra.documents import DocumentStore, Where, get_store
from src.infra.redis_client import RedisClient, get_redis
from src.infra.event_bus import EventBus, EventTypes, get_event_bus

__all__ = [
    "DatabaseManager",
    "get_db",
    "DocumentStore",
    "Where",
    "get_store",
    "RedisClient",
    "get_redis",
    "EventBus",
    "EventTypes",
    "get_event_bus",
]
