# src/services/analytics/service.py
"""
Сводка для панели администратора, журнал событий и произвольные отчёты.
Сводка кэшируется в Redis на ANALYTICS_TTL секунд по ключу периода.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any

from redis.exceptions import RedisError

from src.common.constants import Collections
from src.common.logger import log_warning
from src.config import settings
from src.infra.documents import SUPPORTED_OPS, DocumentStore, Where, utc_now
from src.infra.redis_client import RedisClient
from src.services.analytics import aggregation
from src.shared.models.analytics import AnalyticsEventRequest, ReportRequest
from src.shared.models.user import AuthUser

LOGGER_NAME = "petshop.analytics"

# Коллекции, по которым разрешены произвольные отчёты
REPORTABLE_COLLECTIONS = {
    Collections.USERS,
    Collections.APPOINTMENTS,
    Collections.TAXI_REQUESTS,
    Collections.PAYMENTS,
    Collections.PETS,
    Collections.CLIENTS,
    Collections.SERVICES,
    Collections.NOTIFICATION_LOGS,
    Collections.ANALYTICS_EVENTS,
}


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class AnalyticsService:
    def __init__(self, store: DocumentStore, redis: RedisClient) -> None:
        self.store = store
        self.redis = redis

    async def overview(self, user: AuthUser, period: int = 30, now: datetime | None = None) -> dict[str, Any]:
        if not user.is_admin:
            raise PermissionError("Acesso negado")
        if period < 1:
            raise ValueError("Período inválido")

        cache_key = f"analytics:overview:{period}"
        try:
            cached = await self.redis.get_json(cache_key)
        except RedisError as e:
            await log_warning(f"Кэш аналитики недоступен: {e}", logger_name=LOGGER_NAME)
            cached = None
        if cached is not None:
            return cached

        now = now or utc_now()
        start = now - timedelta(days=period)
        first_of_month = month_start(now)

        users, appointments, taxi_requests, payments, pets = await asyncio.gather(
            self.store.query(Collections.USERS),
            self.store.query(Collections.APPOINTMENTS),
            self.store.query(Collections.TAXI_REQUESTS),
            self.store.query(Collections.PAYMENTS),
            self.store.query(Collections.PETS),
        )

        result = {
            "analytics": {
                "users": aggregation.users_summary(users, start, first_of_month),
                "appointments": aggregation.appointments_summary(appointments, first_of_month),
                "taxiDog": aggregation.taxi_summary(taxi_requests, first_of_month),
                "payments": aggregation.payments_summary(payments, first_of_month),
                "pets": aggregation.pets_summary(pets),
            },
            "period": period,
            "generatedAt": now.isoformat(),
        }

        try:
            await self.redis.set_json(cache_key, result, ttl=settings.redis_ttl.ANALYTICS_TTL)
        except RedisError as e:
            await log_warning(f"Не удалось закэшировать аналитику: {e}", logger_name=LOGGER_NAME)
        return result

    async def track_event(
        self,
        user: AuthUser,
        request: AnalyticsEventRequest,
        user_agent: str | None = None,
        ip: str | None = None,
    ) -> dict[str, Any]:
        if not request.event:
            raise ValueError("Nome do evento é obrigatório")

        await self.store.add(Collections.ANALYTICS_EVENTS, {
            "event": request.event,
            "category": request.category or "general",
            "data": request.data,
            "userId": user.uid,
            "timestamp": utc_now(),
            "userAgent": user_agent,
            "ip": ip,
        })
        return {"message": "Evento registrado com sucesso"}

    async def report(self, user: AuthUser, request: ReportRequest) -> dict[str, Any]:
        if not user.is_admin:
            raise PermissionError("Acesso negado")
        if not request.collection:
            raise ValueError("Coleção é obrigatória")
        if request.collection not in REPORTABLE_COLLECTIONS:
            raise ValueError(f"Coleção não permitida: {request.collection}")

        filters: list[Where] = []
        if request.start_date:
            filters.append(Where("createdAt", ">=", request.start_date))
        if request.end_date:
            filters.append(Where("createdAt", "<=", request.end_date))
        for f in request.filters:
            if f.operator not in SUPPORTED_OPS:
                raise ValueError(f"Operador não suportado: {f.operator}")
            filters.append(Where(f.field, f.operator, f.value))

        docs = await self.store.query(request.collection, filters, order_by="createdAt", descending=True)
        data: list[dict[str, Any]] = docs
        if request.group_by:
            data = aggregation.group_documents(docs, request.group_by, request.metrics)

        return {
            "data": data,
            "total": len(docs),
            "collection": request.collection,
            "filters": request.model_dump(by_alias=True, mode="json", exclude={"collection"}),
            "generatedAt": utc_now().isoformat(),
        }
