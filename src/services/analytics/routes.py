# src/services/analytics/routes.py
"""
Endpoints аналитики:
- GET /api/analytics?period= - сводка (admin)
- POST /api/analytics - записать событие фронтенда
- PUT /api/analytics - произвольный отчёт по коллекции (admin)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.api.dependencies import CurrentUser, client_ip, get_redis, get_store
from src.api.errors import ERROR_RESPONSES, service_errors
from src.infra.documents import DocumentStore
from src.infra.redis_client import RedisClient
from src.services.analytics.service import AnalyticsService
from src.shared.models.analytics import AnalyticsEventRequest, ReportRequest

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


def get_analytics_service(
    store: Annotated[DocumentStore, Depends(get_store)],
    redis: Annotated[RedisClient, Depends(get_redis)],
) -> AnalyticsService:
    return AnalyticsService(store, redis)


Service = Annotated[AnalyticsService, Depends(get_analytics_service)]


@router.get("", responses=ERROR_RESPONSES, summary="Сводная аналитика")
async def get_analytics(
    user: CurrentUser,
    service: Service,
    period: Annotated[int, Query(ge=1, le=3650)] = 30,
) -> dict:
    with service_errors():
        return await service.overview(user, period)


@router.post("", responses=ERROR_RESPONSES, summary="Записать событие")
async def track_event(request: AnalyticsEventRequest, http_request: Request, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.track_event(
            user,
            request,
            user_agent=http_request.headers.get("user-agent"),
            ip=client_ip(http_request),
        )


@router.put("", responses=ERROR_RESPONSES, summary="Произвольный отчёт")
async def custom_report(request: ReportRequest, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.report(user, request)
