# src/services/notifications/routes.py
"""
Endpoints уведомлений:
- GET /api/notifications - входящие (пагинация, фильтры)
- PUT /api/notifications - отметить прочитанными
- DELETE /api/notifications - удалить
- POST /api/notifications/send - рассылка
- PUT /api/notifications/send - отложенная рассылка (admin)
- POST|GET|DELETE /api/notifications/tokens - токены устройств
- PUT /api/notifications/tokens - предпочтения по категориям
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import CurrentUser
from src.api.errors import ERROR_RESPONSES, service_errors
from src.services.notifications.dependencies import get_notification_service
from src.services.notifications.service import DEFAULT_PAGE_SIZE, NotificationService
from src.shared.models.notification import (
    MarkReadRequest,
    NotificationPreferencesRequest,
    RegisterTokenRequest,
    ScheduleNotificationRequest,
    SendNotificationRequest,
)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

Service = Annotated[NotificationService, Depends(get_notification_service)]


# =============================================================================
# ВХОДЯЩИЕ
# =============================================================================

@router.get("", responses=ERROR_RESPONSES, summary="Входящие уведомления")
async def list_inbox(
    user: CurrentUser,
    service: Service,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1)] = DEFAULT_PAGE_SIZE,
    type: Annotated[str | None, Query()] = None,
    unread: Annotated[bool, Query()] = False,
    priority: Annotated[str | None, Query()] = None,
) -> dict:
    return await service.list_inbox(
        user, page=page, limit=limit, notification_type=type, unread=unread, priority=priority
    )


@router.put("", responses=ERROR_RESPONSES, summary="Отметить прочитанными")
async def mark_read(request: MarkReadRequest, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.mark_read(user, request)


@router.delete("", responses=ERROR_RESPONSES, summary="Удалить уведомления")
async def delete_notifications(
    user: CurrentUser,
    service: Service,
    id: Annotated[str | None, Query()] = None,
    all: Annotated[bool, Query()] = False,
    read: Annotated[bool, Query()] = False,
) -> dict:
    with service_errors():
        return await service.delete(user, notification_id=id, delete_all=all, delete_read=read)


# =============================================================================
# РАССЫЛКИ
# =============================================================================

@router.post("/send", responses=ERROR_RESPONSES, summary="Отправить уведомление")
async def send_notification(request: SendNotificationRequest, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.send(user, request)


@router.put("/send", responses=ERROR_RESPONSES, summary="Запланировать уведомление")
async def schedule_notification(request: ScheduleNotificationRequest, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.schedule(user, request)


# =============================================================================
# ТОКЕНЫ
# =============================================================================

@router.post("/tokens", responses=ERROR_RESPONSES, summary="Зарегистрировать токен FCM")
async def register_token(request: RegisterTokenRequest, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.register_token(user, request)


@router.get("/tokens", responses=ERROR_RESPONSES, summary="Токены пользователя")
async def list_tokens(user: CurrentUser, service: Service) -> dict:
    return await service.list_tokens(user)


@router.delete("/tokens", responses=ERROR_RESPONSES, summary="Отключить токен FCM")
async def disable_token(
    user: CurrentUser,
    service: Service,
    token_id: Annotated[str | None, Query(alias="tokenId")] = None,
    token: Annotated[str | None, Query()] = None,
) -> dict:
    with service_errors():
        return await service.disable_token(user, token_id, token)


@router.put("/tokens", responses=ERROR_RESPONSES, summary="Предпочтения уведомлений")
async def update_preferences(request: NotificationPreferencesRequest, user: CurrentUser, service: Service) -> dict:
    return await service.update_preferences(user, request)
