# src/shared/models/notification.py
"""
Модели уведомлений: тело push-сообщения и запросы API рассылок, токенов и входящих.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.shared.models.common import ApiModel, UtcDatetime


class PushPayload(BaseModel):
    """Содержимое push-сообщения, не зависящее от конкретного токена."""

    title: str
    body: str
    notification_type: str = "general"
    image_url: str | None = None
    action_url: str | None = None
    priority: str = "normal"
    data: dict[str, Any] = Field(default_factory=dict)
    channel_id: str = "luna_general"
    icon: str = "/icons/icon-192x192.png"
    badge: str = "/icons/badge-72x72.png"
    open_action_title: str = "Abrir"


class SendNotificationRequest(ApiModel):
    title: str | None = None
    body: str | None = None
    type: str | None = None
    user_id: str | None = None
    user_ids: list[str] | None = None
    role: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    image_url: str | None = None
    action_url: str | None = None
    priority: str = "normal"


class ScheduleNotificationRequest(SendNotificationRequest):
    scheduled_time: UtcDatetime | None = None


class RegisterTokenRequest(ApiModel):
    token: str | None = None
    device_type: str | None = None
    device_info: dict[str, Any] = Field(default_factory=dict)


class NotificationPreferencesRequest(ApiModel):
    preferences: dict[str, Any] = Field(default_factory=dict)


class MarkReadRequest(ApiModel):
    notification_id: str | None = None
    notification_ids: list[str] | None = None
    mark_all_as_read: bool = False
