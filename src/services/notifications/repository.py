# src/services/notifications/repository.py
"""
Repository уведомлений: токены FCM, входящие, журнал рассылок и отложенные рассылки.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from src.common.constants import Collections
from src.infra.documents import DocumentStore, Where, utc_now


class NotificationRepository:
    """Доступ к коллекциям уведомлений в документном хранилище."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    # =========================================================================
    # ПОЛЬЗОВАТЕЛИ
    # =========================================================================

    async def user_ids(self, role: str | None = None) -> list[str]:
        filters = [Where("role", "==", role)] if role else []
        users = await self.store.query(Collections.USERS, filters)
        return [u["id"] for u in users]

    async def set_user_preferences(self, user_id: str, preferences: dict[str, bool]) -> None:
        await self.store.set(
            Collections.USERS,
            user_id,
            {"notificationPreferences": preferences, "updatedAt": utc_now()},
            merge=True,
        )

    # =========================================================================
    # ТОКЕНЫ FCM
    # =========================================================================

    async def enabled_tokens(self, user_ids: Sequence[str]) -> list[dict[str, Any]]:
        if not user_ids:
            return []
        return await self.store.query(
            Collections.FCM_TOKENS,
            [Where("userId", "in", list(user_ids)), Where("enabled", "==", True)],
        )

    async def get_token(self, token_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.FCM_TOKENS, token_id)

    async def find_token(self, token: str) -> dict[str, Any] | None:
        docs = await self.store.query(Collections.FCM_TOKENS, [Where("token", "==", token)], limit=1)
        return docs[0] if docs else None

    async def user_tokens(self, user_id: str) -> list[dict[str, Any]]:
        return await self.store.query(
            Collections.FCM_TOKENS,
            [Where("userId", "==", user_id)],
            order_by="lastUsed",
            descending=True,
        )

    async def add_token(self, data: dict[str, Any]) -> str:
        return await self.store.add(Collections.FCM_TOKENS, data)

    async def update_token(self, token_id: str, fields: dict[str, Any]) -> bool:
        return await self.store.update(Collections.FCM_TOKENS, token_id, fields)

    async def disable_device_tokens(self, user_id: str, device_type: str) -> int:
        """Отключает прежние токены пользователя для данного типа устройства."""
        return await self.store.update_where(
            Collections.FCM_TOKENS,
            [Where("userId", "==", user_id), Where("deviceType", "==", device_type), Where("enabled", "==", True)],
            {"enabled": False, "disabledAt": utc_now()},
        )

    async def disable_token_value(self, token: str, reason: str) -> int:
        """Отключает все документы с этим значением токена."""
        return await self.store.update_where(
            Collections.FCM_TOKENS,
            [Where("token", "==", token)],
            {"enabled": False, "disabledAt": utc_now(), "disabledReason": reason},
        )

    async def set_token_preferences(self, user_id: str, preferences: dict[str, bool]) -> int:
        return await self.store.update_where(
            Collections.FCM_TOKENS,
            [Where("userId", "==", user_id), Where("enabled", "==", True)],
            {"preferences": preferences, "updatedAt": utc_now()},
        )

    # =========================================================================
    # ВХОДЯЩИЕ
    # =========================================================================

    async def add_notification(self, data: dict[str, Any]) -> str:
        return await self.store.add(Collections.NOTIFICATIONS, data)

    async def get_notification(self, notification_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.NOTIFICATIONS, notification_id)

    async def list_notifications(
        self, filters: Sequence[Where], limit: int, offset: int
    ) -> list[dict[str, Any]]:
        return await self.store.query(
            Collections.NOTIFICATIONS,
            filters,
            order_by="createdAt",
            descending=True,
            limit=limit,
            offset=offset,
        )

    async def count_notifications(self, filters: Sequence[Where]) -> int:
        return await self.store.count(Collections.NOTIFICATIONS, filters)

    async def mark_read(self, filters: Sequence[Where], read_at: datetime) -> int:
        return await self.store.update_where(
            Collections.NOTIFICATIONS, filters, {"read": True, "readAt": read_at}
        )

    async def delete_notifications(self, filters: Sequence[Where]) -> int:
        return await self.store.delete_where(Collections.NOTIFICATIONS, filters)

    async def delete_notification(self, notification_id: str) -> bool:
        return await self.store.delete(Collections.NOTIFICATIONS, notification_id)

    # =========================================================================
    # ЖУРНАЛ И ОТЛОЖЕННЫЕ РАССЫЛКИ
    # =========================================================================

    async def add_log(self, data: dict[str, Any]) -> str:
        return await self.store.add(Collections.NOTIFICATION_LOGS, data)

    async def add_scheduled(self, data: dict[str, Any]) -> str:
        return await self.store.add(Collections.SCHEDULED_NOTIFICATIONS, data)

    async def due_scheduled(self, now: datetime, limit: int) -> list[dict[str, Any]]:
        return await self.store.query(
            Collections.SCHEDULED_NOTIFICATIONS,
            [Where("status", "==", "pending"), Where("scheduledTime", "<=", now)],
            order_by="scheduledTime",
            limit=limit,
        )

    async def claim_scheduled(self, scheduled_id: str) -> bool:
        """pending → processing одним UPDATE: True только для одного из конкурирующих воркеров."""
        claimed = await self.store.update_where(
            Collections.SCHEDULED_NOTIFICATIONS,
            [Where("id", "==", scheduled_id), Where("status", "==", "pending")],
            {"status": "processing", "claimedAt": utc_now()},
        )
        return claimed == 1

    async def finish_scheduled(self, scheduled_id: str, fields: dict[str, Any]) -> None:
        await self.store.update(Collections.SCHEDULED_NOTIFICATIONS, scheduled_id, fields)

    async def set_scheduled(self, scheduled_id: str, data: dict[str, Any]) -> None:
        """Отложенная рассылка с заданным id (повторная запись заменяет прежнюю)."""
        await self.store.set(Collections.SCHEDULED_NOTIFICATIONS, scheduled_id, data)

    # =========================================================================
    # НАСТРОЙКИ И АУДИТ
    # =========================================================================

    async def get_user_settings(self, user_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.USER_SETTINGS, user_id)

    async def set_user_settings(self, user_id: str, data: dict[str, Any]) -> None:
        await self.store.set(Collections.USER_SETTINGS, user_id, data, merge=True)

    async def get_client(self, client_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.CLIENTS, client_id)

    async def add_audit_log(self, data: dict[str, Any]) -> str:
        return await self.store.add(Collections.LOGS, {**data, "createdAt": utc_now()})
