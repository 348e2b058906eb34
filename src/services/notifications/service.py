# src/services/notifications/service.py
"""
Бизнес-логика уведомлений.

Рассылка (fan-out): получатели → их активные токены FCM → параллельная
отправка на каждый токен. Ошибка одного токена не прерывает остальные;
токены, которые FCM признал недействительными, отключаются.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from src.common.constants import LOGGER_NOTIFICATIONS
from src.common.localization import get_text
from src.common.logger import log_error, log_info, log_warning
from src.config import settings
from src.infra.documents import Where, utc_now
from src.infra.firebase import FirebaseClient, PushDeliveryError
from src.services.notifications.repository import NotificationRepository
from src.shared.models.common import Pagination
from src.shared.models.enums import DeviceType, NotificationPriority, NotificationType
from src.shared.models.notification import (
    MarkReadRequest,
    NotificationPreferencesRequest,
    PushPayload,
    RegisterTokenRequest,
    ScheduleNotificationRequest,
    SendNotificationRequest,
)
from src.shared.models.user import AuthUser

NOTIFICATION_TYPES = {t.value for t in NotificationType}
PRIORITIES = {p.value for p in NotificationPriority}
DEVICE_TYPES = {d.value for d in DeviceType}

TOKEN_PREVIEW_LENGTH = 20
DEFAULT_PAGE_SIZE = 20


def token_preview(token: str) -> str:
    return f"{token[:TOKEN_PREVIEW_LENGTH]}..."


def build_push_payload(
    *,
    title: str,
    body: str,
    notification_type: str,
    data: dict[str, Any] | None = None,
    image_url: str | None = None,
    action_url: str | None = None,
    priority: str = "normal",
) -> PushPayload:
    """Push одинаковый для всех токенов; data содержит type, actionUrl и пользовательские поля."""
    payload_data: dict[str, Any] = {"type": notification_type}
    if action_url:
        payload_data["actionUrl"] = action_url
    payload_data.update(data or {})

    cfg = settings.notifications
    category = notification_type if notification_type in NOTIFICATION_TYPES else NotificationType.GENERAL.value
    return PushPayload(
        title=title,
        body=body,
        notification_type=notification_type,
        image_url=image_url,
        action_url=action_url,
        priority=priority,
        data={k: str(v) for k, v in payload_data.items()},
        channel_id=f"{cfg.ANDROID_CHANNEL_PREFIX}{category}",
        icon=cfg.WEB_ICON,
        badge=cfg.WEB_BADGE,
        open_action_title=get_text("PUSH_OPEN_ACTION"),
    )


def _allows(token_doc: dict[str, Any], notification_type: str) -> bool:
    """Отписка от категории хранится в preferences токена как False."""
    return (token_doc.get("preferences") or {}).get(notification_type) is not False


class NotificationService:
    """Рассылки, отложенные рассылки, токены устройств и входящие уведомления."""

    def __init__(self, repository: NotificationRepository, firebase: FirebaseClient) -> None:
        self.repository = repository
        self.firebase = firebase

    # =========================================================================
    # РАССЫЛКА
    # =========================================================================

    async def resolve_targets(self, sender_id: str, is_admin: bool, request: SendNotificationRequest) -> list[str]:
        """
        userId → [userId]; userIds → они; role (только admin) → все с этой ролью;
        admin без фильтров → все пользователи; иначе только сам отправитель.
        """
        if request.user_id:
            return [request.user_id]
        if request.user_ids:
            return list(dict.fromkeys(request.user_ids))
        if request.role and is_admin:
            return await self.repository.user_ids(role=request.role)
        if is_admin:
            return await self.repository.user_ids()
        return [sender_id]

    @staticmethod
    def _validate_message(request: SendNotificationRequest) -> None:
        if not request.title or not request.body or not request.type:
            raise ValueError("Título, corpo e tipo da notificação são obrigatórios")
        if request.type not in NOTIFICATION_TYPES:
            raise ValueError(f"Tipo de notificação inválido: {request.type}")
        if request.priority not in PRIORITIES:
            raise ValueError(f"Prioridade inválida: {request.priority}")

    async def send(self, sender: AuthUser, request: SendNotificationRequest) -> dict[str, Any]:
        return await self.fan_out(sender.uid, sender.is_admin, request)

    async def fan_out(self, sender_id: str, is_admin: bool, request: SendNotificationRequest) -> dict[str, Any]:
        """
        Raises:
            ValueError: пустые поля, нет получателей или нет активных токенов
        """
        self._validate_message(request)

        targets = await self.resolve_targets(sender_id, is_admin, request)
        if not targets:
            raise ValueError("Nenhum destinatário encontrado")

        tokens = [t for t in await self.repository.enabled_tokens(targets) if _allows(t, request.type)]
        if not tokens:
            raise ValueError("Nenhum token FCM ativo encontrado para os destinatários")

        push = build_push_payload(
            title=request.title,
            body=request.body,
            notification_type=request.type,
            data=request.data,
            image_url=request.image_url,
            action_url=request.action_url,
            priority=request.priority,
        )

        outcomes = await asyncio.gather(
            *(self._deliver(token_doc, push, request, sender_id) for token_doc in tokens),
            return_exceptions=True,
        )

        results: list[dict[str, Any]] = []
        for token_doc, outcome in zip(tokens, outcomes):
            if isinstance(outcome, BaseException):
                await log_error(
                    f"Сбой доставки уведомления пользователю {token_doc.get('userId')}: {outcome}",
                    logger_name=LOGGER_NOTIFICATIONS,
                )
                results.append({"success": False, "userId": token_doc.get("userId"), "error": str(outcome)})
            else:
                results.append(outcome)

        successful = sum(1 for r in results if r["success"])
        failed = len(results) - successful

        await self.repository.add_log({
            "sentBy": sender_id,
            "title": request.title,
            "type": request.type,
            "targetUserIds": targets,
            "tokensFound": len(tokens),
            "successful": successful,
            "failed": failed,
            "timestamp": utc_now(),
        })

        await log_info(
            f"Рассылка '{request.type}': получателей {len(targets)}, токенов {len(tokens)}, "
            f"успешно {successful}, ошибок {failed}",
            logger_name=LOGGER_NOTIFICATIONS,
        )

        return {
            "message": "Notificações processadas",
            "stats": {
                "targetUsers": len(targets),
                "tokensFound": len(tokens),
                "successful": successful,
                "failed": failed,
            },
            "results": results,
        }

    async def _deliver(
        self,
        token_doc: dict[str, Any],
        push: PushPayload,
        request: SendNotificationRequest,
        sender_id: str,
    ) -> dict[str, Any]:
        user_id = token_doc.get("userId")
        message_id = await self._send_to_token(token_doc["token"], push)
        if message_id is None:
            return {"success": False, "userId": user_id, "error": "Falha ao enviar notificação"}

        await self.repository.add_notification({
            "userId": user_id,
            "title": request.title,
            "body": request.body,
            "type": request.type,
            "data": request.data,
            "imageUrl": request.image_url,
            "actionUrl": request.action_url,
            "priority": request.priority,
            "read": False,
            "fcmMessageId": message_id,
            "createdAt": utc_now(),
            "createdBy": sender_id,
        })
        return {"success": True, "userId": user_id, "messageId": message_id}

    async def _send_to_token(self, token: str, push: PushPayload) -> str | None:
        """Отправка на один токен. None при ошибке; недействительный токен отключается."""
        try:
            return await self.firebase.send_push(token, push)
        except PushDeliveryError as e:
            if e.token_invalid:
                disabled = await self.repository.disable_token_value(token, "invalid_token")
                await log_warning(
                    f"Токен {token_preview(token)} недействителен, отключено документов: {disabled}",
                    logger_name=LOGGER_NOTIFICATIONS,
                )
            else:
                await log_warning(f"Ошибка доставки push: {e}", logger_name=LOGGER_NOTIFICATIONS)
            return None

    async def push_to_user(self, user_id: str, push: PushPayload) -> dict[str, int]:
        """Push на все активные токены пользователя без записи во входящие."""
        tokens = [t for t in await self.repository.enabled_tokens([user_id]) if _allows(t, push.notification_type)]
        if not tokens:
            return {"tokens": 0, "successful": 0, "failed": 0}

        message_ids = await asyncio.gather(*(self._send_to_token(t["token"], push) for t in tokens))
        successful = sum(1 for m in message_ids if m)
        return {"tokens": len(tokens), "successful": successful, "failed": len(tokens) - successful}

    # =========================================================================
    # ОТЛОЖЕННЫЕ РАССЫЛКИ
    # =========================================================================

    async def schedule(self, sender: AuthUser, request: ScheduleNotificationRequest) -> dict[str, Any]:
        if not sender.is_admin:
            raise PermissionError("Acesso negado")
        if request.scheduled_time is None:
            raise ValueError("Hora agendada é obrigatória")
        self._validate_message(request)

        data = request.model_dump(by_alias=True, exclude={"scheduled_time"})
        scheduled_id = await self.repository.add_scheduled({
            **data,
            "scheduledTime": request.scheduled_time,
            "status": "pending",
            "createdBy": sender.uid,
            "createdAt": utc_now(),
        })
        return {"message": "Notificação agendada com sucesso", "id": scheduled_id}

    async def dispatch_due_scheduled(self, now: datetime | None = None, batch_size: int | None = None) -> int:
        """
        Рассылает отложенные уведомления, время которых наступило.
        Каждое сначала захватывается (pending → processing), чтобы не уйти дважды.

        Returns:
            Количество обработанных рассылок
        """
        now = now or utc_now()
        batch_size = batch_size or settings.notifications.SCHEDULED_BATCH_SIZE

        processed = 0
        for doc in await self.repository.due_scheduled(now, batch_size):
            if not await self.repository.claim_scheduled(doc["id"]):
                continue
            processed += 1

            try:
                request = SendNotificationRequest.model_validate(doc)
                result = await self.fan_out(doc.get("createdBy") or "system", True, request)
                await self.repository.finish_scheduled(doc["id"], {
                    "status": "sent",
                    "stats": result["stats"],
                    "sentAt": utc_now(),
                })
            except (ValueError, ValidationError) as e:
                await log_warning(
                    f"Отложенная рассылка {doc['id']} не выполнена: {e}",
                    logger_name=LOGGER_NOTIFICATIONS,
                )
                await self._fail_scheduled(doc["id"], e)
                continue
            except Exception as e:
                # Часть push могла уйти, поэтому рассылка не возвращается в pending
                await log_error(
                    f"Ошибка отложенной рассылки {doc['id']}: {e}",
                    logger_name=LOGGER_NOTIFICATIONS,
                    exc_info=True,
                )
                await self._fail_scheduled(doc["id"], e)

        return processed

    async def _fail_scheduled(self, scheduled_id: str, error: Exception) -> None:
        try:
            await self.repository.finish_scheduled(scheduled_id, {
                "status": "failed",
                "error": str(error),
                "processedAt": utc_now(),
            })
        except Exception as e:
            await log_error(
                f"Не удалось отметить рассылку {scheduled_id} как failed: {e}",
                logger_name=LOGGER_NOTIFICATIONS,
            )

    # =========================================================================
    # ТОКЕНЫ
    # =========================================================================

    async def register_token(self, user: AuthUser, request: RegisterTokenRequest) -> dict[str, Any]:
        if not request.token or not request.device_type:
            raise ValueError("Token FCM e tipo de dispositivo são obrigatórios")
        if request.device_type not in DEVICE_TYPES:
            raise ValueError(f"Tipo de dispositivo inválido: {request.device_type}")

        now = utc_now()
        existing = await self.repository.find_token(request.token)
        if existing:
            await self.repository.update_token(existing["id"], {
                "userId": user.uid,
                "deviceType": request.device_type,
                "deviceInfo": request.device_info,
                "enabled": True,
                "lastUsed": now,
                "updatedAt": now,
            })
            return {"message": "Token FCM atualizado com sucesso", "tokenId": existing["id"]}

        await self.repository.disable_device_tokens(user.uid, request.device_type)
        token_id = await self.repository.add_token({
            "userId": user.uid,
            "token": request.token,
            "deviceType": request.device_type,
            "deviceInfo": request.device_info,
            "enabled": True,
            "createdAt": now,
            "lastUsed": now,
            "updatedAt": now,
        })
        return {"message": "Token FCM registrado com sucesso", "tokenId": token_id}

    async def list_tokens(self, user: AuthUser) -> dict[str, Any]:
        docs = await self.repository.user_tokens(user.uid)
        tokens = [
            {
                "id": doc["id"],
                "deviceType": doc.get("deviceType"),
                "deviceInfo": doc.get("deviceInfo") or {},
                "enabled": bool(doc.get("enabled")),
                "createdAt": doc.get("createdAt"),
                "lastUsed": doc.get("lastUsed"),
                "tokenPreview": token_preview(doc.get("token", "")),
            }
            for doc in docs
        ]
        return {
            "tokens": tokens,
            "total": len(tokens),
            "active": sum(1 for t in tokens if t["enabled"]),
        }

    async def disable_token(self, user: AuthUser, token_id: str | None, token: str | None) -> dict[str, Any]:
        if not token_id and not token:
            raise ValueError("ID do token ou token FCM é obrigatório")

        doc = await self.repository.get_token(token_id) if token_id else await self.repository.find_token(token)
        if doc is None:
            raise LookupError("Token não encontrado")
        if doc.get("userId") != user.uid and not user.is_admin:
            raise PermissionError("Acesso negado")

        await self.repository.update_token(doc["id"], {
            "enabled": False,
            "disabledAt": utc_now(),
            "disabledBy": user.uid,
        })
        return {"message": "Token FCM desabilitado com sucesso"}

    async def update_preferences(self, user: AuthUser, request: NotificationPreferencesRequest) -> dict[str, Any]:
        preferences = {
            key: value
            for key, value in request.preferences.items()
            if key in NOTIFICATION_TYPES and isinstance(value, bool)
        }
        await self.repository.set_user_preferences(user.uid, preferences)
        await self.repository.set_token_preferences(user.uid, preferences)
        return {"message": "Preferências de notificação atualizadas com sucesso", "preferences": preferences}

    # =========================================================================
    # ВХОДЯЩИЕ
    # =========================================================================

    async def list_inbox(
        self,
        user: AuthUser,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        notification_type: str | None = None,
        unread: bool = False,
        priority: str | None = None,
    ) -> dict[str, Any]:
        page = max(page, 1)
        limit = min(max(limit, 1), settings.notifications.INBOX_MAX_PAGE_SIZE)

        filters = [Where("userId", "==", user.uid)]
        if notification_type:
            filters.append(Where("type", "==", notification_type))
        if unread:
            filters.append(Where("read", "==", False))
        if priority:
            filters.append(Where("priority", "==", priority))

        docs = await self.repository.list_notifications(filters, limit=limit, offset=(page - 1) * limit)
        total = await self.repository.count_notifications(filters)

        owner = [Where("userId", "==", user.uid)]
        all_count = await self.repository.count_notifications(owner)
        unread_count = await self.repository.count_notifications([*owner, Where("read", "==", False)])

        items = [
            {
                "id": doc["id"],
                "title": doc.get("title"),
                "body": doc.get("body"),
                "type": doc.get("type"),
                "priority": doc.get("priority", "normal"),
                "read": bool(doc.get("read")),
                "imageUrl": doc.get("imageUrl"),
                "actionUrl": doc.get("actionUrl"),
                "data": doc.get("data") or {},
                "createdAt": doc.get("createdAt"),
                "readAt": doc.get("readAt"),
            }
            for doc in docs
        ]

        return {
            "notifications": items,
            "pagination": Pagination.create(page, limit, total).model_dump(by_alias=True),
            "stats": {"total": all_count, "unread": unread_count, "read": all_count - unread_count},
        }

    async def _owned(self, user: AuthUser, notification_id: str) -> dict[str, Any]:
        doc = await self.repository.get_notification(notification_id)
        if doc is None:
            raise LookupError("Notificação não encontrada")
        if doc.get("userId") != user.uid:
            raise PermissionError("Acesso negado")
        return doc

    async def mark_read(self, user: AuthUser, request: MarkReadRequest) -> dict[str, Any]:
        now = utc_now()
        owner = Where("userId", "==", user.uid)

        if request.mark_all_as_read:
            count = await self.repository.mark_read([owner, Where("read", "==", False)], now)
            return {"message": f"{count} notificações marcadas como lidas", "count": count}

        if request.notification_ids:
            count = await self.repository.mark_read([owner, Where("id", "in", request.notification_ids)], now)
            return {"message": f"{count} notificações processadas", "count": count}

        if request.notification_id:
            await self._owned(user, request.notification_id)
            await self.repository.mark_read([Where("id", "==", request.notification_id)], now)
            return {"message": "Notificação marcada como lida", "count": 1}

        raise ValueError("ID da notificação é obrigatório")

    async def delete(
        self,
        user: AuthUser,
        notification_id: str | None = None,
        delete_all: bool = False,
        delete_read: bool = False,
    ) -> dict[str, Any]:
        owner = Where("userId", "==", user.uid)

        if delete_all:
            count = await self.repository.delete_notifications([owner])
            return {"message": f"{count} notificações excluídas", "count": count}

        if delete_read:
            count = await self.repository.delete_notifications([owner, Where("read", "==", True)])
            return {"message": f"{count} notificações lidas excluídas", "count": count}

        if notification_id:
            await self._owned(user, notification_id)
            await self.repository.delete_notification(notification_id)
            return {"message": "Notificação excluída com sucesso", "count": 1}

        raise ValueError("Parâmetro de deleção é obrigatório")
