# src/worker/notifications.py
"""
Воркер побочных эффектов: уведомления, SMS, email, настройки новых пользователей.

События:
- user.created: custom claims, userSettings, приветственное письмо, аудит
- appointment.created: входящее + push, SMS, напоминание за сутки
- appointment.status_changed: входящее + push для значимых статусов
- taxi_dog.status_changed: входящее + push клиенту
- payment.status_changed: push (входящее уже записано при сверке платежа)

Периодически рассылает отложенные уведомления, время которых наступило.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from redis.exceptions import RedisError

from src.common.constants import LOGGER_WORKER
from src.common.localization import format_datetime_local, get_text
from src.common.logger import log_info, log_warning
from src.config import settings
from src.infra.documents import utc_now
from src.infra.event_bus import EventTypes
from src.infra.firebase import FirebaseAuthError, FirebaseClient, get_firebase
from src.infra.mailer import EmailClient, EmailDeliveryError, get_email_client
from src.infra.sms import SmsClient, SmsDeliveryError, get_sms_client
from src.services.notifications.repository import NotificationRepository
from src.services.notifications.service import NotificationService, build_push_payload
from src.shared.events.appointment_events import AppointmentCreated, AppointmentStatusChanged
from src.shared.events.base import DomainEvent
from src.shared.events.payment_events import PaymentStatusChanged
from src.shared.events.taxi_events import TaxiDogStatusChanged
from src.shared.events.user_events import UserCreated
from src.shared.models.common import as_utc
from src.shared.models.enums import AppointmentStatus, NotificationType, TripStatus
from src.worker.base import BaseWorker

# Повторная доставка того же события в течение суток игнорируется
EVENT_DEDUP_TTL = 24 * 60 * 60

APPOINTMENT_STATUS_TEXTS = {
    AppointmentStatus.CONFIRMED.value: "APPOINTMENT_STATUS_CONFIRMED",
    AppointmentStatus.IN_PROGRESS.value: "APPOINTMENT_STATUS_IN_PROGRESS",
    AppointmentStatus.COMPLETED.value: "APPOINTMENT_STATUS_COMPLETED",
    AppointmentStatus.CANCELLED.value: "APPOINTMENT_STATUS_CANCELLED",
}

DEFAULT_USER_SETTINGS = {
    "notifications": {"email": True, "sms": True, "push": True},
    "preferences": {"language": "pt-BR", "timezone": "America/Sao_Paulo", "currency": "BRL"},
}


def reminder_time(scheduled_date: datetime, lead_hours: int) -> datetime:
    return as_utc(scheduled_date) - timedelta(hours=lead_hours)


# Статусы перевозки, о которых клиент получает уведомление
TAXI_NOTIFY_STATUSES = {s.value for s in TripStatus} - {TripStatus.REQUESTED.value}


def taxi_status_text_key(status: str) -> str:
    return "TAXI_DOG_STATUS_" + status.upper().replace("-", "_")


class NotificationWorker(BaseWorker):
    """Подписывается на доменные события и уведомляет пользователей."""

    def __init__(
        self,
        *args: Any,
        firebase: FirebaseClient | None = None,
        sms: SmsClient | None = None,
        email: EmailClient | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.firebase = firebase or get_firebase()
        self.sms = sms or get_sms_client()
        self.email = email or get_email_client()
        self.repository = NotificationRepository(self.store)
        self.notifications = NotificationService(self.repository, self.firebase)

    @property
    def name(self) -> str:
        return "NotificationWorker"

    @property
    def subscriptions(self) -> list[str]:
        return [
            EventTypes.USER_CREATED,
            EventTypes.APPOINTMENT_CREATED,
            EventTypes.APPOINTMENT_STATUS_CHANGED,
            EventTypes.TAXI_DOG_STATUS_CHANGED,
            EventTypes.PAYMENT_STATUS_CHANGED,
        ]

    async def start(self) -> None:
        await super().start()
        self.run_periodic(
            "scheduled_notifications",
            settings.notifications.SCHEDULED_POLL_INTERVAL,
            self.notifications.dispatch_due_scheduled,
        )

    async def handle_event(self, event: DomainEvent) -> None:
        handlers = {
            EventTypes.USER_CREATED: self._on_user_created,
            EventTypes.APPOINTMENT_CREATED: self._on_appointment_created,
            EventTypes.APPOINTMENT_STATUS_CHANGED: self._on_appointment_status_changed,
            EventTypes.TAXI_DOG_STATUS_CHANGED: self._on_taxi_status_changed,
            EventTypes.PAYMENT_STATUS_CHANGED: self._on_payment_status_changed,
        }

        handler = handlers.get(event.event_type)
        if handler is None:
            return
        if not await self._first_delivery(event):
            await log_info(f"Повторное событие {event.event_id} пропущено", logger_name=LOGGER_WORKER)
            return
        await handler(event)

    async def _first_delivery(self, event: DomainEvent) -> bool:
        try:
            return await self.redis.acquire_lock(f"worker:event:{event.event_id}", EVENT_DEDUP_TTL)
        except RedisError as e:
            await log_warning(f"Дедупликация событий недоступна: {e}", logger_name=LOGGER_WORKER)
            return True

    # =========================================================================
    # ОБЩЕЕ
    # =========================================================================

    async def _notify(
        self,
        user_id: str,
        *,
        title: str,
        body: str,
        notification_type: str,
        category: NotificationType,
        data: dict[str, Any],
    ) -> None:
        """Запись во входящие и push на устройства пользователя."""
        await self.repository.add_notification({
            "userId": user_id,
            "title": title,
            "body": body,
            "type": notification_type,
            "data": data,
            "priority": "normal",
            "read": False,
            "createdAt": utc_now(),
            "createdBy": "system",
        })
        push = build_push_payload(
            title=title,
            body=body,
            notification_type=category.value,
            data={**data, "event": notification_type},
        )
        await self.notifications.push_to_user(user_id, push)

    async def _channel_enabled(self, user_id: str, channel: str) -> bool:
        user_settings = await self.repository.get_user_settings(user_id) or {}
        return (user_settings.get("notifications") or {}).get(channel) is not False

    # =========================================================================
    # ПОЛЬЗОВАТЕЛИ
    # =========================================================================

    async def _on_user_created(self, event: UserCreated) -> None:
        now = utc_now()

        try:
            await self.firebase.set_custom_user_claims(
                event.user_id,
                {"role": event.role, "createdAt": int(now.timestamp() * 1000)},
            )
        except FirebaseAuthError as e:
            await log_warning(f"Не удалось установить claims {event.user_id}: {e}", logger_name=LOGGER_WORKER)

        await self.repository.set_user_settings(event.user_id, {
            **DEFAULT_USER_SETTINGS,
            "createdAt": now,
            "updatedAt": now,
        })

        if event.email:
            try:
                await self.email.send_email(
                    event.email,
                    get_text("WELCOME_EMAIL_SUBJECT"),
                    get_text("WELCOME_EMAIL_HTML", name=event.name or event.email),
                )
            except EmailDeliveryError as e:
                await log_warning(f"Приветственное письмо не отправлено: {e}", logger_name=LOGGER_WORKER)

        await self.repository.add_audit_log({
            "type": "user_created",
            "userId": event.user_id,
            "data": {"role": event.role},
            "timestamp": now,
        })
        await log_info(f"Пользователь {event.user_id} настроен", logger_name=LOGGER_WORKER)

    # =========================================================================
    # ЗАПИСИ
    # =========================================================================

    async def _on_appointment_created(self, event: AppointmentCreated) -> None:
        client = await self.repository.get_client(event.client_id)
        if client is None:
            await log_warning(f"Клиент {event.client_id} не найден", logger_name=LOGGER_WORKER)
            return

        recipient = event.user_id or client.get("userId") or event.client_id
        date_text = format_datetime_local(event.scheduled_date, settings.domain.TIMEZONE)

        await self._notify(
            recipient,
            title=get_text("APPOINTMENT_CREATED_TITLE"),
            body=get_text("APPOINTMENT_CREATED_MESSAGE", date=date_text),
            notification_type="appointment_confirmed",
            category=NotificationType.APPOINTMENT,
            data={"appointmentId": event.appointment_id},
        )

        phone = client.get("phone")
        if phone and await self._channel_enabled(recipient, "sms"):
            try:
                await self.sms.send_sms(
                    phone,
                    get_text("APPOINTMENT_CREATED_SMS", name=client.get("name") or "", date=date_text),
                )
            except SmsDeliveryError as e:
                await log_warning(f"SMS о записи {event.appointment_id} не отправлено: {e}", logger_name=LOGGER_WORKER)

        await self._schedule_reminder(event, recipient, date_text)

    async def _schedule_reminder(self, event: AppointmentCreated, recipient: str, date_text: str) -> None:
        remind_at = reminder_time(event.scheduled_date, settings.notifications.REMINDER_LEAD_HOURS)
        if remind_at <= utc_now():
            return

        await self.repository.set_scheduled(f"reminder_{event.appointment_id}", {
            "title": get_text("APPOINTMENT_REMINDER_TITLE"),
            "body": get_text("APPOINTMENT_REMINDER_MESSAGE", date=date_text),
            "type": NotificationType.APPOINTMENT.value,
            "userId": recipient,
            "data": {"appointmentId": event.appointment_id},
            "priority": "normal",
            "scheduledTime": remind_at,
            "status": "pending",
            "createdBy": "system",
            "createdAt": utc_now(),
        })

    async def _on_appointment_status_changed(self, event: AppointmentStatusChanged) -> None:
        key = APPOINTMENT_STATUS_TEXTS.get(event.new_status)
        if key is None:
            return

        recipient = event.user_id
        if not recipient:
            client = await self.repository.get_client(event.client_id) or {}
            recipient = client.get("userId") or event.client_id

        await self._notify(
            recipient,
            title=get_text(f"{key}_TITLE"),
            body=get_text(f"{key}_MESSAGE"),
            notification_type="appointment_status_changed",
            category=NotificationType.APPOINTMENT,
            data={"appointmentId": event.appointment_id, "status": event.new_status},
        )

    # =========================================================================
    # TAXI DOG И ПЛАТЕЖИ
    # =========================================================================

    async def _on_taxi_status_changed(self, event: TaxiDogStatusChanged) -> None:
        if event.new_status not in TAXI_NOTIFY_STATUSES or not event.client_id:
            return

        await self._notify(
            event.client_id,
            title=get_text("TAXI_DOG_STATUS_TITLE"),
            body=get_text(taxi_status_text_key(event.new_status)),
            notification_type="taxi_dog_status_changed",
            category=NotificationType.TAXI_DOG,
            data={"taxiRequestId": event.request_id, "status": event.new_status},
        )

    async def _on_payment_status_changed(self, event: PaymentStatusChanged) -> None:
        if not event.user_id or not event.title or not event.body:
            return

        push = build_push_payload(
            title=event.title,
            body=event.body,
            notification_type=NotificationType.PAYMENT.value,
            data={**event.data, "paymentId": event.payment_id, "event": event.notification_type or ""},
            priority="high",
        )
        result = await self.notifications.push_to_user(event.user_id, push)
        await log_info(
            f"Push о платеже {event.payment_id}: {result['successful']}/{result['tokens']}",
            logger_name=LOGGER_WORKER,
        )
