# src/services/payments/repository.py
"""
Репозиторий платежных документов.
Коллекции: payments, disputes, chargebacks, notifications,
а также paymentStatus в appointments и taxiRequests.
"""

from __future__ import annotations

from typing import Any

from src.common.constants import Collections
from src.infra.documents import DocumentStore, utc_now
from src.shared.models.enums import PaymentType, RelatedPaymentStatus


class PaymentRepository:
    """Репозиторий платежей."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def get_payment(self, payment_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.PAYMENTS, payment_id)

    async def save_payment(self, payment_id: str, data: dict[str, Any], merge: bool = False) -> None:
        """Создать или перезаписать платёж по id провайдера."""
        await self.store.set(Collections.PAYMENTS, payment_id, data, merge=merge)

    async def update_payment(self, payment_id: str, fields: dict[str, Any]) -> bool:
        return await self.store.update(Collections.PAYMENTS, payment_id, {**fields, "updatedAt": utc_now()})

    async def save_dispute(self, dispute_id: str, data: dict[str, Any]) -> None:
        await self.store.set(Collections.DISPUTES, dispute_id, data)

    async def save_chargeback(self, payment_id: str, data: dict[str, Any]) -> None:
        await self.store.set(Collections.CHARGEBACKS, payment_id, data)

    async def update_related_document(
        self,
        payment_type: str | None,
        appointment_id: str | None,
        taxi_request_id: str | None,
        status: RelatedPaymentStatus,
    ) -> str | None:
        """
        Выставляет paymentStatus записи или заявки Taxi Dog.

        Returns:
            "appointments/<id>" или "taxiRequests/<id>", если документ обновлён;
            None, если тип платежа ни к чему не привязан.

        Raises:
            LookupError: связанный документ не найден
        """
        if payment_type == PaymentType.APPOINTMENT.value and appointment_id:
            collection, doc_id = Collections.APPOINTMENTS, appointment_id
        elif payment_type == PaymentType.TAXI_DOG.value and taxi_request_id:
            collection, doc_id = Collections.TAXI_REQUESTS, taxi_request_id
        else:
            return None

        updated = await self.store.update(collection, doc_id, {
            "paymentStatus": status.value,
            "updatedAt": utc_now(),
        })
        if not updated:
            raise LookupError(f"{collection}/{doc_id} не найден")
        return f"{collection}/{doc_id}"

    async def add_notification(self, notification_id: str, user_id: str, notification: dict[str, Any]) -> bool:
        """
        Уведомление во входящие пользователя (read=false).
        False, если уведомление с таким id уже записано (повтор вебхука).
        """
        return await self.store.create(Collections.NOTIFICATIONS, notification_id, {
            "userId": user_id,
            **notification,
            "read": False,
            "createdAt": utc_now(),
        })
