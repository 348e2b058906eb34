# src/services/payments/reconciliation.py
"""
Сверка платежей по вебхукам Stripe и Mercado Pago.

Событие провайдера → запись в payments (upsert по id провайдера) →
paymentStatus связанной записи или заявки Taxi Dog → уведомление пользователю.
Повторная доставка того же события приводит к тому же состоянию.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from src.common.localization import format_cents, format_currency, get_text
from src.common.logger import log_error, log_info, log_warning
from src.config import settings
from src.infra.documents import utc_now
from src.infra.errors import WebhookSignatureError
from src.infra.event_bus import EventBus
from src.infra.mercadopago_client import MercadoPagoClient, validate_webhook_signature
from src.services.payments.repository import PaymentRepository
from src.shared.events.payment_events import PaymentStatusChanged
from src.shared.models.enums import PaymentProvider, RelatedPaymentStatus

LOGGER_NAME = "petshop.webhooks"

# Статус Mercado Pago → (статус связанного документа, тип уведомления, ключ текста)
MERCADOPAGO_STATUS_MAP: dict[str, tuple[RelatedPaymentStatus, str | None, str | None]] = {
    "approved": (RelatedPaymentStatus.PAID, "payment_approved", "PAYMENT_APPROVED"),
    "pending": (RelatedPaymentStatus.PENDING, "payment_pending", "PAYMENT_PENDING"),
    "rejected": (RelatedPaymentStatus.PAYMENT_FAILED, "payment_rejected", "PAYMENT_FAILED"),
    "cancelled": (RelatedPaymentStatus.CANCELLED, None, None),
    "refunded": (RelatedPaymentStatus.REFUNDED, "payment_refunded", "PAYMENT_REFUNDED"),
}

MERCADOPAGO_LOGGED_TYPES = {"plan", "subscription", "invoice", "point_integration_wh"}


def mercadopago_metadata_to_camel(metadata: dict[str, Any]) -> dict[str, Any]:
    return {
        "userId": metadata.get("user_id"),
        "petId": metadata.get("pet_id"),
        "appointmentId": metadata.get("appointment_id"),
        "taxiRequestId": metadata.get("taxi_request_id"),
        "serviceType": metadata.get("service_type"),
        "paymentType": metadata.get("payment_type"),
    }


def parse_signature_ts(x_signature: str) -> str | None:
    """ts из заголовка x-signature вида "ts=1704908010,v1=..."."""
    for part in x_signature.split(","):
        key, _, value = part.partition("=")
        if key.strip() == "ts" and value:
            return value.strip()
    return None


class PaymentReconciler:
    """Обработчики вебхуков обоих провайдеров."""

    def __init__(
        self,
        repository: PaymentRepository,
        event_bus: EventBus,
        mercadopago: MercadoPagoClient,
        mercadopago_webhook_secret: str | None = None,
    ) -> None:
        self.repository = repository
        self.event_bus = event_bus
        self.mercadopago = mercadopago
        self.mercadopago_webhook_secret = (
            mercadopago_webhook_secret
            if mercadopago_webhook_secret is not None
            else settings.mercadopago.WEBHOOK_SECRET
        )
        self._stripe_handlers: dict[str, Callable[[dict[str, Any]], Awaitable[None]]] = {
            "checkout.session.completed": self._on_checkout_completed,
            "payment_intent.succeeded": self._on_payment_intent_succeeded,
            "payment_intent.payment_failed": self._on_payment_intent_failed,
            "charge.dispute.created": self._on_dispute_created,
            "invoice.payment_succeeded": self._on_invoice_paid,
        }

    # =========================================================================
    # ОБЩИЕ ШАГИ
    # =========================================================================

    async def update_related_document(self, metadata: dict[str, Any], status: RelatedPaymentStatus) -> None:
        """paymentStatus записи или заявки Taxi Dog; отсутствие документа только логируется."""
        try:
            target = await self.repository.update_related_document(
                metadata.get("paymentType"),
                metadata.get("appointmentId"),
                metadata.get("taxiRequestId"),
                status,
            )
        except LookupError as e:
            await log_warning(f"Связанный документ не обновлён: {e}", logger_name=LOGGER_NAME)
            return

        if target:
            await log_info(f"{target}: paymentStatus={status}", logger_name=LOGGER_NAME)

    async def send_payment_notification(
        self,
        *,
        provider: PaymentProvider,
        payment_id: str,
        status: RelatedPaymentStatus,
        metadata: dict[str, Any],
        notification_type: str,
        text_key: str,
        amount: float,
        amount_display: str,
        currency: str | None,
    ) -> None:
        """Уведомление во входящие и событие payment.status_changed для push."""
        user_id = metadata.get("userId")
        if not user_id:
            await log_warning(f"Платёж {payment_id} без userId, уведомление пропущено", logger_name=LOGGER_NAME)
            return

        title = get_text(f"{text_key}_TITLE")
        message = get_text(f"{text_key}_MESSAGE", amount=amount_display)
        data = {
            "paymentId": payment_id,
            "amount": str(amount),
            "paymentType": metadata.get("paymentType") or "",
        }

        notification_id = f"{provider.value}_{payment_id}_{notification_type}"
        created = await self.repository.add_notification(notification_id, user_id, {
            "type": notification_type,
            "title": title,
            "message": message,
            "body": message,
            "data": data,
        })
        if not created:
            await log_info(f"Уведомление о платеже {payment_id} уже отправлено", logger_name=LOGGER_NAME)
            return

        await self.event_bus.publish(PaymentStatusChanged(
            provider=provider.value,
            payment_id=payment_id,
            status=status.value,
            user_id=user_id,
            payment_type=metadata.get("paymentType"),
            amount=amount,
            currency=currency,
            notification_type=notification_type,
            title=title,
            body=message,
            data=data,
        ))

    # =========================================================================
    # STRIPE
    # =========================================================================

    async def handle_stripe_event(self, event: dict[str, Any]) -> None:
        """Событие уже проверено по подписи (StripeGateway.construct_event)."""
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}
        await log_info(f"Событие Stripe: {event_type}", logger_name=LOGGER_NAME, extra={"event_id": event.get("id")})

        handler = self._stripe_handlers.get(event_type)
        if handler is None:
            await log_info(f"Событие Stripe не обрабатывается: {event_type}", logger_name=LOGGER_NAME)
            return
        await handler(obj)

    async def _on_checkout_completed(self, session: dict[str, Any]) -> None:
        metadata = session.get("metadata")
        if metadata is None:
            return

        now = utc_now()
        amount_total = session.get("amount_total") or 0
        await self.repository.save_payment(session["id"], {
            "paymentIntentId": session.get("payment_intent"),
            "status": "completed",
            "amount": amount_total,
            "currency": session.get("currency") or settings.stripe.CURRENCY,
            "customerEmail": session.get("customer_email"),
            "paymentMethod": "stripe",
            "provider": PaymentProvider.STRIPE.value,
            "metadata": metadata,
            "createdAt": now,
            "updatedAt": now,
        })

        await self.update_related_document(metadata, RelatedPaymentStatus.PAID)
        await self.send_payment_notification(
            provider=PaymentProvider.STRIPE,
            payment_id=session["id"],
            status=RelatedPaymentStatus.PAID,
            metadata=metadata,
            notification_type="payment_approved",
            text_key="PAYMENT_APPROVED",
            amount=amount_total,
            amount_display=format_cents(amount_total),
            currency=session.get("currency"),
        )
        await log_info(f"Checkout завершён: {session['id']}", logger_name=LOGGER_NAME)

    async def _on_payment_intent_succeeded(self, intent: dict[str, Any]) -> None:
        if intent.get("metadata") is None:
            return
        if not await self.repository.update_payment(intent["id"], {"status": "succeeded"}):
            await log_warning(f"payments/{intent['id']} не найден", logger_name=LOGGER_NAME)

    async def _on_payment_intent_failed(self, intent: dict[str, Any]) -> None:
        metadata = intent.get("metadata")
        if metadata is None:
            return

        reason = (intent.get("last_payment_error") or {}).get("message") or "Erro desconhecido"
        if not await self.repository.update_payment(intent["id"], {"status": "failed", "failureReason": reason}):
            await log_warning(f"payments/{intent['id']} не найден", logger_name=LOGGER_NAME)

        amount = intent.get("amount") or 0
        await self.update_related_document(metadata, RelatedPaymentStatus.PAYMENT_FAILED)
        await self.send_payment_notification(
            provider=PaymentProvider.STRIPE,
            payment_id=intent["id"],
            status=RelatedPaymentStatus.PAYMENT_FAILED,
            metadata=metadata,
            notification_type="payment_failed",
            text_key="PAYMENT_FAILED",
            amount=amount,
            amount_display=format_cents(amount),
            currency=intent.get("currency"),
        )

    async def _on_dispute_created(self, dispute: dict[str, Any]) -> None:
        created = dispute.get("created")
        await self.repository.save_dispute(dispute["id"], {
            "id": dispute["id"],
            "chargeId": dispute.get("charge"),
            "amount": dispute.get("amount"),
            "currency": dispute.get("currency"),
            "reason": dispute.get("reason"),
            "status": dispute.get("status"),
            "createdAt": datetime.fromtimestamp(created, tz=timezone.utc) if created else utc_now(),
            "updatedAt": utc_now(),
        })
        await log_warning(f"Открыт спор по платежу: {dispute['id']}", logger_name=LOGGER_NAME)

    async def _on_invoice_paid(self, invoice: dict[str, Any]) -> None:
        await log_info(f"Счёт оплачен: {invoice.get('id')}", logger_name=LOGGER_NAME)

    # =========================================================================
    # MERCADO PAGO
    # =========================================================================

    def verify_mercadopago_signature(
        self,
        data_id: str,
        x_signature: str | None,
        x_request_id: str | None,
        ts: str | None,
    ) -> None:
        """
        Подпись проверяется, только если пришли все её части.

        Raises:
            WebhookSignatureError: подпись не совпала
        """
        ts = ts or (parse_signature_ts(x_signature) if x_signature else None)
        if not (x_signature and x_request_id and ts and data_id):
            return
        if not validate_webhook_signature(x_signature, x_request_id, data_id, ts, self.mercadopago_webhook_secret):
            raise WebhookSignatureError("Assinatura inválida")

    async def handle_mercadopago_notification(self, body: dict[str, Any]) -> None:
        notification_type = body.get("type")
        action = body.get("action")
        data_id = str((body.get("data") or {}).get("id") or "")
        await log_info(
            f"Уведомление Mercado Pago: {notification_type}",
            logger_name=LOGGER_NAME,
            extra={"action": action, "data_id": data_id},
        )

        if notification_type == "payment" and data_id:
            await self._process_mercadopago_payment(data_id, action)
        elif notification_type in MERCADOPAGO_LOGGED_TYPES:
            await log_info(f"Mercado Pago {notification_type}: {data_id} ({action})", logger_name=LOGGER_NAME)
        else:
            await log_info(f"Тип уведомления не обрабатывается: {notification_type}", logger_name=LOGGER_NAME)

    async def _process_mercadopago_payment(self, payment_id: str, action: str | None) -> None:
        """Ошибки внутри обработки платежа логируются, вебхук всё равно отвечает ok."""
        try:
            await self._reconcile_mercadopago_payment(payment_id)
        except Exception as e:
            await log_error(
                f"Ошибка обработки платежа Mercado Pago {payment_id} ({action}): {e}",
                logger_name=LOGGER_NAME,
                exc_info=True,
            )

    async def _reconcile_mercadopago_payment(self, payment_id: str) -> None:
        payment = await self.mercadopago.get_payment(payment_id)
        if not payment or not payment.get("metadata"):
            await log_warning(f"Платёж {payment_id} не найден или без метаданных", logger_name=LOGGER_NAME)
            return

        metadata = mercadopago_metadata_to_camel(payment["metadata"])
        doc_id = str(payment.get("id") or payment_id)
        status = payment.get("status")
        amount = payment.get("transaction_amount") or 0
        currency = payment.get("currency_id") or settings.domain.CURRENCY
        now = utc_now()

        record = {
            "id": doc_id,
            "status": status,
            "statusDetail": payment.get("status_detail"),
            "amount": amount,
            "currency": currency,
            "paymentMethod": payment.get("payment_method_id") or "mercadopago",
            "paymentMethodId": payment.get("payment_method_id"),
            "provider": PaymentProvider.MERCADOPAGO.value,
            "metadata": metadata,
            "dateCreated": payment.get("date_created"),
            "dateApproved": payment.get("date_approved"),
            "updatedAt": now,
        }
        if await self.repository.get_payment(doc_id) is None:
            record["createdAt"] = now
        await self.repository.save_payment(doc_id, record, merge=True)

        if status == "charged_back":
            await self.repository.save_chargeback(doc_id, {
                "paymentId": doc_id,
                "amount": amount,
                "currency": currency,
                "userId": metadata.get("userId"),
                "createdAt": now,
            })
            await log_warning(f"Chargeback по платежу {doc_id}", logger_name=LOGGER_NAME)
            return

        mapping = MERCADOPAGO_STATUS_MAP.get(status or "")
        if mapping is None:
            await log_info(f"Статус платежа не обрабатывается: {status}", logger_name=LOGGER_NAME)
            return

        related_status, notification_type, text_key = mapping
        await self.update_related_document(metadata, related_status)
        if notification_type and text_key:
            await self.send_payment_notification(
                provider=PaymentProvider.MERCADOPAGO,
                payment_id=doc_id,
                status=related_status,
                metadata=metadata,
                notification_type=notification_type,
                text_key=text_key,
                amount=amount,
                amount_display=format_currency(amount, currency),
                currency=currency,
            )
        await log_info(f"Платёж Mercado Pago {doc_id} обработан: {status}", logger_name=LOGGER_NAME)
