# src/services/payments/service.py
"""
Создание оплаты: Stripe Checkout, Mercado Pago (Checkout Pro и PIX),
проверка статуса и возвраты.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Any

from src.common.localization import get_text
from src.common.logger import log_info
from src.config import settings
from src.infra.mercadopago_client import MercadoPagoClient
from src.infra.stripe_gateway import StripeGateway
from src.shared.models.enums import PaymentProvider, PaymentType
from src.shared.models.payment import (
    MercadoPagoPaymentRequest,
    PaymentMetadata,
    RefundRequest,
    StripeCheckoutRequest,
)
from src.shared.models.user import AuthUser

LOGGER_NAME = "petshop.payments"

SESSION_FIELDS = (
    "id", "status", "payment_status", "amount_total", "currency",
    "customer_email", "metadata", "payment_intent",
)
PIX_FIELDS = (
    "id", "status", "payment_method_id", "transaction_amount",
    "currency_id", "date_created", "date_of_expiration",
)
PREFERENCE_CREATED_FIELDS = (
    "id", "init_point", "sandbox_init_point", "client_id", "collector_id",
    "operation_type", "items", "date_created", "expires",
    "expiration_date_from", "expiration_date_to",
)
PREFERENCE_STATUS_FIELDS = (
    "id", "status", "items", "payer", "back_urls", "date_created",
    "expires", "expiration_date_from", "expiration_date_to",
)


def _pick(data: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    return {field: data.get(field) for field in fields}


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def product_name(service_type: str, payment_type: str) -> str:
    """Название позиции в Checkout по типу платежа."""
    try:
        key = f"CHECKOUT_{PaymentType(payment_type).name}_NAME"
    except ValueError:
        key = "CHECKOUT_DEFAULT_NAME"
    return get_text(key, service=service_type)


def product_description(payment_type: str) -> str:
    try:
        key = f"CHECKOUT_{PaymentType(payment_type).name}_DESCRIPTION"
    except ValueError:
        key = "CHECKOUT_DEFAULT_DESCRIPTION"
    return get_text(key)


def _validate_payment_type(payment_type: str) -> None:
    if payment_type not in {t.value for t in PaymentType}:
        raise ValueError("paymentType inválido: use appointment, taxi_dog, product ou service")


class PaymentService:
    """
    Сервис создания платежей.

    Ответственности:
    - Checkout-сессии Stripe и PaymentIntent
    - Preference и PIX в Mercado Pago
    - Статусы платежей у провайдеров
    - Возвраты
    """

    def __init__(self, stripe: StripeGateway, mercadopago: MercadoPagoClient) -> None:
        self.stripe = stripe
        self.mercadopago = mercadopago

    # === STRIPE ===

    async def create_stripe_checkout(self, user: AuthUser, request: StripeCheckoutRequest) -> dict[str, Any]:
        """
        Создаёт сессию Stripe Checkout на сумму в реалах.

        Raises:
            ValueError: не хватает обязательных полей
        """
        if not request.amount or not request.service_type or not request.payment_type:
            raise ValueError("Dados obrigatórios: amount, serviceType, paymentType")
        if not request.success_url or not request.cancel_url:
            raise ValueError("URLs de sucesso e cancelamento são obrigatórias")
        _validate_payment_type(request.payment_type)

        amount_cents = to_cents(request.amount)
        metadata = PaymentMetadata(
            user_id=user.uid,
            service_type=request.service_type,
            payment_type=request.payment_type,
            pet_id=request.pet_id,
            appointment_id=request.appointment_id,
            taxi_request_id=request.taxi_request_id,
        ).to_stripe()
        metadata["amount"] = str(amount_cents)

        expires_at = int(time.time()) + settings.stripe.CHECKOUT_EXPIRY_MINUTES * 60
        session = await self.stripe.create_checkout_session(
            amount_cents=amount_cents,
            currency=request.currency or settings.stripe.CURRENCY,
            product_name=product_name(request.service_type, request.payment_type),
            product_description=product_description(request.payment_type),
            metadata=metadata,
            success_url=request.success_url,
            cancel_url=request.cancel_url,
            customer_email=request.customer_email or user.email,
            expires_at=expires_at,
        )

        await log_info(
            f"Stripe Checkout создан: {session.get('id')}",
            logger_name=LOGGER_NAME,
            extra={"user_id": user.uid, "amount": amount_cents, "payment_type": request.payment_type},
        )
        return {
            "sessionId": session.get("id"),
            "url": session.get("url"),
            "paymentIntentId": session.get("payment_intent"),
        }

    async def get_stripe_session(self, session_id: str | None) -> dict[str, Any]:
        if not session_id:
            raise ValueError("Session ID é obrigatório")
        session = await self.stripe.retrieve_checkout_session(session_id)
        return _pick(session, SESSION_FIELDS)

    async def create_stripe_payment_intent(self, user: AuthUser, request: StripeCheckoutRequest) -> dict[str, Any]:
        """PaymentIntent для прямой оплаты без страницы Checkout."""
        if not request.amount or not request.service_type or not request.payment_type:
            raise ValueError("Dados obrigatórios: amount, serviceType, paymentType")
        _validate_payment_type(request.payment_type)

        amount_cents = to_cents(request.amount)
        metadata = PaymentMetadata(
            user_id=user.uid,
            service_type=request.service_type,
            payment_type=request.payment_type,
            pet_id=request.pet_id,
            appointment_id=request.appointment_id,
            taxi_request_id=request.taxi_request_id,
        ).to_stripe()
        metadata["amount"] = str(amount_cents)

        intent = await self.stripe.create_payment_intent(
            amount_cents=amount_cents,
            currency=request.currency or settings.stripe.CURRENCY,
            metadata=metadata,
            customer_email=request.customer_email or user.email,
        )
        return {"paymentIntentId": intent.get("id"), "clientSecret": intent.get("client_secret")}

    async def get_stripe_payment_status(self, payment_intent_id: str) -> dict[str, Any]:
        intent = await self.stripe.retrieve_payment_intent(payment_intent_id)
        return _pick(intent, ("status", "amount", "currency", "metadata"))

    # === MERCADO PAGO ===

    def _mercadopago_metadata(self, user: AuthUser, request: MercadoPagoPaymentRequest) -> dict[str, str]:
        return PaymentMetadata(
            user_id=user.uid,
            service_type=request.service_type,
            payment_type=request.payment_type,
            pet_id=request.pet_id,
            appointment_id=request.appointment_id,
            taxi_request_id=request.taxi_request_id,
        ).to_mercadopago()

    async def create_mercadopago_payment(self, user: AuthUser, request: MercadoPagoPaymentRequest) -> dict[str, Any]:
        """
        Preference (Checkout Pro) или PIX-платёж.

        Raises:
            ValueError: не хватает обязательных полей
        """
        if not (request.title and request.description and request.price
                and request.service_type and request.payment_type):
            raise ValueError("Dados obrigatórios: title, description, price, serviceType, paymentType")
        if not (request.success_url and request.failure_url and request.pending_url):
            raise ValueError("URLs de sucesso, falha e pendente são obrigatórias")
        _validate_payment_type(request.payment_type)

        metadata = self._mercadopago_metadata(user, request)
        notification_url = f"{settings.domain.APP_URL}/api/webhooks/mercadopago"

        if request.payment_method == "pix":
            payment = await self.mercadopago.create_payment({
                "transaction_amount": request.price,
                "description": f"{request.title} - {request.description}",
                "payment_method_id": "pix",
                "payer": {"email": request.payer_email or user.email or ""},
                "metadata": metadata,
                "notification_url": notification_url,
            })
            transaction = (payment.get("point_of_interaction") or {}).get("transaction_data") or {}
            await log_info(f"PIX создан: {payment.get('id')}", logger_name=LOGGER_NAME, extra={"user_id": user.uid})
            return {
                **_pick(payment, PIX_FIELDS),
                "qr_code": transaction.get("qr_code"),
                "qr_code_base64": transaction.get("qr_code_base64"),
                "ticket_url": transaction.get("ticket_url"),
            }

        now = datetime.now(timezone.utc)
        expires_to = now + timedelta(minutes=settings.mercadopago.PREFERENCE_EXPIRY_MINUTES)
        preference = await self.mercadopago.create_preference({
            "items": [{
                "id": f"{request.payment_type}_{int(now.timestamp() * 1000)}",
                "title": request.title,
                "description": request.description,
                "category_id": "services",
                "quantity": request.quantity,
                "currency_id": settings.domain.CURRENCY,
                "unit_price": request.price,
            }],
            "payer": {"email": request.payer_email or user.email},
            "back_urls": {
                "success": request.success_url,
                "failure": request.failure_url,
                "pending": request.pending_url,
            },
            "auto_return": "approved",
            "notification_url": notification_url,
            "metadata": metadata,
            "expires": True,
            "expiration_date_from": now.isoformat(timespec="milliseconds"),
            "expiration_date_to": expires_to.isoformat(timespec="milliseconds"),
            "payment_methods": {
                "excluded_payment_methods": [],
                "excluded_payment_types": [],
                "installments": settings.mercadopago.MAX_INSTALLMENTS,
            },
        })
        await log_info(f"Preference создан: {preference.get('id')}", logger_name=LOGGER_NAME, extra={"user_id": user.uid})
        return _pick(preference, PREFERENCE_CREATED_FIELDS)

    async def get_mercadopago_payment_status(self, payment_id: str) -> dict[str, Any]:
        payment = await self.mercadopago.get_payment(payment_id)
        return {
            "id": payment.get("id"),
            "status": payment.get("status"),
            "status_detail": payment.get("status_detail"),
            "amount": payment.get("transaction_amount"),
            "currency": payment.get("currency_id"),
            "payment_method": payment.get("payment_method_id"),
            "metadata": payment.get("metadata"),
            "date_created": payment.get("date_created"),
            "date_approved": payment.get("date_approved"),
        }

    async def get_mercadopago_status(self, payment_id: str | None, preference_id: str | None) -> dict[str, Any]:
        if payment_id:
            return await self.get_mercadopago_payment_status(payment_id)
        if preference_id:
            preference = await self.mercadopago.get_preference(preference_id)
            return _pick(preference, PREFERENCE_STATUS_FIELDS)
        raise ValueError("Payment ID ou Preference ID é obrigatório")

    # === ВОЗВРАТЫ ===

    async def refund(self, provider: PaymentProvider, request: RefundRequest) -> dict[str, Any]:
        """
        Полный или частичный возврат. Для Stripe payment_id - это PaymentIntent.
        Статус платежа и связанного документа обновит вебхук провайдера.
        """
        if provider == PaymentProvider.STRIPE:
            refund = await self.stripe.create_refund(
                request.payment_id,
                amount_cents=to_cents(request.amount) if request.amount is not None else None,
                reason=request.reason or "requested_by_customer",
            )
        else:
            refund = await self.mercadopago.create_refund(request.payment_id, amount=request.amount)

        await log_info(
            f"Возврат создан: {provider} {request.payment_id}",
            logger_name=LOGGER_NAME,
            extra={"refund_id": refund.get("id"), "amount": request.amount},
        )
        return {"id": refund.get("id"), "status": refund.get("status"), "amount": refund.get("amount")}
