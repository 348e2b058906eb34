# src/infra/stripe_gateway.py
"""
Шлюз Stripe: Checkout-сессии, PaymentIntent, возвраты и проверка подписи вебхуков.

SDK stripe синхронный, вызовы выполняются в пуле потоков.
Ответы приводятся к обычным dict, чтобы сервисный слой не зависел от StripeObject.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import stripe

from src.infra.errors import PaymentGatewayError, WebhookSignatureError

PROVIDER = "stripe"


def _to_plain(obj: Any) -> dict[str, Any]:
    """StripeObject → dict (str() у StripeObject отдаёт JSON)."""
    return json.loads(str(obj))


class StripeGateway:
    """Тонкая асинхронная обёртка над stripe-python."""

    def __init__(self, secret_key: str | None = None, webhook_secret: str | None = None) -> None:
        if secret_key is None or webhook_secret is None:
            from src.config import settings
            secret_key = secret_key if secret_key is not None else settings.stripe.SECRET_KEY
            webhook_secret = webhook_secret if webhook_secret is not None else settings.stripe.WEBHOOK_SECRET
        self._api_key = secret_key
        self._webhook_secret = webhook_secret

    async def _call(self, func: Any, **params: Any) -> dict[str, Any]:
        try:
            result = await asyncio.to_thread(func, api_key=self._api_key, **params)
        except stripe.StripeError as e:
            raise PaymentGatewayError(PROVIDER, e.user_message or str(e), getattr(e, "http_status", None)) from e
        return _to_plain(result)

    async def create_checkout_session(
        self,
        *,
        amount_cents: int,
        currency: str,
        product_name: str,
        product_description: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
        customer_email: str | None,
        expires_at: int,
    ) -> dict[str, Any]:
        """Сессия Checkout с одной позицией, оплата картой."""
        return await self._call(
            stripe.checkout.Session.create,
            payment_method_types=["card"],
            line_items=[{
                "price_data": {
                    "currency": currency,
                    "product_data": {"name": product_name, "description": product_description},
                    "unit_amount": amount_cents,
                },
                "quantity": 1,
            }],
            mode="payment",
            success_url=success_url,
            cancel_url=cancel_url,
            customer_email=customer_email or None,
            metadata=metadata,
            expires_at=expires_at,
        )

    async def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        return await self._call(stripe.checkout.Session.retrieve, id=session_id)

    async def create_payment_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
        customer_email: str | None = None,
    ) -> dict[str, Any]:
        return await self._call(
            stripe.PaymentIntent.create,
            amount=amount_cents,
            currency=currency,
            metadata=metadata,
            receipt_email=customer_email or None,
            automatic_payment_methods={"enabled": True},
        )

    async def retrieve_payment_intent(self, payment_intent_id: str) -> dict[str, Any]:
        return await self._call(stripe.PaymentIntent.retrieve, id=payment_intent_id)

    async def create_refund(
        self,
        payment_intent_id: str,
        amount_cents: int | None = None,
        reason: str = "requested_by_customer",
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"payment_intent": payment_intent_id, "reason": reason}
        if amount_cents is not None:
            params["amount"] = amount_cents
        return await self._call(stripe.Refund.create, **params)

    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """
        Проверяет заголовок stripe-signature и возвращает событие как dict.

        Raises:
            WebhookSignatureError: подпись отсутствует или неверна
        """
        if not signature:
            raise WebhookSignatureError("Assinatura do webhook ausente")
        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise WebhookSignatureError("Assinatura inválida") from e
        return json.loads(payload)


_gateway: StripeGateway | None = None


def get_stripe_gateway() -> StripeGateway:
    global _gateway
    if _gateway is None:
        _gateway = StripeGateway()
    return _gateway
