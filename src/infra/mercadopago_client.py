# src/infra/mercadopago_client.py
"""
Клиент REST API Mercado Pago (Checkout Pro и PIX) и проверка подписи вебхуков.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any
from uuid import uuid4

import httpx

from src.common.logger import log_error
from src.infra.errors import PaymentGatewayError

PROVIDER = "mercadopago"
LOGGER_NAME = "petshop.mercadopago"


def build_signature_manifest(data_id: str, request_id: str, ts: str) -> str:
    return f"id:{data_id};request-id:{request_id};ts:{ts};"


def validate_webhook_signature(
    x_signature: str,
    x_request_id: str,
    data_id: str,
    ts: str,
    secret: str,
) -> bool:
    """
    Проверяет заголовок x-signature ("ts=...,v1=<hex>").
    v1 должен совпасть с HMAC-SHA256 манифеста на секрете вебхука.
    """
    if not secret:
        return False

    manifest = build_signature_manifest(data_id, x_request_id, ts)
    expected = hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()

    for part in x_signature.split(","):
        key, _, value = part.partition("=")
        if key.strip() == "v1" and value and hmac.compare_digest(value.strip(), expected):
            return True
    return False


class MercadoPagoClient:
    """
    Асинхронный клиент Mercado Pago поверх httpx.
    Авторизация Bearer access token, для POST добавляется X-Idempotency-Key.
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        from src.config import settings

        cfg = settings.mercadopago
        self._access_token = access_token if access_token is not None else cfg.ACCESS_TOKEN
        self._base_url = (base_url or cfg.API_URL).rstrip("/")
        self._timeout = timeout or cfg.TIMEOUT
        self._transport = transport

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._access_token}"}
        if method == "POST":
            headers["X-Idempotency-Key"] = uuid4().hex

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            await log_error(f"Mercado Pago недоступен: {e}", logger_name=LOGGER_NAME)
            raise PaymentGatewayError(PROVIDER, str(e)) from e

        body = response.json() if response.content else {}
        if response.status_code >= 400:
            message = body.get("message") or body.get("error") or response.reason_phrase
            raise PaymentGatewayError(PROVIDER, str(message), response.status_code)
        return body

    async def create_preference(self, preference: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/checkout/preferences", json=preference)

    async def get_preference(self, preference_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/checkout/preferences/{preference_id}")

    async def create_payment(self, payment: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/v1/payments", json=payment)

    async def get_payment(self, payment_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/v1/payments/{payment_id}")

    async def create_refund(self, payment_id: str, amount: float | None = None) -> dict[str, Any]:
        """Полный возврат без amount, частичный с amount (в реалах)."""
        body = {"amount": amount} if amount is not None else {}
        return await self._request("POST", f"/v1/payments/{payment_id}/refunds", json=body)


_client: MercadoPagoClient | None = None


def get_mercadopago() -> MercadoPagoClient:
    global _client
    if _client is None:
        _client = MercadoPagoClient()
    return _client
