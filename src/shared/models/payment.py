# src/shared/models/payment.py
"""
Модели запросов на оплату.
Обязательность полей проверяет сервис: ответ 400 с понятным текстом вместо 422.
"""

from __future__ import annotations

from typing import Literal

from src.shared.models.common import ApiModel


class StripeCheckoutRequest(ApiModel):
    amount: float | None = None  # в реалах
    currency: str = "brl"
    service_type: str | None = None
    payment_type: str | None = None
    pet_id: str | None = None
    appointment_id: str | None = None
    taxi_request_id: str | None = None
    customer_email: str | None = None
    success_url: str | None = None
    cancel_url: str | None = None


class MercadoPagoPaymentRequest(ApiModel):
    title: str | None = None
    description: str | None = None
    price: float | None = None
    quantity: int = 1
    service_type: str | None = None
    payment_type: str | None = None
    payment_method: Literal["preference", "pix"] = "preference"
    pet_id: str | None = None
    appointment_id: str | None = None
    taxi_request_id: str | None = None
    payer_email: str | None = None
    success_url: str | None = None
    failure_url: str | None = None
    pending_url: str | None = None


class RefundRequest(ApiModel):
    payment_id: str
    amount: float | None = None  # в реалах; None - полный возврат
    reason: str | None = None


class PaymentMetadata(ApiModel):
    """Метаданные, которые платёж несёт от создания до вебхука."""

    user_id: str
    service_type: str
    payment_type: str
    pet_id: str | None = None
    appointment_id: str | None = None
    taxi_request_id: str | None = None

    def to_stripe(self) -> dict[str, str]:
        """Stripe принимает только строковые значения; пустые поля не передаём."""
        return {k: str(v) for k, v in self.model_dump(by_alias=True).items() if v}

    def to_mercadopago(self) -> dict[str, str]:
        """Mercado Pago хранит метаданные в snake_case."""
        return {k: (v or "") for k, v in self.model_dump().items()}
