# src/shared/events/payment_events.py
"""
События домена платежей.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from src.shared.events.base import DomainEvent, register_event


@register_event
class PaymentStatusChanged(DomainEvent):
    """
    Событие: вебхук провайдера изменил статус платежа.
    Несёт уже сформированный текст уведомления для push-рассылки.
    """

    event_type: Literal["payment.status_changed"] = "payment.status_changed"

    provider: str  # stripe, mercadopago
    payment_id: str
    status: str  # внутренний статус связанного документа: paid, pending, ...
    user_id: str | None = None
    payment_type: str | None = None
    amount: float | None = None
    currency: str | None = None
    notification_type: str | None = None
    title: str | None = None
    body: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
