# src/services/payments/dependencies.py
"""
Dependency Injection для платежей.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.api.dependencies import get_event_bus, get_mercadopago, get_store, get_stripe
from src.infra.documents import DocumentStore
from src.infra.event_bus import EventBus
from src.infra.mercadopago_client import MercadoPagoClient
from src.infra.stripe_gateway import StripeGateway
from src.services.payments.reconciliation import PaymentReconciler
from src.services.payments.repository import PaymentRepository
from src.services.payments.service import PaymentService


def get_payment_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> PaymentRepository:
    return PaymentRepository(store)


def get_payment_service(
    stripe: Annotated[StripeGateway, Depends(get_stripe)],
    mercadopago: Annotated[MercadoPagoClient, Depends(get_mercadopago)],
) -> PaymentService:
    return PaymentService(stripe, mercadopago)


def get_reconciler(
    repository: Annotated[PaymentRepository, Depends(get_payment_repository)],
    event_bus: Annotated[EventBus, Depends(get_event_bus)],
    mercadopago: Annotated[MercadoPagoClient, Depends(get_mercadopago)],
) -> PaymentReconciler:
    return PaymentReconciler(repository, event_bus, mercadopago)
