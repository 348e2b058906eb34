# tests/services/test_reconciliation.py
"""
Тесты сверки платежей по вебхукам Stripe и Mercado Pago.
"""

from __future__ import annotations

import hashlib
import hmac
from unittest.mock import AsyncMock

import pytest

from src.infra.errors import WebhookSignatureError
from src.infra.mercadopago_client import build_signature_manifest
from src.services.payments.reconciliation import (
    PaymentReconciler,
    mercadopago_metadata_to_camel,
    parse_signature_ts,
)
from src.services.payments.repository import PaymentRepository
from src.shared.events.payment_events import PaymentStatusChanged

MP_SECRET = "mp_unit_secret"


@pytest.fixture
def reconciler(mock_store: AsyncMock, mock_event_bus: AsyncMock, mock_mercadopago) -> PaymentReconciler:
    return PaymentReconciler(PaymentRepository(mock_store), mock_event_bus, mock_mercadopago, MP_SECRET)


def stripe_event(event_type: str, obj: dict) -> dict:
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


def store_calls(mock: AsyncMock, collection: str) -> list:
    return [c for c in mock.await_args_list if c[0][0] == collection]


class TestHelpers:
    def test_parse_signature_ts(self) -> None:
        assert parse_signature_ts("ts=1704908010,v1=abc") == "1704908010"
        assert parse_signature_ts("v1=abc") is None

    def test_metadata_to_camel(self) -> None:
        camel = mercadopago_metadata_to_camel({"user_id": "u1", "payment_type": "appointment", "appointment_id": "a1"})
        assert camel["userId"] == "u1"
        assert camel["paymentType"] == "appointment"
        assert camel["appointmentId"] == "a1"
        assert camel["taxiRequestId"] is None


class TestStripeEvents:
    @pytest.mark.asyncio
    async def test_checkout_completed(
        self, reconciler: PaymentReconciler, mock_store: AsyncMock, mock_event_bus: AsyncMock
    ) -> None:
        session = {
            "id": "cs_1",
            "payment_intent": "pi_1",
            "amount_total": 15000,
            "currency": "brl",
            "customer_email": "ana@example.com",
            "metadata": {"userId": "user-1", "paymentType": "appointment", "appointmentId": "a1"},
        }

        await reconciler.handle_stripe_event(stripe_event("checkout.session.completed", session))

        payment = store_calls(mock_store.set, "payments")[0][0]
        assert payment[1] == "cs_1"
        assert payment[2]["status"] == "completed"
        assert payment[2]["amount"] == 15000

        related = store_calls(mock_store.update, "appointments")[0][0]
        assert related[1] == "a1"
        assert related[2]["paymentStatus"] == "paid"

        _, inbox_id, inbox = store_calls(mock_store.create, "notifications")[0][0]
        assert inbox_id == "stripe_cs_1_payment_approved"
        assert inbox["userId"] == "user-1"
        assert inbox["type"] == "payment_approved"
        assert "150,00" in inbox["message"]

        event = mock_event_bus.publish.call_args[0][0]
        assert isinstance(event, PaymentStatusChanged)
        assert event.status == "paid"
        assert event.user_id == "user-1"

    @pytest.mark.asyncio
    async def test_repeated_checkout_notifies_once(
        self, reconciler: PaymentReconciler, mock_store: AsyncMock, mock_event_bus: AsyncMock
    ) -> None:
        mock_store.create.return_value = False
        session = {
            "id": "cs_1",
            "amount_total": 15000,
            "metadata": {"userId": "user-1", "paymentType": "appointment", "appointmentId": "a1"},
        }

        await reconciler.handle_stripe_event(stripe_event("checkout.session.completed", session))

        assert store_calls(mock_store.set, "payments")
        mock_event_bus.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_checkout_without_metadata_ignored(self, reconciler: PaymentReconciler, mock_store: AsyncMock) -> None:
        await reconciler.handle_stripe_event(stripe_event("checkout.session.completed", {"id": "cs_1"}))
        mock_store.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_related_document_is_logged(
        self, reconciler: PaymentReconciler, mock_store: AsyncMock, mock_event_bus: AsyncMock
    ) -> None:
        mock_store.update.return_value = False
        session = {
            "id": "cs_2",
            "amount_total": 5000,
            "metadata": {"userId": "user-1", "paymentType": "taxi_dog", "taxiRequestId": "t404"},
        }

        await reconciler.handle_stripe_event(stripe_event("checkout.session.completed", session))

        mock_event_bus.publish.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_payment_failed(self, reconciler: PaymentReconciler, mock_store: AsyncMock) -> None:
        intent = {
            "id": "pi_9",
            "amount": 2000,
            "last_payment_error": {"message": "Cartão recusado"},
            "metadata": {"userId": "user-1", "paymentType": "taxi_dog", "taxiRequestId": "t1"},
        }

        await reconciler.handle_stripe_event(stripe_event("payment_intent.payment_failed", intent))

        payment_update = store_calls(mock_store.update, "payments")[0][0]
        assert payment_update[2]["failureReason"] == "Cartão recusado"
        related = store_calls(mock_store.update, "taxiRequests")[0][0]
        assert related[2]["paymentStatus"] == "payment_failed"

    @pytest.mark.asyncio
    async def test_dispute_recorded(self, reconciler: PaymentReconciler, mock_store: AsyncMock) -> None:
        dispute = {"id": "dp_1", "charge": "ch_1", "amount": 1000, "reason": "fraudulent", "created": 1704908010}

        await reconciler.handle_stripe_event(stripe_event("charge.dispute.created", dispute))

        saved = store_calls(mock_store.set, "disputes")[0][0]
        assert saved[1] == "dp_1"
        assert saved[2]["createdAt"].year == 2024

    @pytest.mark.asyncio
    async def test_unknown_event_ignored(self, reconciler: PaymentReconciler, mock_store: AsyncMock) -> None:
        await reconciler.handle_stripe_event(stripe_event("customer.created", {"id": "cus_1"}))
        mock_store.set.assert_not_awaited()


class TestMercadoPagoSignature:
    def sign(self, data_id: str, request_id: str, ts: str) -> str:
        manifest = build_signature_manifest(data_id, request_id, ts)
        return f"ts={ts},v1=" + hmac.new(MP_SECRET.encode(), manifest.encode(), hashlib.sha256).hexdigest()

    def test_valid_with_ts_from_header(self, reconciler: PaymentReconciler) -> None:
        signature = self.sign("123", "req-1", "1704908010")
        reconciler.verify_mercadopago_signature("123", signature, "req-1", None)

    def test_invalid(self, reconciler: PaymentReconciler) -> None:
        signature = self.sign("123", "req-1", "1704908010")
        with pytest.raises(WebhookSignatureError):
            reconciler.verify_mercadopago_signature("456", signature, "req-1", "1704908010")

    def test_incomplete_headers_skip_check(self, reconciler: PaymentReconciler) -> None:
        reconciler.verify_mercadopago_signature("123", "ts=1,v1=bad", None, None)


class TestMercadoPagoNotifications:
    @pytest.mark.asyncio
    async def test_approved_payment(
        self, reconciler: PaymentReconciler, mock_store: AsyncMock, mock_mercadopago, mock_event_bus: AsyncMock
    ) -> None:
        mock_mercadopago.get_payment.return_value = {
            "id": 123,
            "status": "approved",
            "transaction_amount": 89.9,
            "currency_id": "BRL",
            "payment_method_id": "pix",
            "metadata": {"user_id": "user-1", "payment_type": "appointment", "appointment_id": "a1"},
        }

        await reconciler.handle_mercadopago_notification({"type": "payment", "action": "payment.updated", "data": {"id": "123"}})

        saved = store_calls(mock_store.set, "payments")[0]
        assert saved[0][1] == "123"
        assert saved[0][2]["createdAt"] is not None
        assert saved[1]["merge"] is True
        related = store_calls(mock_store.update, "appointments")[0][0]
        assert related[2]["paymentStatus"] == "paid"
        assert mock_event_bus.publish.call_args[0][0].provider == "mercadopago"

    @pytest.mark.asyncio
    async def test_cancelled_updates_without_notification(
        self, reconciler: PaymentReconciler, mock_store: AsyncMock, mock_mercadopago, mock_event_bus: AsyncMock
    ) -> None:
        mock_store.get.return_value = {"id": "123", "createdAt": "2025-01-01T00:00:00Z"}
        mock_mercadopago.get_payment.return_value = {
            "id": 123,
            "status": "cancelled",
            "metadata": {"user_id": "user-1", "payment_type": "appointment", "appointment_id": "a1"},
        }

        await reconciler.handle_mercadopago_notification({"type": "payment", "data": {"id": "123"}})

        saved = store_calls(mock_store.set, "payments")[0][0][2]
        assert "createdAt" not in saved
        assert store_calls(mock_store.update, "appointments")[0][0][2]["paymentStatus"] == "cancelled"
        mock_event_bus.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_chargeback(self, reconciler: PaymentReconciler, mock_store: AsyncMock, mock_mercadopago) -> None:
        mock_mercadopago.get_payment.return_value = {
            "id": 77,
            "status": "charged_back",
            "transaction_amount": 10,
            "metadata": {"user_id": "user-1"},
        }

        await reconciler.handle_mercadopago_notification({"type": "payment", "data": {"id": "77"}})

        chargeback = store_calls(mock_store.set, "chargebacks")[0][0]
        assert chargeback[1] == "77"
        assert chargeback[2]["userId"] == "user-1"

    @pytest.mark.asyncio
    async def test_provider_error_is_swallowed(self, reconciler: PaymentReconciler, mock_mercadopago, mock_store) -> None:
        mock_mercadopago.get_payment.side_effect = RuntimeError("timeout")

        await reconciler.handle_mercadopago_notification({"type": "payment", "data": {"id": "1"}})

        mock_store.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_types_only_logged(self, reconciler: PaymentReconciler, mock_mercadopago) -> None:
        await reconciler.handle_mercadopago_notification({"type": "subscription", "data": {"id": "s1"}})
        mock_mercadopago.get_payment.assert_not_awaited()
