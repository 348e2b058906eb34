# tests/services/test_payment_service.py
"""
Тесты PaymentService: создание оплаты у провайдеров, статусы и возвраты.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.services.payments.service import PaymentService, product_name, to_cents
from src.shared.models.enums import PaymentProvider
from src.shared.models.payment import (
    MercadoPagoPaymentRequest,
    PaymentMetadata,
    RefundRequest,
    StripeCheckoutRequest,
)


@pytest.fixture
def stripe_gateway() -> MagicMock:
    gateway = MagicMock()
    gateway.create_checkout_session = AsyncMock(return_value={
        "id": "cs_1", "url": "https://checkout.stripe.com/cs_1", "payment_intent": None,
    })
    gateway.create_payment_intent = AsyncMock(return_value={"id": "pi_1", "client_secret": "pi_1_secret"})
    gateway.retrieve_checkout_session = AsyncMock(return_value={"id": "cs_1", "status": "complete", "extra": 1})
    gateway.create_refund = AsyncMock(return_value={"id": "re_1", "status": "succeeded", "amount": 500})
    return gateway


@pytest.fixture
def service(stripe_gateway: MagicMock, mock_mercadopago: MagicMock) -> PaymentService:
    return PaymentService(stripe_gateway, mock_mercadopago)


def checkout(**kwargs) -> StripeCheckoutRequest:
    data = {
        "amount": 150.0,
        "serviceType": "Banho e Tosa",
        "paymentType": "appointment",
        "appointmentId": "a1",
        "successUrl": "https://app.example.com/ok",
        "cancelUrl": "https://app.example.com/cancel",
        **kwargs,
    }
    return StripeCheckoutRequest.model_validate(data)


class TestHelpers:
    @pytest.mark.parametrize("amount,cents", [(150.0, 15000), (19.99, 1999), (0.1, 10)])
    def test_to_cents(self, amount: float, cents: int) -> None:
        assert to_cents(amount) == cents

    def test_product_name(self) -> None:
        assert product_name("Banho", "appointment") == "Consulta Veterinária - Banho"
        assert product_name("Banho", "unknown") == "Serviço Veterinário"

    def test_metadata_formats(self) -> None:
        metadata = PaymentMetadata(user_id="u1", service_type="s", payment_type="taxi_dog", taxi_request_id="t1")

        assert metadata.to_stripe() == {"userId": "u1", "serviceType": "s", "paymentType": "taxi_dog", "taxiRequestId": "t1"}
        assert metadata.to_mercadopago()["appointment_id"] == ""


class TestStripeCheckout:
    @pytest.mark.asyncio
    async def test_creates_session(self, service: PaymentService, stripe_gateway: MagicMock, client_user) -> None:
        result = await service.create_stripe_checkout(client_user, checkout())

        assert result == {"sessionId": "cs_1", "url": "https://checkout.stripe.com/cs_1", "paymentIntentId": None}
        kwargs = stripe_gateway.create_checkout_session.call_args[1]
        assert kwargs["amount_cents"] == 15000
        assert kwargs["metadata"]["userId"] == "user-1"
        assert kwargs["metadata"]["amount"] == "15000"
        assert kwargs["customer_email"] == "ana@example.com"

    @pytest.mark.asyncio
    async def test_missing_fields(self, service: PaymentService, client_user) -> None:
        with pytest.raises(ValueError, match="Dados obrigatórios"):
            await service.create_stripe_checkout(client_user, checkout(amount=None))

    @pytest.mark.asyncio
    async def test_missing_urls(self, service: PaymentService, client_user) -> None:
        with pytest.raises(ValueError, match="URLs"):
            await service.create_stripe_checkout(client_user, checkout(cancelUrl=None))

    @pytest.mark.asyncio
    async def test_invalid_payment_type(self, service: PaymentService, client_user) -> None:
        with pytest.raises(ValueError, match="paymentType inválido"):
            await service.create_stripe_checkout(client_user, checkout(paymentType="donation"))

    @pytest.mark.asyncio
    async def test_session_fields_filtered(self, service: PaymentService) -> None:
        session = await service.get_stripe_session("cs_1")
        assert session["status"] == "complete"
        assert "extra" not in session

    @pytest.mark.asyncio
    async def test_payment_intent(self, service: PaymentService, client_user) -> None:
        result = await service.create_stripe_payment_intent(client_user, checkout())
        assert result == {"paymentIntentId": "pi_1", "clientSecret": "pi_1_secret"}


class TestMercadoPago:
    def request(self, **kwargs) -> MercadoPagoPaymentRequest:
        data = {
            "title": "Consulta",
            "description": "Rex",
            "price": 120.0,
            "serviceType": "consulta",
            "paymentType": "appointment",
            "appointmentId": "a1",
            "successUrl": "https://app/ok",
            "failureUrl": "https://app/fail",
            "pendingUrl": "https://app/pending",
            **kwargs,
        }
        return MercadoPagoPaymentRequest.model_validate(data)

    @pytest.mark.asyncio
    async def test_preference(self, service: PaymentService, mock_mercadopago: MagicMock, client_user) -> None:
        mock_mercadopago.create_preference.return_value = {"id": "pref-1", "init_point": "https://mp/pref-1"}

        result = await service.create_mercadopago_payment(client_user, self.request())

        assert result["id"] == "pref-1"
        body = mock_mercadopago.create_preference.call_args[0][0]
        assert body["items"][0]["unit_price"] == 120.0
        assert body["metadata"]["user_id"] == "user-1"
        assert body["notification_url"].endswith("/api/webhooks/mercadopago")
        assert body["auto_return"] == "approved"

    @pytest.mark.asyncio
    async def test_pix(self, service: PaymentService, mock_mercadopago: MagicMock, client_user) -> None:
        mock_mercadopago.create_payment.return_value = {
            "id": 555,
            "status": "pending",
            "point_of_interaction": {"transaction_data": {"qr_code": "000201", "qr_code_base64": "iVBOR"}},
        }

        result = await service.create_mercadopago_payment(client_user, self.request(paymentMethod="pix"))

        assert result["id"] == 555
        assert result["qr_code"] == "000201"
        assert mock_mercadopago.create_payment.call_args[0][0]["payment_method_id"] == "pix"

    @pytest.mark.asyncio
    async def test_missing_fields(self, service: PaymentService, client_user) -> None:
        with pytest.raises(ValueError, match="Dados obrigatórios"):
            await service.create_mercadopago_payment(client_user, self.request(price=None))

    @pytest.mark.asyncio
    async def test_status_requires_id(self, service: PaymentService) -> None:
        with pytest.raises(ValueError, match="Payment ID ou Preference ID"):
            await service.get_mercadopago_status(None, None)

    @pytest.mark.asyncio
    async def test_status_by_payment(self, service: PaymentService, mock_mercadopago: MagicMock) -> None:
        mock_mercadopago.get_payment.return_value = {"id": 1, "status": "approved", "transaction_amount": 10}

        status = await service.get_mercadopago_status("1", None)

        assert status["status"] == "approved"
        assert status["amount"] == 10


class TestRefund:
    @pytest.mark.asyncio
    async def test_stripe_partial(self, service: PaymentService, stripe_gateway: MagicMock) -> None:
        result = await service.refund(PaymentProvider.STRIPE, RefundRequest(paymentId="pi_1", amount=5.0))

        assert result == {"id": "re_1", "status": "succeeded", "amount": 500}
        stripe_gateway.create_refund.assert_awaited_once_with(
            "pi_1", amount_cents=500, reason="requested_by_customer"
        )

    @pytest.mark.asyncio
    async def test_mercadopago_full(self, service: PaymentService, mock_mercadopago: MagicMock) -> None:
        mock_mercadopago.create_refund.return_value = {"id": 9, "status": "approved", "amount": 120.0}

        await service.refund(PaymentProvider.MERCADOPAGO, RefundRequest(paymentId="123"))

        mock_mercadopago.create_refund.assert_awaited_once_with("123", amount=None)
