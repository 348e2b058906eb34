# src/services/payments/routes.py
"""
Endpoints платежей:
- POST /api/payments/stripe/checkout - создать сессию Checkout
- GET /api/payments/stripe/checkout?session_id= - статус сессии
- POST /api/payments/stripe/payment-intent - создать PaymentIntent
- GET /api/payments/stripe/payment-intent/{id} - статус PaymentIntent
- POST /api/payments/{provider}/refund - возврат (admin)
- POST /api/payments/mercadopago/preference - Preference или PIX
- GET /api/payments/mercadopago/preference?payment_id=|preference_id= - статус
- POST /api/webhooks/stripe - вебхук Stripe
- POST /api/webhooks/mercadopago - вебхук Mercado Pago
"""

from __future__ import annotations

import json
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import AdminUser, CurrentUser, get_stripe, webhook_rate_limit
from src.common.logger import log_error, log_warning
from src.infra.errors import PaymentGatewayError, WebhookSignatureError
from src.infra.stripe_gateway import StripeGateway
from src.services.payments.dependencies import get_payment_service, get_reconciler
from src.services.payments.reconciliation import PaymentReconciler
from src.services.payments.service import PaymentService
from src.shared.models.common import ErrorResponse
from src.shared.models.enums import PaymentProvider
from src.shared.models.payment import MercadoPagoPaymentRequest, RefundRequest, StripeCheckoutRequest

LOGGER_NAME = "petshop.payments"

router = APIRouter(prefix="/api/payments", tags=["Payments"])
webhooks_router = APIRouter(
    prefix="/api/webhooks",
    tags=["Webhooks"],
    dependencies=[Depends(webhook_rate_limit)],
)

Service = Annotated[PaymentService, Depends(get_payment_service)]
Reconciler = Annotated[PaymentReconciler, Depends(get_reconciler)]

ERRORS = {400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}}


async def _gateway_error(e: PaymentGatewayError) -> HTTPException:
    await log_error(f"Ошибка платёжного шлюза: {e}", logger_name=LOGGER_NAME)
    return HTTPException(status_code=502, detail="Erro ao comunicar com o provedor de pagamento")


# =============================================================================
# STRIPE
# =============================================================================

@router.post("/stripe/checkout", responses=ERRORS, summary="Создать сессию Stripe Checkout")
async def create_stripe_checkout(request: StripeCheckoutRequest, user: CurrentUser, service: Service) -> dict:
    try:
        return await service.create_stripe_checkout(user, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentGatewayError as e:
        raise await _gateway_error(e)


@router.get("/stripe/checkout", responses=ERRORS, summary="Статус сессии Stripe Checkout")
async def get_stripe_session(
    user: CurrentUser,
    service: Service,
    session_id: Annotated[str | None, Query()] = None,
) -> dict:
    try:
        return await service.get_stripe_session(session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentGatewayError as e:
        raise await _gateway_error(e)


@router.post("/stripe/payment-intent", responses=ERRORS, summary="Создать PaymentIntent")
async def create_payment_intent(request: StripeCheckoutRequest, user: CurrentUser, service: Service) -> dict:
    try:
        return await service.create_stripe_payment_intent(user, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentGatewayError as e:
        raise await _gateway_error(e)


@router.get("/stripe/payment-intent/{payment_intent_id}", responses=ERRORS, summary="Статус PaymentIntent")
async def get_payment_intent(payment_intent_id: str, user: CurrentUser, service: Service) -> dict:
    try:
        return await service.get_stripe_payment_status(payment_intent_id)
    except PaymentGatewayError as e:
        raise await _gateway_error(e)


@router.post("/{provider}/refund", responses=ERRORS, summary="Возврат платежа")
async def refund_payment(provider: PaymentProvider, request: RefundRequest, user: AdminUser, service: Service) -> dict:
    try:
        return await service.refund(provider, request)
    except PaymentGatewayError as e:
        raise await _gateway_error(e)


# =============================================================================
# MERCADO PAGO
# =============================================================================

@router.post("/mercadopago/preference", responses=ERRORS, summary="Preference или PIX")
async def create_mercadopago_payment(request: MercadoPagoPaymentRequest, user: CurrentUser, service: Service) -> dict:
    try:
        return await service.create_mercadopago_payment(user, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentGatewayError as e:
        raise await _gateway_error(e)


@router.get("/mercadopago/preference", responses=ERRORS, summary="Статус платежа или Preference")
async def get_mercadopago_status(
    user: CurrentUser,
    service: Service,
    payment_id: Annotated[str | None, Query()] = None,
    preference_id: Annotated[str | None, Query()] = None,
) -> dict:
    try:
        return await service.get_mercadopago_status(payment_id, preference_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentGatewayError as e:
        raise await _gateway_error(e)


# =============================================================================
# ВЕБХУКИ
# =============================================================================

@webhooks_router.post("/stripe", summary="Вебхук Stripe")
async def stripe_webhook(
    request: Request,
    reconciler: Reconciler,
    stripe: Annotated[StripeGateway, Depends(get_stripe)],
    stripe_signature: Annotated[str | None, Header(alias="stripe-signature")] = None,
) -> JSONResponse:
    payload = await request.body()
    try:
        event = stripe.construct_event(payload, stripe_signature)
    except WebhookSignatureError as e:
        await log_warning(f"Вебхук Stripe отклонён: {e}", logger_name="petshop.webhooks")
        return JSONResponse({"error": str(e)}, status_code=400)

    try:
        await reconciler.handle_stripe_event(event)
    except Exception as e:
        await log_error(f"Ошибка обработки вебхука Stripe: {e}", logger_name="petshop.webhooks", exc_info=True)
        return JSONResponse({"error": "Erro interno do servidor"}, status_code=500)

    return JSONResponse({"received": True})


@webhooks_router.post("/mercadopago", summary="Вебхук Mercado Pago")
async def mercadopago_webhook(
    request: Request,
    reconciler: Reconciler,
    x_signature: Annotated[str | None, Header(alias="x-signature")] = None,
    x_request_id: Annotated[str | None, Header(alias="x-request-id")] = None,
    ts: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    try:
        body = json.loads(await request.body())
    except ValueError:
        return JSONResponse({"error": "JSON inválido"}, status_code=400)
    if not isinstance(body, dict):
        return JSONResponse({"error": "JSON inválido"}, status_code=400)

    data_id = str((body.get("data") or {}).get("id") or request.query_params.get("data.id") or "")
    try:
        reconciler.verify_mercadopago_signature(data_id, x_signature, x_request_id, ts)
    except WebhookSignatureError as e:
        await log_warning(f"Вебхук Mercado Pago отклонён: {e}", logger_name="petshop.webhooks")
        return JSONResponse({"error": str(e)}, status_code=400)

    try:
        await reconciler.handle_mercadopago_notification(body)
    except Exception as e:
        await log_error(f"Ошибка обработки вебхука Mercado Pago: {e}", logger_name="petshop.webhooks", exc_info=True)
        return JSONResponse({"error": "Erro interno do servidor"}, status_code=500)

    return JSONResponse({"status": "ok"})
