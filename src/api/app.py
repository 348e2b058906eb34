# src/api/app.py
"""
HTTP-шлюз PetShop SaaS: одно FastAPI-приложение со всеми роутерами.

Routers:
- /api/auth/* - вход, сессия, проверка доступа к страницам
- /api/payments/* - Stripe и Mercado Pago
- /api/webhooks/* - вебхуки провайдеров (rate limit по IP)
- /api/notifications/* - рассылки, токены, входящие
- /api/taxi-dog/* - перевозка питомцев
- /api/clients/*, /api/pets/* - клиенты и питомцы
- /api/services/* - каталог услуг
- /api/appointments/* - записи на услуги
- /api/analytics - аналитика
- /api/upload - файлы
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from src.api.dependencies import cleanup_dependencies, init_dependencies
from src.common.constants import LOGGER_API
from src.common.logger import log_error, log_info
from src.config import settings
from src.infra.database import close_db, get_db, init_db
from src.infra.documents import get_store
from src.infra.event_bus import close_event_bus, get_event_bus, init_event_bus
from src.infra.firebase import get_firebase, init_firebase
from src.infra.redis_client import close_redis, get_redis, init_redis
from src.services.analytics.routes import router as analytics_router
from src.services.appointments.routes import router as appointments_router
from src.services.auth_service.routes import router as auth_router
from src.services.catalog.routes import router as catalog_router
from src.services.clients.routes import router as clients_router
from src.services.notifications.routes import router as notifications_router
from src.services.payments.routes import router as payments_router
from src.services.payments.routes import webhooks_router
from src.services.pets.routes import router as pets_router
from src.services.taxi_dog.routes import router as taxi_dog_router
from src.services.uploads.routes import router as uploads_router
from src.shared.models.common import HealthStatus

_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл: инфраструктура поднимается до приёма запросов и закрывается после."""
    await log_info("Запуск HTTP-шлюза...", logger_name=LOGGER_API)
    await init_db()
    await init_redis()
    await init_event_bus()
    await init_firebase()

    await init_dependencies(
        store=get_store(),
        redis=get_redis(),
        event_bus=get_event_bus(),
        firebase=get_firebase(),
    )

    yield

    await log_info("Остановка HTTP-шлюза...", logger_name=LOGGER_API)
    await cleanup_dependencies()
    await close_event_bus()
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(
        title="PetShop SaaS API",
        description="API зоомагазина: записи, Taxi Dog, платежи, уведомления.",
        version=settings.system.VERSION,
        lifespan=lifespan,
        docs_url=None if settings.system.is_production else "/docs",
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.deployment.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            {"error": "Dados inválidos", "details": jsonable_errors(exc)},
            status_code=400,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        await log_error(
            f"Необработанная ошибка {request.method} {request.url.path}: {exc}",
            logger_name=LOGGER_API,
            exc_info=True,
        )
        return JSONResponse({"error": "Erro interno do servidor"}, status_code=500)

    @app.get("/health", response_model=HealthStatus, tags=["Health"])
    async def health_check() -> HealthStatus:
        """Проверка здоровья шлюза и его зависимостей."""
        checks = {
            "postgres": await get_db().health_check(),
            "redis": await get_redis().health_check(),
            "rabbitmq": await get_event_bus().health_check(),
            "firebase": await get_firebase().health_check(),
        }
        return HealthStatus(
            service="api",
            status="healthy" if all(checks.values()) else "degraded",
            version=settings.system.VERSION,
            uptime_seconds=round(time.monotonic() - _started_at, 1),
            dependencies={name: "ok" if ok else "unavailable" for name, ok in checks.items()},
        )

    app.include_router(auth_router)
    app.include_router(payments_router)
    app.include_router(webhooks_router)
    app.include_router(notifications_router)
    app.include_router(taxi_dog_router)
    app.include_router(clients_router)
    app.include_router(pets_router)
    app.include_router(catalog_router)
    app.include_router(appointments_router)
    app.include_router(analytics_router)
    app.include_router(uploads_router)

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Ошибки валидации без объектов исключений внутри ctx."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


app = create_app()
