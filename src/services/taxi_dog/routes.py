# src/services/taxi_dog/routes.py
"""
Endpoints Taxi Dog:
- POST /api/taxi-dog/estimate - расчёт стоимости
- POST /api/taxi-dog/requests - создать заявку
- GET /api/taxi-dog/requests - история (пагинация)
- GET /api/taxi-dog/requests/{id} - заявка
- POST /api/taxi-dog/requests/{id}/assign - назначить водителя (персонал)
- PATCH /api/taxi-dog/requests/{id}/status - сменить статус
- PUT /api/taxi-dog/requests/{id}/location - позиция водителя
- POST /api/taxi-dog/requests/{id}/rating - оценка клиента
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import CurrentUser
from src.api.errors import ERROR_RESPONSES, service_errors
from src.services.taxi_dog.dependencies import get_taxi_service
from src.services.taxi_dog.service import TaxiDogService
from src.shared.models.taxi import (
    AssignDriverRequest,
    FareEstimateRequest,
    TaxiFare,
    TaxiLocationUpdate,
    TaxiRatingRequest,
    TaxiRequestCreate,
    TaxiStatusUpdate,
)

router = APIRouter(prefix="/api/taxi-dog", tags=["Taxi Dog"])

Service = Annotated[TaxiDogService, Depends(get_taxi_service)]


@router.post("/estimate", responses=ERROR_RESPONSES, summary="Расчёт стоимости")
async def estimate_fare(request: FareEstimateRequest, user: CurrentUser, service: Service) -> TaxiFare:
    with service_errors():
        return service.estimate(request.distance_km)


@router.post("/requests", status_code=201, responses=ERROR_RESPONSES, summary="Создать заявку")
async def create_request(request: TaxiRequestCreate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.create_request(user, request)


@router.get("/requests", responses=ERROR_RESPONSES, summary="История перевозок")
async def list_requests(
    user: CurrentUser,
    service: Service,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    return await service.history(user, page=page, limit=limit)


@router.get("/requests/{request_id}", responses=ERROR_RESPONSES, summary="Заявка")
async def get_request(request_id: str, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.get_request(user, request_id)


@router.post("/requests/{request_id}/assign", responses=ERROR_RESPONSES, summary="Назначить водителя")
async def assign_driver(request_id: str, request: AssignDriverRequest, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.assign_driver(user, request_id, request)


@router.patch("/requests/{request_id}/status", responses=ERROR_RESPONSES, summary="Сменить статус")
async def update_status(request_id: str, request: TaxiStatusUpdate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.update_status(user, request_id, request.status)


@router.put("/requests/{request_id}/location", responses=ERROR_RESPONSES, summary="Позиция водителя")
async def update_location(request_id: str, request: TaxiLocationUpdate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.update_location(user, request_id, request)


@router.post("/requests/{request_id}/rating", responses=ERROR_RESPONSES, summary="Оценить перевозку")
async def rate_request(request_id: str, request: TaxiRatingRequest, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.rate(user, request_id, request)
