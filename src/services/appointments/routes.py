# src/services/appointments/routes.py
"""
Endpoints записей:
- POST /api/appointments - создать запись
- GET /api/appointments - список (свои или все для персонала)
- GET /api/appointments/{id} - запись
- PATCH /api/appointments/{id}/status - сменить статус
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import CurrentUser
from src.api.errors import ERROR_RESPONSES, service_errors
from src.services.appointments.dependencies import get_appointment_service
from src.services.appointments.service import AppointmentService
from src.shared.models.appointment import AppointmentCreate, AppointmentListQuery, AppointmentStatusUpdate

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])

Service = Annotated[AppointmentService, Depends(get_appointment_service)]


@router.post("", status_code=201, responses=ERROR_RESPONSES, summary="Создать запись")
async def create_appointment(request: AppointmentCreate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.create(user, request)


@router.get("", responses=ERROR_RESPONSES, summary="Список записей")
async def list_appointments(
    user: CurrentUser,
    service: Service,
    query: Annotated[AppointmentListQuery, Query()],
) -> dict:
    return await service.list(user, query)


@router.get("/{appointment_id}", responses=ERROR_RESPONSES, summary="Запись")
async def get_appointment(appointment_id: str, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.get(user, appointment_id)


@router.patch("/{appointment_id}/status", responses=ERROR_RESPONSES, summary="Сменить статус")
async def update_status(
    appointment_id: str, request: AppointmentStatusUpdate, user: CurrentUser, service: Service
) -> dict:
    with service_errors():
        return await service.update_status(user, appointment_id, request.status)
