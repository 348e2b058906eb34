# src/services/appointments/dependencies.py
from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.api.dependencies import get_event_bus, get_store
from src.infra.documents import DocumentStore
from src.infra.event_bus import EventBus
from src.services.appointments.repository import AppointmentRepository
from src.services.appointments.service import AppointmentService


def get_appointment_service(
    store: Annotated[DocumentStore, Depends(get_store)],
    event_bus: Annotated[EventBus, Depends(get_event_bus)],
) -> AppointmentService:
    return AppointmentService(AppointmentRepository(store), event_bus)
