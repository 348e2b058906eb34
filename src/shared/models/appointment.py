# src/shared/models/appointment.py
"""
Модели записей на услуги.
"""

from __future__ import annotations

from pydantic import Field

from src.shared.models.common import ApiModel, UtcDatetime
from src.shared.models.enums import AppointmentStatus


class AppointmentCreate(ApiModel):
    client_id: str
    pet_ids: list[str] = Field(..., min_length=1)
    service_id: str
    scheduled_date: UtcDatetime
    start_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    amount: int = Field(..., ge=0)  # в сентаво
    employee_id: str | None = None
    notes: str | None = None


class AppointmentStatusUpdate(ApiModel):
    status: AppointmentStatus


class AppointmentListQuery(ApiModel):
    status: AppointmentStatus | None = None
    date_from: UtcDatetime | None = None
    date_to: UtcDatetime | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
