# src/shared/events/appointment_events.py
"""
События домена записей (appointments).
"""

from __future__ import annotations

from typing import Literal

from src.shared.events.base import DomainEvent, register_event
from src.shared.models.common import UtcDatetime


@register_event
class AppointmentCreated(DomainEvent):
    """Событие: создана запись на услугу."""

    event_type: Literal["appointment.created"] = "appointment.created"

    appointment_id: str
    client_id: str
    scheduled_date: UtcDatetime
    service_id: str | None = None
    user_id: str | None = None  # пользователь клиента, если профиль привязан


@register_event
class AppointmentStatusChanged(DomainEvent):
    """Событие: статус записи изменился."""

    event_type: Literal["appointment.status_changed"] = "appointment.status_changed"

    appointment_id: str
    client_id: str
    old_status: str
    new_status: str
    user_id: str | None = None
