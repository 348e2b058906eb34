# src/shared/events/taxi_events.py
"""
События Taxi Dog.
"""

from __future__ import annotations

from typing import Literal

from src.shared.events.base import DomainEvent, register_event


@register_event
class TaxiDogStatusChanged(DomainEvent):
    """Событие: статус перевозки питомца изменился."""

    event_type: Literal["taxi_dog.status_changed"] = "taxi_dog.status_changed"

    request_id: str
    client_id: str
    driver_id: str | None = None
    old_status: str | None = None
    new_status: str
