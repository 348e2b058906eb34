# src/shared/events/__init__.py
"""
Схемы событий для RabbitMQ.

События разделены по доменам:
- payment_events: изменение статуса платежа по вебхуку провайдера
- user_events: создание профиля пользователя
- appointment_events: создание записи и смена её статуса
- taxi_events: смена статуса перевозки Taxi Dog

Каждое событие содержит metadata.event_id для дедупликации.
"""

from src.shared.events.base import DomainEvent, EventMetadata, parse_event, register_event
from src.shared.events.payment_events import PaymentStatusChanged
from src.shared.events.user_events import UserCreated
from src.shared.events.appointment_events import AppointmentCreated, AppointmentStatusChanged
from src.shared.events.taxi_events import TaxiDogStatusChanged

__all__ = [
    "DomainEvent",
    "EventMetadata",
    "parse_event",
    "register_event",
    "PaymentStatusChanged",
    "UserCreated",
    "AppointmentCreated",
    "AppointmentStatusChanged",
    "TaxiDogStatusChanged",
]
