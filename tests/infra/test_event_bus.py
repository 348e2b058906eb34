# tests/infra/test_event_bus.py
"""
Тесты для шины событий и схем доменных событий.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.infra.event_bus import EventBus, EventTypes
from src.shared.events import (
    AppointmentCreated,
    DomainEvent,
    PaymentStatusChanged,
    TaxiDogStatusChanged,
    parse_event,
)


@pytest.fixture
def event_bus() -> EventBus:
    """Свежий экземпляр EventBus (сбрасываем Singleton)."""
    EventBus._instance = None
    bus = EventBus()
    yield bus
    EventBus._instance = None


def connected(bus: EventBus) -> tuple[MagicMock, AsyncMock]:
    connection = MagicMock()
    connection.is_closed = False
    exchange = AsyncMock()
    channel = AsyncMock()
    bus._connection = connection
    bus._channel = channel
    bus._exchange = exchange
    return channel, exchange


class TestDomainEvents:
    """Сериализация и разбор событий."""

    def test_metadata_defaults(self) -> None:
        event = DomainEvent(event_type="custom")

        assert event.event_id
        assert event.timestamp.tzinfo is not None

    def test_parse_registered_type(self) -> None:
        original = TaxiDogStatusChanged(request_id="t1", client_id="u1", old_status="requested", new_status="accepted")

        parsed = parse_event(original.to_json())

        assert isinstance(parsed, TaxiDogStatusChanged)
        assert parsed.event_type == EventTypes.TAXI_DOG_STATUS_CHANGED
        assert parsed.new_status == "accepted"
        assert parsed.event_id == original.event_id

    def test_parse_datetime_field(self) -> None:
        when = datetime(2025, 3, 10, 17, 30, tzinfo=timezone.utc)
        original = AppointmentCreated(appointment_id="a1", client_id="c1", scheduled_date=when)

        parsed = parse_event(original.to_json().encode())

        assert isinstance(parsed, AppointmentCreated)
        assert parsed.scheduled_date == when

    def test_parse_unknown_type_keeps_fields(self) -> None:
        parsed = parse_event(json.dumps({"event_type": "pet.adopted", "petId": "p1"}))

        assert type(parsed) is DomainEvent
        assert parsed.event_type == "pet.adopted"
        assert parsed.payload == {"petId": "p1"}

    def test_parse_invalid_payload(self) -> None:
        with pytest.raises(ValueError):
            parse_event(json.dumps({"event_type": "payment.status_changed"}))


class TestEventBus:
    def test_singleton(self, event_bus: EventBus) -> None:
        assert EventBus() is event_bus

    def test_not_connected_by_default(self, event_bus: EventBus) -> None:
        assert event_bus.is_connected is False

    @pytest.mark.asyncio
    async def test_publish_without_connection(self, event_bus: EventBus) -> None:
        event = PaymentStatusChanged(provider="stripe", payment_id="pi_1", status="paid")

        assert await event_bus.publish(event) is False

    @pytest.mark.asyncio
    async def test_publish_uses_event_type_as_routing_key(self, event_bus: EventBus) -> None:
        _, exchange = connected(event_bus)
        event = PaymentStatusChanged(provider="stripe", payment_id="pi_1", status="paid", user_id="u1")

        assert await event_bus.publish(event) is True

        message = exchange.publish.call_args[0][0]
        assert exchange.publish.call_args[1]["routing_key"] == "payment.status_changed"
        assert message.message_id == event.event_id
        assert json.loads(message.body)["payment_id"] == "pi_1"

    @pytest.mark.asyncio
    async def test_publish_error_is_not_raised(self, event_bus: EventBus) -> None:
        _, exchange = connected(event_bus)
        exchange.publish.side_effect = RuntimeError("channel closed")
        event = PaymentStatusChanged(provider="stripe", payment_id="pi_1", status="paid")

        assert await event_bus.publish(event) is False

    @pytest.mark.asyncio
    async def test_subscribe_declares_queue_once(self, event_bus: EventBus) -> None:
        channel, exchange = connected(event_bus)
        queue = AsyncMock()
        channel.declare_queue.return_value = queue

        await event_bus.subscribe(EventTypes.USER_CREATED, handler=AsyncMock())
        await event_bus.subscribe(EventTypes.USER_CREATED, handler=AsyncMock())

        channel.declare_queue.assert_awaited_once_with("petshop.user_created", durable=True)
        queue.bind.assert_awaited_once_with(exchange, routing_key="user.created")
        assert len(event_bus._handlers["user.created"]) == 2

    @pytest.mark.asyncio
    async def test_consumer_isolates_handler_errors(self, event_bus: EventBus) -> None:
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        succeeding = AsyncMock()
        event_bus._handlers["taxi_dog.status_changed"] = [failing, succeeding]
        consumer = event_bus._make_consumer("taxi_dog.status_changed")

        message = MagicMock()
        message.body = TaxiDogStatusChanged(request_id="t1", client_id="u1", new_status="accepted").to_json().encode()
        message.process.return_value.__aenter__ = AsyncMock(return_value=None)
        message.process.return_value.__aexit__ = AsyncMock(return_value=False)

        await consumer(message)

        succeeding.assert_awaited_once()
        assert succeeding.call_args[0][0].request_id == "t1"
