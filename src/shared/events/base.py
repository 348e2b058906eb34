# src/shared/events/base.py
"""
Базовые классы доменных событий и реестр типов для десериализации.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class EventMetadata(BaseModel):
    """Метаданные события для трассировки и дедупликации."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: str | None = None
    causation_id: str | None = None
    source_service: str = ""
    version: int = 1


class DomainEvent(BaseModel):
    """
    Базовый класс для всех доменных событий.

    Событие сериализуется в JSON целиком; неизвестные поля сохраняются
    (extra="allow"), чтобы потребитель старой версии не терял данные.
    """

    model_config = ConfigDict(extra="allow")

    event_type: str = ""
    metadata: EventMetadata = Field(default_factory=EventMetadata)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> "DomainEvent":
        return cls.model_validate_json(data)

    @property
    def event_id(self) -> str:
        return self.metadata.event_id

    @property
    def timestamp(self) -> datetime:
        return self.metadata.timestamp

    @property
    def payload(self) -> dict[str, Any]:
        """Поля события без служебных (для логов)."""
        return self.model_dump(mode="json", exclude={"event_type", "metadata"})


EventT = TypeVar("EventT", bound=DomainEvent)

_EVENT_REGISTRY: dict[str, type[DomainEvent]] = {}


def register_event(cls: type[EventT]) -> type[EventT]:
    """Декоратор: регистрирует класс события по значению event_type по умолчанию."""
    event_type = cls.model_fields["event_type"].default
    _EVENT_REGISTRY[event_type] = cls
    return cls


def parse_event(data: str | bytes) -> DomainEvent:
    """
    Десериализует событие в зарегистрированный класс по event_type.
    Незарегистрированный тип разбирается как базовый DomainEvent.
    """
    raw = json.loads(data)
    event_cls = _EVENT_REGISTRY.get(raw.get("event_type", ""), DomainEvent)
    return event_cls.model_validate(raw)
