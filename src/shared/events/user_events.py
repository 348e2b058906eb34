# src/shared/events/user_events.py
"""
События домена пользователей.
"""

from __future__ import annotations

from typing import Literal

from src.shared.events.base import DomainEvent, register_event


@register_event
class UserCreated(DomainEvent):
    """Событие: при первом входе создан профиль пользователя."""

    event_type: Literal["user.created"] = "user.created"

    user_id: str
    email: str | None = None
    name: str | None = None
    role: str = "client"
