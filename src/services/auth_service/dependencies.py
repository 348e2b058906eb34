# src/services/auth_service/dependencies.py
"""
Dependency Injection для аутентификации.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.api.dependencies import get_event_bus, get_firebase, get_profile_cache, get_store
from src.infra.documents import DocumentStore
from src.infra.event_bus import EventBus
from src.infra.firebase import FirebaseClient
from src.services.auth_service.profiles import ProfileCache
from src.services.auth_service.service import AuthService


def get_auth_service(
    store: Annotated[DocumentStore, Depends(get_store)],
    firebase: Annotated[FirebaseClient, Depends(get_firebase)],
    event_bus: Annotated[EventBus, Depends(get_event_bus)],
    profiles: Annotated[ProfileCache, Depends(get_profile_cache)],
) -> AuthService:
    return AuthService(store, firebase, event_bus, profiles)
