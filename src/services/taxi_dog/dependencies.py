# src/services/taxi_dog/dependencies.py
from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.api.dependencies import get_event_bus, get_store
from src.infra.documents import DocumentStore
from src.infra.event_bus import EventBus
from src.services.taxi_dog.repository import TaxiRepository
from src.services.taxi_dog.service import TaxiDogService


def get_taxi_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> TaxiRepository:
    return TaxiRepository(store)


def get_taxi_service(
    repository: Annotated[TaxiRepository, Depends(get_taxi_repository)],
    event_bus: Annotated[EventBus, Depends(get_event_bus)],
) -> TaxiDogService:
    return TaxiDogService(repository, event_bus)
