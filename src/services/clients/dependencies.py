# src/services/clients/dependencies.py
from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.api.dependencies import get_store
from src.infra.documents import DocumentStore
from src.services.clients.repository import ClientRepository
from src.services.clients.service import ClientService


def get_client_service(store: Annotated[DocumentStore, Depends(get_store)]) -> ClientService:
    return ClientService(ClientRepository(store))
