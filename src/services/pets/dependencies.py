# src/services/pets/dependencies.py
from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.api.dependencies import get_store
from src.infra.documents import DocumentStore
from src.services.pets.repository import PetRepository
from src.services.pets.service import PetService


def get_pet_service(store: Annotated[DocumentStore, Depends(get_store)]) -> PetService:
    return PetService(PetRepository(store))
