# src/services/pets/routes.py
"""
Endpoints питомцев:
- POST /api/pets - добавить питомца в карточку клиента
- GET /api/pets - список (свои или все для персонала), фильтры
- GET /api/pets/{id} - питомец
- PATCH /api/pets/{id} - изменить
- DELETE /api/pets/{id} - удалить
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import CurrentUser
from src.api.errors import ERROR_RESPONSES, service_errors
from src.services.pets.dependencies import get_pet_service
from src.services.pets.service import PetService
from src.shared.models.customer import PetCreate, PetListQuery, PetUpdate

router = APIRouter(prefix="/api/pets", tags=["Pets"])

Service = Annotated[PetService, Depends(get_pet_service)]


@router.post("", status_code=201, responses=ERROR_RESPONSES, summary="Добавить питомца")
async def create_pet(request: PetCreate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.create(user, request)


@router.get("", responses=ERROR_RESPONSES, summary="Список питомцев")
async def list_pets(user: CurrentUser, service: Service, query: Annotated[PetListQuery, Query()]) -> dict:
    with service_errors():
        return await service.list(user, query)


@router.get("/{pet_id}", responses=ERROR_RESPONSES, summary="Питомец")
async def get_pet(pet_id: str, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.get(user, pet_id)


@router.patch("/{pet_id}", responses=ERROR_RESPONSES, summary="Изменить питомца")
async def update_pet(pet_id: str, request: PetUpdate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.update(user, pet_id, request)


@router.delete("/{pet_id}", responses=ERROR_RESPONSES, summary="Удалить питомца")
async def delete_pet(pet_id: str, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.delete(user, pet_id)
