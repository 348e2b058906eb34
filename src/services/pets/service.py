# src/services/pets/service.py
"""
Бизнес-логика питомцев.

Питомец принадлежит карточке клиента; userId копируется из карточки,
чтобы клиент находил своих питомцев одним запросом.
"""

from __future__ import annotations

from typing import Any

from src.common.logger import log_info
from src.infra.documents import Where, utc_now
from src.services.clients.service import owns_client
from src.services.pets.repository import PetRepository
from src.shared.models.common import Pagination
from src.shared.models.customer import PetCreate, PetListQuery, PetUpdate
from src.shared.models.enums import PetStatus
from src.shared.models.user import AuthUser

LOGGER_NAME = "petshop.pets"


class PetService:
    def __init__(self, repository: PetRepository) -> None:
        self.repository = repository

    async def _client(self, user: AuthUser, client_id: str) -> dict[str, Any]:
        client = await self.repository.get_client(client_id)
        if client is None:
            raise LookupError("Cliente não encontrado")
        if not user.is_staff and not owns_client(user, client):
            raise PermissionError("Acesso negado")
        return client

    async def create(self, user: AuthUser, request: PetCreate) -> dict[str, Any]:
        client = await self._client(user, request.client_id)
        owner = client.get("userId") or (None if user.is_staff else user.uid)

        now = utc_now()
        data = request.model_dump(by_alias=True)
        data.update({
            "userId": owner,
            "status": PetStatus.ACTIVE.value,
            "createdBy": user.uid,
            "createdAt": now,
            "updatedAt": now,
        })
        pet_id = await self.repository.create(data)

        await log_info(f"Питомец {pet_id} клиента {request.client_id} создан", logger_name=LOGGER_NAME)
        return await self.get(user, pet_id)

    async def get(self, user: AuthUser, pet_id: str) -> dict[str, Any]:
        pet = await self.repository.get(pet_id)
        if pet is None:
            raise LookupError("Pet não encontrado")
        if not user.is_staff and pet.get("userId") != user.uid:
            raise PermissionError("Acesso negado")
        return pet

    async def list(self, user: AuthUser, query: PetListQuery) -> dict[str, Any]:
        filters: list[Where] = []
        if not user.is_staff:
            filters.append(Where("userId", "==", user.uid))
        if query.client_id:
            await self._client(user, query.client_id)
            filters.append(Where("clientId", "==", query.client_id))
        if query.species:
            filters.append(Where("species", "==", query.species))
        if query.size:
            filters.append(Where("size", "==", query.size.value))
        if query.status:
            filters.append(Where("status", "==", query.status.value))

        items = await self.repository.list(filters, limit=query.limit, offset=(query.page - 1) * query.limit)
        total = await self.repository.count(filters)
        return {
            "pets": items,
            "pagination": Pagination.create(query.page, query.limit, total).model_dump(by_alias=True),
        }

    async def update(self, user: AuthUser, pet_id: str, request: PetUpdate) -> dict[str, Any]:
        await self.get(user, pet_id)

        fields = request.model_dump(by_alias=True, exclude_unset=True)
        if not fields:
            raise ValueError("Nenhum campo para atualizar")

        if not await self.repository.update(pet_id, fields):
            raise LookupError("Pet não encontrado")
        return await self.get(user, pet_id)

    async def delete(self, user: AuthUser, pet_id: str) -> dict[str, Any]:
        await self.get(user, pet_id)
        await self.repository.delete(pet_id)
        return {"success": True}
