# src/services/pets/repository.py
from __future__ import annotations

from typing import Any, Sequence

from src.common.constants import Collections
from src.infra.documents import DocumentStore, Where, utc_now


class PetRepository:
    """Коллекция pets; карточки clients читаются для проверки владельца."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def get_client(self, client_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.CLIENTS, client_id)

    async def create(self, data: dict[str, Any]) -> str:
        return await self.store.add(Collections.PETS, data)

    async def get(self, pet_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.PETS, pet_id)

    async def update(self, pet_id: str, fields: dict[str, Any]) -> bool:
        return await self.store.update(Collections.PETS, pet_id, {**fields, "updatedAt": utc_now()})

    async def delete(self, pet_id: str) -> bool:
        return await self.store.delete(Collections.PETS, pet_id)

    async def list(self, filters: Sequence[Where], limit: int, offset: int) -> list[dict[str, Any]]:
        return await self.store.query(Collections.PETS, filters, order_by="name", limit=limit, offset=offset)

    async def count(self, filters: Sequence[Where]) -> int:
        return await self.store.count(Collections.PETS, filters)
