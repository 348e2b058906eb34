# src/services/clients/repository.py
from __future__ import annotations

from typing import Any, Sequence

from src.common.constants import Collections
from src.infra.documents import DocumentStore, Where, utc_now


class ClientRepository:
    """Коллекция clients и связанные с ней pets."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def get(self, client_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.CLIENTS, client_id)

    async def find_by_user(self, user_id: str) -> dict[str, Any] | None:
        found = await self.store.query(Collections.CLIENTS, [Where("userId", "==", user_id)], limit=1)
        return found[0] if found else None

    async def create(self, data: dict[str, Any], client_id: str | None = None) -> str | None:
        """
        Карточка с заданным id (карточка клиента = его uid) или со сгенерированным.
        None, если карточка с таким id уже есть.
        """
        if client_id is None:
            return await self.store.add(Collections.CLIENTS, data)
        if await self.store.create(Collections.CLIENTS, client_id, data):
            return client_id
        return None

    async def update(self, client_id: str, fields: dict[str, Any]) -> bool:
        return await self.store.update(Collections.CLIENTS, client_id, {**fields, "updatedAt": utc_now()})

    async def delete(self, client_id: str) -> bool:
        return await self.store.delete(Collections.CLIENTS, client_id)

    async def count_pets(self, client_id: str) -> int:
        return await self.store.count(Collections.PETS, [Where("clientId", "==", client_id)])

    async def list(
        self, filters: Sequence[Where], limit: int, offset: int = 0, order_by: str = "createdAt"
    ) -> list[dict[str, Any]]:
        return await self.store.query(
            Collections.CLIENTS,
            filters,
            order_by=order_by,
            descending=order_by == "createdAt",
            limit=limit,
            offset=offset,
        )

    async def count(self, filters: Sequence[Where]) -> int:
        return await self.store.count(Collections.CLIENTS, filters)
