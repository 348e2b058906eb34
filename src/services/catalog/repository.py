# src/services/catalog/repository.py
from __future__ import annotations

from typing import Any, Sequence

from src.common.constants import Collections
from src.infra.documents import DocumentStore, Where, utc_now


class CatalogRepository:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def create(self, data: dict[str, Any]) -> str:
        return await self.store.add(Collections.SERVICES, data)

    async def get(self, item_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.SERVICES, item_id)

    async def update(self, item_id: str, fields: dict[str, Any]) -> bool:
        return await self.store.update(Collections.SERVICES, item_id, {**fields, "updatedAt": utc_now()})

    async def delete(self, item_id: str) -> bool:
        return await self.store.delete(Collections.SERVICES, item_id)

    async def list(self, filters: Sequence[Where], limit: int, offset: int) -> list[dict[str, Any]]:
        return await self.store.query(Collections.SERVICES, filters, order_by="name", limit=limit, offset=offset)

    async def count(self, filters: Sequence[Where]) -> int:
        return await self.store.count(Collections.SERVICES, filters)
