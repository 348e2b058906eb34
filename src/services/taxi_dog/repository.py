# src/services/taxi_dog/repository.py
"""
Repository заявок Taxi Dog (коллекция taxiRequests).
"""

from __future__ import annotations

from typing import Any, Sequence

from src.common.constants import Collections
from src.infra.documents import DocumentStore, Where, utc_now


class TaxiRepository:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def create_request(self, data: dict[str, Any]) -> str:
        return await self.store.add(Collections.TAXI_REQUESTS, data)

    async def get_request(self, request_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.TAXI_REQUESTS, request_id)

    async def update_request(self, request_id: str, fields: dict[str, Any]) -> bool:
        return await self.store.update(Collections.TAXI_REQUESTS, request_id, {**fields, "updatedAt": utc_now()})

    async def update_if_status(self, request_id: str, expected_status: str, fields: dict[str, Any]) -> bool:
        """Обновление только если статус не изменился с момента чтения."""
        updated = await self.store.update_where(
            Collections.TAXI_REQUESTS,
            [Where("id", "==", request_id), Where("status", "==", expected_status)],
            {**fields, "updatedAt": utc_now()},
        )
        return updated > 0

    async def list_requests(self, filters: Sequence[Where], limit: int, offset: int) -> list[dict[str, Any]]:
        return await self.store.query(
            Collections.TAXI_REQUESTS,
            filters,
            order_by="createdAt",
            descending=True,
            limit=limit,
            offset=offset,
        )

    async def count_requests(self, filters: Sequence[Where]) -> int:
        return await self.store.count(Collections.TAXI_REQUESTS, filters)
