# src/services/appointments/repository.py
from __future__ import annotations

from typing import Any, Sequence

from src.common.constants import Collections
from src.infra.documents import DocumentStore, Where, utc_now


class AppointmentRepository:
    """Коллекция appointments; clients, pets и services читаются для проверки записи."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def get_client(self, client_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.CLIENTS, client_id)

    async def get_service(self, service_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.SERVICES, service_id)

    async def get_pets(self, pet_ids: Sequence[str]) -> list[dict[str, Any]]:
        return await self.store.query(Collections.PETS, [Where("id", "in", list(pet_ids))])

    async def create(self, data: dict[str, Any]) -> str:
        return await self.store.add(Collections.APPOINTMENTS, data)

    async def get(self, appointment_id: str) -> dict[str, Any] | None:
        return await self.store.get(Collections.APPOINTMENTS, appointment_id)

    async def update_if_status(self, appointment_id: str, expected_status: str, fields: dict[str, Any]) -> bool:
        updated = await self.store.update_where(
            Collections.APPOINTMENTS,
            [Where("id", "==", appointment_id), Where("status", "==", expected_status)],
            {**fields, "updatedAt": utc_now()},
        )
        return updated > 0

    async def list(self, filters: Sequence[Where], limit: int, offset: int) -> list[dict[str, Any]]:
        return await self.store.query(
            Collections.APPOINTMENTS,
            filters,
            order_by="scheduledDate",
            descending=True,
            limit=limit,
            offset=offset,
        )

    async def count(self, filters: Sequence[Where]) -> int:
        return await self.store.count(Collections.APPOINTMENTS, filters)
