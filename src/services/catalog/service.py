# src/services/catalog/service.py
"""
Каталог услуг.

Читают все авторизованные пользователи (клиенты видят только активные услуги),
создаёт и меняет персонал, удаляет администратор.
"""

from __future__ import annotations

from typing import Any

from src.common.logger import log_info
from src.infra.documents import Where, utc_now
from src.services.catalog.repository import CatalogRepository
from src.shared.models.catalog import CatalogItemCreate, CatalogItemUpdate, CatalogListQuery
from src.shared.models.common import Pagination
from src.shared.models.enums import ServiceStatus
from src.shared.models.user import AuthUser

LOGGER_NAME = "petshop.catalog"


class CatalogService:
    def __init__(self, repository: CatalogRepository) -> None:
        self.repository = repository

    async def list(self, user: AuthUser, query: CatalogListQuery) -> dict[str, Any]:
        filters: list[Where] = []
        if not user.is_staff:
            filters.append(Where("status", "==", ServiceStatus.ACTIVE.value))
        elif query.status:
            filters.append(Where("status", "==", query.status.value))
        if query.category:
            filters.append(Where("category", "==", query.category.value))
        if query.popular is not None:
            filters.append(Where("isPopular", "==", query.popular))

        items = await self.repository.list(filters, limit=query.limit, offset=(query.page - 1) * query.limit)
        total = await self.repository.count(filters)
        return {
            "services": items,
            "pagination": Pagination.create(query.page, query.limit, total).model_dump(by_alias=True),
        }

    async def get(self, user: AuthUser, item_id: str) -> dict[str, Any]:
        item = await self.repository.get(item_id)
        if item is None or (not user.is_staff and item.get("status") != ServiceStatus.ACTIVE.value):
            raise LookupError("Serviço não encontrado")
        return item

    async def create(self, user: AuthUser, request: CatalogItemCreate) -> dict[str, Any]:
        if not user.is_staff:
            raise PermissionError("Acesso negado")

        now = utc_now()
        data = request.model_dump(by_alias=True)
        data.update({"createdBy": user.uid, "createdAt": now, "updatedAt": now})
        item_id = await self.repository.create(data)

        await log_info(f"Услуга {item_id} '{request.name}' добавлена в каталог", logger_name=LOGGER_NAME)
        return await self.get(user, item_id)

    async def update(self, user: AuthUser, item_id: str, request: CatalogItemUpdate) -> dict[str, Any]:
        if not user.is_staff:
            raise PermissionError("Acesso negado")

        fields = request.model_dump(by_alias=True, exclude_unset=True)
        if not fields:
            raise ValueError("Nenhum campo para atualizar")
        if not await self.repository.update(item_id, fields):
            raise LookupError("Serviço não encontrado")
        return await self.get(user, item_id)

    async def delete(self, user: AuthUser, item_id: str) -> dict[str, Any]:
        if not user.is_admin:
            raise PermissionError("Acesso negado")
        if not await self.repository.delete(item_id):
            raise LookupError("Serviço não encontrado")
        await log_info(f"Услуга {item_id} удалена из каталога", logger_name=LOGGER_NAME)
        return {"success": True}
