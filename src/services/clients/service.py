# src/services/clients/service.py
"""
Бизнес-логика карточек клиентов.

Клиент ведёт только свою карточку (её id совпадает с его uid),
персонал видит и правит все, удаляет только администратор.
"""

from __future__ import annotations

from typing import Any

from src.common.logger import log_info
from src.infra.documents import Where, utc_now
from src.services.clients.repository import ClientRepository
from src.shared.models.common import Pagination
from src.shared.models.customer import ClientCreate, ClientListQuery, ClientUpdate
from src.shared.models.enums import RecordStatus
from src.shared.models.user import AuthUser

LOGGER_NAME = "petshop.clients"

# Поиск фильтрует карточки в памяти, поэтому просматривается не больше стольких
SEARCH_SCAN_LIMIT = 500


def owns_client(user: AuthUser, client: dict[str, Any]) -> bool:
    return user.uid in (client.get("id"), client.get("userId"))


def matches_search(client: dict[str, Any], term: str) -> bool:
    term = term.strip().lower()
    return (
        term in (client.get("name") or "").lower()
        or term in (client.get("email") or "").lower()
        or term in (client.get("phone") or "")
    )


class ClientService:
    def __init__(self, repository: ClientRepository) -> None:
        self.repository = repository

    async def create(self, user: AuthUser, request: ClientCreate) -> dict[str, Any]:
        if user.is_staff:
            user_id = request.user_id
        elif request.user_id not in (None, user.uid):
            raise PermissionError("Acesso negado")
        else:
            user_id = user.uid

        if user_id and await self.repository.find_by_user(user_id):
            raise ValueError("Cliente já cadastrado para este usuário")

        now = utc_now()
        data = request.model_dump(by_alias=True, exclude={"user_id"})
        data.update({
            "userId": user_id,
            "status": RecordStatus.ACTIVE.value,
            "createdBy": user.uid,
            "createdAt": now,
            "updatedAt": now,
        })

        client_id = await self.repository.create(data, client_id=None if user.is_staff else user.uid)
        if client_id is None:
            raise ValueError("Cliente já cadastrado para este usuário")

        await log_info(f"Карточка клиента {client_id} создана", logger_name=LOGGER_NAME)
        return await self.get(user, client_id)

    async def get(self, user: AuthUser, client_id: str) -> dict[str, Any]:
        client = await self.repository.get(client_id)
        if client is None:
            raise LookupError("Cliente não encontrado")
        if not user.is_staff and not owns_client(user, client):
            raise PermissionError("Acesso negado")
        return client

    async def list(self, user: AuthUser, query: ClientListQuery) -> dict[str, Any]:
        filters: list[Where] = []
        if not user.is_staff:
            filters.append(Where("userId", "==", user.uid))
        elif query.user_id:
            filters.append(Where("userId", "==", query.user_id))
        if query.status:
            filters.append(Where("status", "==", query.status.value))

        offset = (query.page - 1) * query.limit
        if query.search:
            candidates = await self.repository.list(filters, limit=SEARCH_SCAN_LIMIT, order_by="name")
            matched = [c for c in candidates if matches_search(c, query.search)]
            items, total = matched[offset:offset + query.limit], len(matched)
        else:
            items = await self.repository.list(filters, limit=query.limit, offset=offset)
            total = await self.repository.count(filters)

        return {
            "clients": items,
            "pagination": Pagination.create(query.page, query.limit, total).model_dump(by_alias=True),
        }

    async def update(self, user: AuthUser, client_id: str, request: ClientUpdate) -> dict[str, Any]:
        await self.get(user, client_id)

        fields = request.model_dump(by_alias=True, exclude_unset=True)
        if not fields:
            raise ValueError("Nenhum campo para atualizar")
        if not user.is_staff and ({"status", "userId"} & fields.keys()):
            raise PermissionError("Acesso negado")

        if not await self.repository.update(client_id, fields):
            raise LookupError("Cliente não encontrado")
        return await self.get(user, client_id)

    async def delete(self, user: AuthUser, client_id: str) -> dict[str, Any]:
        """Только администратор; карточку с питомцами удалить нельзя."""
        if not user.is_admin:
            raise PermissionError("Acesso negado")
        if await self.repository.get(client_id) is None:
            raise LookupError("Cliente não encontrado")
        if await self.repository.count_pets(client_id):
            raise ValueError("Cliente possui pets cadastrados")

        await self.repository.delete(client_id)
        await log_info(f"Карточка клиента {client_id} удалена администратором {user.uid}", logger_name=LOGGER_NAME)
        return {"success": True}
