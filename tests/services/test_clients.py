# tests/services/test_clients.py
"""
Тесты ClientService: своя карточка клиента, доступ персонала, поиск и удаление.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.infra.documents import Where
from src.services.clients.repository import ClientRepository
from src.services.clients.service import ClientService, matches_search
from src.shared.models.customer import ClientCreate, ClientListQuery, ClientUpdate


@pytest.fixture
def repository() -> AsyncMock:
    repo = AsyncMock(spec=ClientRepository)
    repo.find_by_user.return_value = None
    repo.create.return_value = "c1"
    repo.update.return_value = True
    repo.list.return_value = []
    repo.count.return_value = 0
    repo.count_pets.return_value = 0
    return repo


@pytest.fixture
def service(repository: AsyncMock) -> ClientService:
    return ClientService(repository)


def create_request(**kwargs) -> ClientCreate:
    data = {"name": "Ana Souza", "email": "ana@example.com", "phone": "+5511999990000", **kwargs}
    return ClientCreate.model_validate(data)


def card(**extra) -> dict:
    return {"id": "c1", "userId": "user-1", "name": "Ana Souza", "email": "ana@example.com", "phone": "11999990000", **extra}


class TestModel:
    @pytest.mark.parametrize("field,value", [("email", "sem-arroba"), ("phone", "123"), ("cpf", "12.34"), ("name", "")])
    def test_invalid(self, field: str, value) -> None:
        with pytest.raises(ValueError):
            create_request(**{field: value})

    def test_defaults(self) -> None:
        request = create_request(cpf="123.456.789-09")
        assert request.preferences.sms_notifications is True
        assert request.address is None


class TestCreate:
    @pytest.mark.asyncio
    async def test_client_card_uses_uid(self, service: ClientService, repository: AsyncMock, client_user) -> None:
        repository.create.return_value = "user-1"
        repository.get.return_value = card(id="user-1")

        result = await service.create(client_user, create_request())

        data = repository.create.call_args[0][0]
        assert repository.create.call_args.kwargs["client_id"] == "user-1"
        assert data["userId"] == "user-1"
        assert data["status"] == "active"
        assert data["createdBy"] == "user-1"
        assert result["id"] == "user-1"

    @pytest.mark.asyncio
    async def test_client_cannot_create_for_other(self, service: ClientService, repository: AsyncMock, client_user) -> None:
        with pytest.raises(PermissionError):
            await service.create(client_user, create_request(userId="user-9"))
        repository.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_card_rejected(self, service: ClientService, repository: AsyncMock, client_user) -> None:
        repository.find_by_user.return_value = card()
        with pytest.raises(ValueError, match="já cadastrado"):
            await service.create(client_user, create_request())

    @pytest.mark.asyncio
    async def test_existing_id_rejected(self, service: ClientService, repository: AsyncMock, client_user) -> None:
        repository.create.return_value = None
        with pytest.raises(ValueError, match="já cadastrado"):
            await service.create(client_user, create_request())

    @pytest.mark.asyncio
    async def test_staff_links_user(self, service: ClientService, repository: AsyncMock, employee_user) -> None:
        repository.get.return_value = card()

        await service.create(employee_user, create_request(userId="user-1"))

        assert repository.create.call_args.kwargs["client_id"] is None
        assert repository.create.call_args[0][0]["userId"] == "user-1"
        repository.find_by_user.assert_awaited_once_with("user-1")

    @pytest.mark.asyncio
    async def test_staff_card_without_user(self, service: ClientService, repository: AsyncMock, admin_user) -> None:
        repository.get.return_value = card(userId=None)

        await service.create(admin_user, create_request())

        assert repository.create.call_args[0][0]["userId"] is None
        repository.find_by_user.assert_not_awaited()


class TestQuery:
    @pytest.mark.asyncio
    async def test_get_own(self, service: ClientService, repository: AsyncMock, client_user) -> None:
        repository.get.return_value = card()
        assert (await service.get(client_user, "c1"))["id"] == "c1"

    @pytest.mark.asyncio
    async def test_get_foreign(self, service: ClientService, repository: AsyncMock, other_user) -> None:
        repository.get.return_value = card()
        with pytest.raises(PermissionError):
            await service.get(other_user, "c1")

    @pytest.mark.asyncio
    async def test_get_missing(self, service: ClientService, repository: AsyncMock, admin_user) -> None:
        repository.get.return_value = None
        with pytest.raises(LookupError):
            await service.get(admin_user, "c404")

    @pytest.mark.asyncio
    async def test_list_client_scope(self, service: ClientService, repository: AsyncMock, client_user) -> None:
        repository.count.return_value = 1

        result = await service.list(client_user, ClientListQuery(userId="user-9"))

        filters = repository.list.call_args[0][0]
        assert filters == [Where("userId", "==", "user-1")]
        assert result["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_list_staff_by_user_and_status(self, service: ClientService, repository: AsyncMock, admin_user) -> None:
        await service.list(admin_user, ClientListQuery(userId="user-9", status="inactive", page=3, limit=10))

        filters = repository.list.call_args[0][0]
        assert filters == [Where("userId", "==", "user-9"), Where("status", "==", "inactive")]
        assert repository.list.call_args.kwargs["offset"] == 20

    @pytest.mark.asyncio
    async def test_search_filters_and_pages(self, service: ClientService, repository: AsyncMock, admin_user) -> None:
        repository.list.return_value = [
            card(id="c1", name="Ana Souza"),
            card(id="c2", name="Bruno", email="bruno@ana.com"),
            card(id="c3", name="Carla", email="carla@example.com", phone="21988887777"),
        ]

        result = await service.list(admin_user, ClientListQuery(search="ANA", limit=1, page=2))

        assert repository.list.call_args.kwargs["order_by"] == "name"
        assert [c["id"] for c in result["clients"]] == ["c2"]
        assert result["pagination"]["total"] == 2
        repository.count.assert_not_awaited()

    def test_search_by_phone(self) -> None:
        assert matches_search(card(), "99999")
        assert not matches_search(card(), "zzz")


class TestUpdate:
    @pytest.mark.asyncio
    async def test_client_updates_phone(self, service: ClientService, repository: AsyncMock, client_user) -> None:
        repository.get.return_value = card()

        await service.update(client_user, "c1", ClientUpdate(phone="+5511911112222"))

        repository.update.assert_awaited_once_with("c1", {"phone": "+5511911112222"})

    @pytest.mark.asyncio
    async def test_client_cannot_change_status(self, service: ClientService, repository: AsyncMock, client_user) -> None:
        repository.get.return_value = card()
        with pytest.raises(PermissionError):
            await service.update(client_user, "c1", ClientUpdate(status="inactive"))
        repository.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_update(self, service: ClientService, repository: AsyncMock, admin_user) -> None:
        repository.get.return_value = card()
        with pytest.raises(ValueError):
            await service.update(admin_user, "c1", ClientUpdate())


class TestDelete:
    @pytest.mark.asyncio
    async def test_admin_only(self, service: ClientService, repository: AsyncMock, employee_user) -> None:
        with pytest.raises(PermissionError):
            await service.delete(employee_user, "c1")
        repository.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_with_pets_refused(self, service: ClientService, repository: AsyncMock, admin_user) -> None:
        repository.get.return_value = card()
        repository.count_pets.return_value = 2
        with pytest.raises(ValueError, match="pets"):
            await service.delete(admin_user, "c1")
        repository.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deletes(self, service: ClientService, repository: AsyncMock, admin_user) -> None:
        repository.get.return_value = card()
        assert await service.delete(admin_user, "c1") == {"success": True}
        repository.delete.assert_awaited_once_with("c1")

    @pytest.mark.asyncio
    async def test_missing(self, service: ClientService, repository: AsyncMock, admin_user) -> None:
        repository.get.return_value = None
        with pytest.raises(LookupError):
            await service.delete(admin_user, "c404")
