# tests/services/test_catalog.py
"""
Тесты CatalogService: видимость услуг и права на изменение каталога.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.infra.documents import Where
from src.services.catalog.repository import CatalogRepository
from src.services.catalog.service import CatalogService
from src.shared.models.catalog import CatalogItemCreate, CatalogItemUpdate, CatalogListQuery


@pytest.fixture
def repository() -> AsyncMock:
    repo = AsyncMock(spec=CatalogRepository)
    repo.create.return_value = "banho"
    repo.update.return_value = True
    repo.delete.return_value = True
    repo.list.return_value = []
    repo.count.return_value = 0
    return repo


@pytest.fixture
def service(repository: AsyncMock) -> CatalogService:
    return CatalogService(repository)


def item(**extra) -> dict:
    return {"id": "banho", "name": "Banho e tosa", "status": "active", "price": 8000, **extra}


def create_request(**kwargs) -> CatalogItemCreate:
    data = {"name": "Banho e tosa", "category": "grooming", "duration": 60, "price": 8000, **kwargs}
    return CatalogItemCreate.model_validate(data)


class TestModel:
    def test_defaults(self) -> None:
        request = create_request()
        assert request.status == "active"
        assert request.max_pets_per_session == 1
        assert [s.value for s in request.pet_sizes] == ["small", "medium", "large", "extra-large"]

    @pytest.mark.parametrize("field,value", [("duration", 0), ("price", -5), ("category", "spa")])
    def test_invalid(self, field: str, value) -> None:
        with pytest.raises(ValueError):
            create_request(**{field: value})


class TestRead:
    @pytest.mark.asyncio
    async def test_client_sees_only_active(self, service: CatalogService, repository: AsyncMock, client_user) -> None:
        await service.list(client_user, CatalogListQuery(status="inactive", category="grooming"))

        filters = repository.list.call_args[0][0]
        assert filters == [Where("status", "==", "active"), Where("category", "==", "grooming")]

    @pytest.mark.asyncio
    async def test_staff_filters_by_status(self, service: CatalogService, repository: AsyncMock, employee_user) -> None:
        repository.count.return_value = 4

        result = await service.list(employee_user, CatalogListQuery(status="maintenance", popular=True))

        filters = repository.list.call_args[0][0]
        assert filters == [Where("status", "==", "maintenance"), Where("isPopular", "==", True)]
        assert result["pagination"]["total"] == 4

    @pytest.mark.asyncio
    async def test_client_inactive_hidden(self, service: CatalogService, repository: AsyncMock, client_user) -> None:
        repository.get.return_value = item(status="inactive")
        with pytest.raises(LookupError):
            await service.get(client_user, "banho")

    @pytest.mark.asyncio
    async def test_staff_sees_inactive(self, service: CatalogService, repository: AsyncMock, admin_user) -> None:
        repository.get.return_value = item(status="inactive")
        assert (await service.get(admin_user, "banho"))["status"] == "inactive"


class TestWrite:
    @pytest.mark.asyncio
    async def test_client_cannot_create(self, service: CatalogService, repository: AsyncMock, client_user) -> None:
        with pytest.raises(PermissionError):
            await service.create(client_user, create_request())
        repository.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_staff_creates(self, service: CatalogService, repository: AsyncMock, employee_user) -> None:
        repository.get.return_value = item()

        result = await service.create(employee_user, create_request(isPopular=True))

        data = repository.create.call_args[0][0]
        assert data["category"] == "grooming"
        assert data["isPopular"] is True
        assert data["createdBy"] == "emp-1"
        assert result["id"] == "banho"

    @pytest.mark.asyncio
    async def test_update_missing(self, service: CatalogService, repository: AsyncMock, admin_user) -> None:
        repository.update.return_value = False
        with pytest.raises(LookupError):
            await service.update(admin_user, "x", CatalogItemUpdate(price=9000))

    @pytest.mark.asyncio
    async def test_update_price(self, service: CatalogService, repository: AsyncMock, employee_user) -> None:
        repository.get.return_value = item(price=9000)

        await service.update(employee_user, "banho", CatalogItemUpdate(price=9000))

        repository.update.assert_awaited_once_with("banho", {"price": 9000})

    @pytest.mark.asyncio
    async def test_delete_admin_only(self, service: CatalogService, repository: AsyncMock, employee_user) -> None:
        with pytest.raises(PermissionError):
            await service.delete(employee_user, "banho")
        repository.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_missing(self, service: CatalogService, repository: AsyncMock, admin_user) -> None:
        repository.delete.return_value = False
        with pytest.raises(LookupError):
            await service.delete(admin_user, "x")
