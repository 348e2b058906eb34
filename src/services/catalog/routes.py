# src/services/catalog/routes.py
"""
Endpoints каталога услуг:
- GET /api/services - список (клиентам только активные)
- GET /api/services/{id} - услуга
- POST /api/services - добавить (персонал)
- PATCH /api/services/{id} - изменить (персонал)
- DELETE /api/services/{id} - удалить (admin)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import CurrentUser
from src.api.errors import ERROR_RESPONSES, service_errors
from src.services.catalog.dependencies import get_catalog_service
from src.services.catalog.service import CatalogService
from src.shared.models.catalog import CatalogItemCreate, CatalogItemUpdate, CatalogListQuery

router = APIRouter(prefix="/api/services", tags=["Services"])

Service = Annotated[CatalogService, Depends(get_catalog_service)]


@router.get("", responses=ERROR_RESPONSES, summary="Каталог услуг")
async def list_services(user: CurrentUser, service: Service, query: Annotated[CatalogListQuery, Query()]) -> dict:
    return await service.list(user, query)


@router.get("/{item_id}", responses=ERROR_RESPONSES, summary="Услуга")
async def get_service(item_id: str, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.get(user, item_id)


@router.post("", status_code=201, responses=ERROR_RESPONSES, summary="Добавить услугу")
async def create_service(request: CatalogItemCreate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.create(user, request)


@router.patch("/{item_id}", responses=ERROR_RESPONSES, summary="Изменить услугу")
async def update_service(item_id: str, request: CatalogItemUpdate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.update(user, item_id, request)


@router.delete("/{item_id}", responses=ERROR_RESPONSES, summary="Удалить услугу")
async def delete_service(item_id: str, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.delete(user, item_id)
