# src/services/clients/routes.py
"""
Endpoints карточек клиентов:
- POST /api/clients - создать карточку
- GET /api/clients - список (своя карточка или все для персонала), поиск
- GET /api/clients/{id} - карточка
- PATCH /api/clients/{id} - изменить
- DELETE /api/clients/{id} - удалить (admin)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import CurrentUser
from src.api.errors import ERROR_RESPONSES, service_errors
from src.services.clients.dependencies import get_client_service
from src.services.clients.service import ClientService
from src.shared.models.customer import ClientCreate, ClientListQuery, ClientUpdate

router = APIRouter(prefix="/api/clients", tags=["Clients"])

Service = Annotated[ClientService, Depends(get_client_service)]


@router.post("", status_code=201, responses=ERROR_RESPONSES, summary="Создать карточку клиента")
async def create_client(request: ClientCreate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.create(user, request)


@router.get("", responses=ERROR_RESPONSES, summary="Список клиентов")
async def list_clients(user: CurrentUser, service: Service, query: Annotated[ClientListQuery, Query()]) -> dict:
    return await service.list(user, query)


@router.get("/{client_id}", responses=ERROR_RESPONSES, summary="Карточка клиента")
async def get_client(client_id: str, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.get(user, client_id)


@router.patch("/{client_id}", responses=ERROR_RESPONSES, summary="Изменить карточку")
async def update_client(client_id: str, request: ClientUpdate, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.update(user, client_id, request)


@router.delete("/{client_id}", responses=ERROR_RESPONSES, summary="Удалить карточку")
async def delete_client(client_id: str, user: CurrentUser, service: Service) -> dict:
    with service_errors():
        return await service.delete(user, client_id)
