# src/services/taxi_dog/service.py
"""
Бизнес-логика Taxi Dog.

Заявка создаётся клиентом со статусом requested и paymentStatus pending,
дальше её ведут администратор (принятие, назначение водителя) и водитель.
Каждая смена статуса публикует taxi_dog.status_changed.
"""

from __future__ import annotations

from typing import Any

from src.common.logger import log_info
from src.infra.documents import Where, utc_now
from src.infra.event_bus import EventBus
from src.services.taxi_dog.pricing import calculate_fare
from src.services.taxi_dog.repository import TaxiRepository
from src.services.taxi_dog.state_machine import TaxiStateMachine
from src.shared.events.taxi_events import TaxiDogStatusChanged
from src.shared.models.common import Pagination
from src.shared.models.enums import RelatedPaymentStatus, TripStatus, UserRole
from src.shared.models.taxi import (
    AssignDriverRequest,
    TaxiFare,
    TaxiLocationUpdate,
    TaxiRatingRequest,
    TaxiRequestCreate,
)
from src.shared.models.user import AuthUser

LOGGER_NAME = "petshop.taxi_dog"


class TaxiDogService:
    def __init__(self, repository: TaxiRepository, event_bus: EventBus) -> None:
        self.repository = repository
        self.event_bus = event_bus

    def estimate(self, distance_km: float) -> TaxiFare:
        return calculate_fare(distance_km)

    async def create_request(self, user: AuthUser, request: TaxiRequestCreate) -> dict[str, Any]:
        fare = calculate_fare(request.estimated_distance)
        now = utc_now()

        data = request.model_dump(by_alias=True, mode="json")
        data.update({
            "clientId": user.uid,
            "status": TripStatus.REQUESTED.value,
            "paymentStatus": RelatedPaymentStatus.PENDING.value,
            "fare": fare.model_dump(by_alias=True),
            "tracking": {},
            "createdAt": now,
            "updatedAt": now,
        })
        request_id = await self.repository.create_request(data)

        await log_info(
            f"Заявка Taxi Dog {request_id} создана, стоимость {fare.total} {fare.currency}",
            logger_name=LOGGER_NAME,
        )
        return await self._get(request_id)

    async def _get(self, request_id: str) -> dict[str, Any]:
        doc = await self.repository.get_request(request_id)
        if doc is None:
            raise LookupError("Solicitação não encontrada")
        return doc

    @staticmethod
    def _can_view(user: AuthUser, doc: dict[str, Any]) -> bool:
        return user.is_staff or user.uid in (doc.get("clientId"), doc.get("driverId"))

    async def get_request(self, user: AuthUser, request_id: str) -> dict[str, Any]:
        doc = await self._get(request_id)
        if not self._can_view(user, doc):
            raise PermissionError("Acesso negado")
        return doc

    async def history(self, user: AuthUser, page: int = 1, limit: int = 20) -> dict[str, Any]:
        """Клиент видит свои заявки, водитель назначенные ему, персонал все."""
        page = max(page, 1)
        limit = min(max(limit, 1), 100)

        filters: list[Where] = []
        if user.role == UserRole.DRIVER and not user.is_staff:
            filters.append(Where("driverId", "==", user.uid))
        elif not user.is_staff:
            filters.append(Where("clientId", "==", user.uid))

        items = await self.repository.list_requests(filters, limit=limit, offset=(page - 1) * limit)
        total = await self.repository.count_requests(filters)
        return {
            "requests": items,
            "pagination": Pagination.create(page, limit, total).model_dump(by_alias=True),
        }

    async def assign_driver(self, user: AuthUser, request_id: str, request: AssignDriverRequest) -> dict[str, Any]:
        """Назначение водителя: accepted → driver-assigned, либо смена водителя в driver-assigned."""
        if not user.is_staff:
            raise PermissionError("Acesso negado")

        doc = await self._get(request_id)
        status = doc.get("status")
        if status == TripStatus.DRIVER_ASSIGNED.value:
            await self.repository.update_request(request_id, {"driverId": request.driver_id})
            return await self._get(request_id)
        if status != TripStatus.ACCEPTED.value:
            raise ValueError("Motorista só pode ser designado após a aceitação da solicitação")

        return await self._transition(doc, TripStatus.DRIVER_ASSIGNED, {"driverId": request.driver_id})

    async def update_status(self, user: AuthUser, request_id: str, new_status: TripStatus) -> dict[str, Any]:
        """
        Водитель (назначенный) или персонал ведут заявку по статусам;
        клиент может только отменить свою заявку.
        """
        doc = await self._get(request_id)

        is_driver = doc.get("driverId") == user.uid
        is_owner = doc.get("clientId") == user.uid
        if not (user.is_staff or is_driver or (is_owner and new_status == TripStatus.CANCELLED)):
            raise PermissionError("Acesso negado")

        if new_status == TripStatus.DRIVER_ASSIGNED:
            raise ValueError("Use a designação de motorista para este status")

        extra: dict[str, Any] = {}
        if new_status == TripStatus.CANCELLED:
            extra["cancelledBy"] = user.uid
        return await self._transition(doc, new_status, extra)

    async def _transition(self, doc: dict[str, Any], new_status: TripStatus, extra: dict[str, Any]) -> dict[str, Any]:
        old_status = doc.get("status", "")
        if not TaxiStateMachine.can_transition(old_status, new_status.value):
            raise ValueError(f"Transição inválida de {old_status} para {new_status.value}")

        fields: dict[str, Any] = {"status": new_status.value, **extra}
        ts_field = TaxiStateMachine.timestamp_field(new_status.value)
        if ts_field:
            fields[ts_field] = utc_now()

        if not await self.repository.update_if_status(doc["id"], old_status, fields):
            raise ValueError("A solicitação foi alterada por outra operação, tente novamente")

        await self.event_bus.publish(TaxiDogStatusChanged(
            request_id=doc["id"],
            client_id=doc.get("clientId", ""),
            driver_id=fields.get("driverId", doc.get("driverId")),
            old_status=old_status,
            new_status=new_status.value,
        ))
        return await self._get(doc["id"])

    async def update_location(self, user: AuthUser, request_id: str, update: TaxiLocationUpdate) -> dict[str, Any]:
        """Водитель передаёт текущую позицию, пока перевозка активна."""
        doc = await self._get(request_id)
        if doc.get("driverId") != user.uid:
            raise PermissionError("Acesso negado")
        if doc.get("status") in (TripStatus.COMPLETED.value, TripStatus.CANCELLED.value, TripStatus.REQUESTED.value):
            raise ValueError("Transporte não está em andamento")

        tracking: dict[str, Any] = {
            **(doc.get("tracking") or {}),
            "currentLocation": {**update.location.model_dump(), "timestamp": utc_now()},
        }
        if update.estimated_arrival:
            tracking["estimatedArrival"] = update.estimated_arrival
        await self.repository.update_request(request_id, {"tracking": tracking})
        return {"tracking": tracking}

    async def rate(self, user: AuthUser, request_id: str, rating: TaxiRatingRequest) -> dict[str, Any]:
        doc = await self._get(request_id)
        if doc.get("clientId") != user.uid:
            raise PermissionError("Acesso negado")
        if doc.get("status") != TripStatus.COMPLETED.value:
            raise ValueError("Só é possível avaliar transportes concluídos")
        if (doc.get("rating") or {}).get("clientRating") is not None:
            raise ValueError("Transporte já avaliado")

        merged = {**(doc.get("rating") or {}), "clientRating": rating.score, "clientComment": rating.comment}
        await self.repository.update_request(request_id, {"rating": merged})
        return await self._get(request_id)
