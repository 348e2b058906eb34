# src/services/appointments/service.py
"""
Бизнес-логика записей на услуги.

Сам сервис только пишет документы и публикует события;
уведомления, SMS и напоминания делает воркер.
"""

from __future__ import annotations

from typing import Any

from src.common.logger import log_info
from src.infra.documents import Where, utc_now
from src.infra.event_bus import EventBus
from src.services.appointments.repository import AppointmentRepository
from src.shared.events.appointment_events import AppointmentCreated, AppointmentStatusChanged
from src.shared.models.appointment import AppointmentCreate, AppointmentListQuery
from src.shared.models.common import Pagination
from src.shared.models.enums import AppointmentStatus, RelatedPaymentStatus, ServiceStatus
from src.shared.models.user import AuthUser

LOGGER_NAME = "petshop.appointments"

FINAL_STATUSES = {
    AppointmentStatus.COMPLETED.value,
    AppointmentStatus.CANCELLED.value,
    AppointmentStatus.NO_SHOW.value,
}


class AppointmentService:
    def __init__(self, repository: AppointmentRepository, event_bus: EventBus) -> None:
        self.repository = repository
        self.event_bus = event_bus

    async def _client_user_id(self, user: AuthUser, client_id: str) -> str | None:
        """
        Пользователь, которому принадлежит карточка клиента.
        Клиент может записывать только себя; персонал кого угодно.
        """
        client = await self.repository.get_client(client_id)
        if client is None:
            raise LookupError("Cliente não encontrado")

        owner = client.get("userId")
        if user.is_staff:
            return owner

        if client_id == user.uid or owner == user.uid:
            return user.uid
        raise PermissionError("Acesso negado")

    async def _check_booking(self, request: AppointmentCreate) -> None:
        """Услуга есть в каталоге и активна, все питомцы из карточки этого клиента."""
        item = await self.repository.get_service(request.service_id)
        if item is None or item.get("status") != ServiceStatus.ACTIVE.value:
            raise LookupError("Serviço não encontrado")

        pets = {p["id"]: p for p in await self.repository.get_pets(request.pet_ids)}
        for pet_id in request.pet_ids:
            pet = pets.get(pet_id)
            if pet is None:
                raise LookupError(f"Pet {pet_id} não encontrado")
            if pet.get("clientId") != request.client_id:
                raise ValueError(f"Pet {pet_id} não pertence ao cliente")

    async def create(self, user: AuthUser, request: AppointmentCreate) -> dict[str, Any]:
        user_id = await self._client_user_id(user, request.client_id)
        await self._check_booking(request)
        now = utc_now()

        data = request.model_dump(by_alias=True)
        data.update({
            "userId": user_id,
            "status": AppointmentStatus.SCHEDULED.value,
            "paymentStatus": RelatedPaymentStatus.PENDING.value,
            "createdBy": user.uid,
            "createdAt": now,
            "updatedAt": now,
        })
        appointment_id = await self.repository.create(data)

        await self.event_bus.publish(AppointmentCreated(
            appointment_id=appointment_id,
            client_id=request.client_id,
            user_id=user_id,
            scheduled_date=request.scheduled_date,
            service_id=request.service_id,
        ))
        await log_info(f"Запись {appointment_id} создана", logger_name=LOGGER_NAME)
        return await self.get(user, appointment_id)

    @staticmethod
    def _can_view(user: AuthUser, doc: dict[str, Any]) -> bool:
        return user.is_staff or user.uid in (doc.get("userId"), doc.get("clientId"), doc.get("createdBy"))

    async def get(self, user: AuthUser, appointment_id: str) -> dict[str, Any]:
        doc = await self.repository.get(appointment_id)
        if doc is None:
            raise LookupError("Agendamento não encontrado")
        if not self._can_view(user, doc):
            raise PermissionError("Acesso negado")
        return doc

    async def list(self, user: AuthUser, query: AppointmentListQuery) -> dict[str, Any]:
        filters: list[Where] = []
        if not user.is_staff:
            filters.append(Where("userId", "==", user.uid))
        if query.status:
            filters.append(Where("status", "==", query.status.value))
        if query.date_from:
            filters.append(Where("scheduledDate", ">=", query.date_from))
        if query.date_to:
            filters.append(Where("scheduledDate", "<=", query.date_to))

        items = await self.repository.list(filters, limit=query.limit, offset=(query.page - 1) * query.limit)
        total = await self.repository.count(filters)
        return {
            "appointments": items,
            "pagination": Pagination.create(query.page, query.limit, total).model_dump(by_alias=True),
        }

    async def update_status(self, user: AuthUser, appointment_id: str, new_status: AppointmentStatus) -> dict[str, Any]:
        """Персонал меняет любой статус; клиент может только отменить свою запись."""
        doc = await self.get(user, appointment_id)
        if not user.is_staff and new_status != AppointmentStatus.CANCELLED:
            raise PermissionError("Acesso negado")

        old_status = doc.get("status", "")
        if old_status == new_status.value:
            raise ValueError("Agendamento já está neste status")
        if old_status in FINAL_STATUSES:
            raise ValueError(f"Agendamento com status {old_status} não pode ser alterado")

        fields: dict[str, Any] = {"status": new_status.value, "statusChangedBy": user.uid}
        if new_status == AppointmentStatus.CANCELLED:
            fields["cancelledAt"] = utc_now()
        elif new_status == AppointmentStatus.COMPLETED:
            fields["completedAt"] = utc_now()

        if not await self.repository.update_if_status(appointment_id, old_status, fields):
            raise ValueError("O agendamento foi alterado por outra operação, tente novamente")

        await self.event_bus.publish(AppointmentStatusChanged(
            appointment_id=appointment_id,
            client_id=doc.get("clientId", ""),
            user_id=doc.get("userId"),
            old_status=old_status,
            new_status=new_status.value,
        ))
        return await self.get(user, appointment_id)
