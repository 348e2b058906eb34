# src/services/taxi_dog/state_machine.py
"""
Допустимые переходы статусов перевозки.
Отмена возможна только пока питомец не в машине.
"""

from __future__ import annotations

from src.shared.models.enums import TripStatus


class TaxiStateMachine:
    ALLOWED_TRANSITIONS: dict[TripStatus, list[TripStatus]] = {
        TripStatus.REQUESTED: [TripStatus.ACCEPTED, TripStatus.CANCELLED],
        TripStatus.ACCEPTED: [TripStatus.DRIVER_ASSIGNED, TripStatus.CANCELLED],
        TripStatus.DRIVER_ASSIGNED: [TripStatus.PICKUP_ARRIVED, TripStatus.CANCELLED],
        TripStatus.PICKUP_ARRIVED: [TripStatus.PET_PICKED_UP, TripStatus.CANCELLED],
        TripStatus.PET_PICKED_UP: [TripStatus.IN_TRANSIT],
        TripStatus.IN_TRANSIT: [TripStatus.DELIVERED],
        TripStatus.DELIVERED: [TripStatus.COMPLETED],
        TripStatus.COMPLETED: [],
        TripStatus.CANCELLED: [],
    }

    # Поле с отметкой времени, которое проставляется при входе в статус
    TIMESTAMP_FIELDS: dict[TripStatus, str] = {
        TripStatus.ACCEPTED: "acceptedAt",
        TripStatus.DRIVER_ASSIGNED: "driverAssignedAt",
        TripStatus.PICKUP_ARRIVED: "pickupArrivedAt",
        TripStatus.PET_PICKED_UP: "petPickedUpAt",
        TripStatus.IN_TRANSIT: "inTransitAt",
        TripStatus.DELIVERED: "deliveredAt",
        TripStatus.COMPLETED: "completedAt",
        TripStatus.CANCELLED: "cancelledAt",
    }

    @staticmethod
    def can_transition(current_status: str, new_status: str) -> bool:
        try:
            current = TripStatus(current_status)
            new = TripStatus(new_status)
        except ValueError:
            return False
        return new in TaxiStateMachine.ALLOWED_TRANSITIONS.get(current, [])

    @staticmethod
    def is_cancellable(status: str) -> bool:
        return TaxiStateMachine.can_transition(status, TripStatus.CANCELLED.value)

    @staticmethod
    def timestamp_field(status: str) -> str | None:
        try:
            return TaxiStateMachine.TIMESTAMP_FIELDS.get(TripStatus(status))
        except ValueError:
            return None
