# tests/common/test_constants.py
"""
Тесты констант и перечислений.
"""

from src.common.constants import LOGGER_WORKER, Collections, TypeMsg
from src.shared.models.enums import AppointmentStatus, PaymentProvider, TripStatus, UserRole


class TestTypeMsg:
    def test_values(self) -> None:
        assert [m.value for m in TypeMsg] == ["debug", "info", "warning", "error", "critical"]

    def test_is_str_enum(self) -> None:
        assert TypeMsg.INFO == "info"


class TestCollections:
    def test_firestore_compatible_names(self) -> None:
        """Имена совпадают с коллекциями, которые читает фронтенд."""
        assert Collections.TAXI_REQUESTS == "taxiRequests"
        assert Collections.USER_SETTINGS == "userSettings"
        assert Collections.FCM_TOKENS == "fcm_tokens"
        assert Collections.SCHEDULED_NOTIFICATIONS == "scheduled_notifications"

    def test_logger_names_share_prefix(self) -> None:
        assert LOGGER_WORKER.startswith("petshop.")


class TestEnums:
    def test_trip_status_uses_hyphens(self) -> None:
        assert TripStatus.DRIVER_ASSIGNED.value == "driver-assigned"
        assert str(TripStatus.PET_PICKED_UP) == "pet-picked-up"

    def test_roles(self) -> None:
        assert {r.value for r in UserRole} >= {"admin", "employee", "driver", "client"}

    def test_providers(self) -> None:
        assert {p.value for p in PaymentProvider} == {"stripe", "mercadopago"}

    def test_appointment_statuses(self) -> None:
        assert AppointmentStatus.IN_PROGRESS.value == "in-progress"
