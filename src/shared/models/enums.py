# src/shared/models/enums.py
"""
Перечисления предметной области.
"""

from enum import Enum


class UserRole(str, Enum):
    """Роли пользователей."""
    ADMIN = "admin"
    EMPLOYEE = "employee"
    CLIENT = "client"
    DRIVER = "driver"

    def __str__(self) -> str:
        return self.value


class UserStatus(str, Enum):
    """Статус учётной записи."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING = "pending"

    def __str__(self) -> str:
        return self.value


class AppointmentStatus(str, Enum):
    """Статусы записи на услугу."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

    def __str__(self) -> str:
        return self.value


class TripStatus(str, Enum):
    """Статусы перевозки Taxi Dog."""
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    DRIVER_ASSIGNED = "driver-assigned"
    PICKUP_ARRIVED = "pickup-arrived"
    PET_PICKED_UP = "pet-picked-up"
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


class PaymentType(str, Enum):
    """За что платят."""
    APPOINTMENT = "appointment"
    TAXI_DOG = "taxi_dog"
    PRODUCT = "product"
    SERVICE = "service"

    def __str__(self) -> str:
        return self.value


class PaymentProvider(str, Enum):
    STRIPE = "stripe"
    MERCADOPAGO = "mercadopago"

    def __str__(self) -> str:
        return self.value


class RelatedPaymentStatus(str, Enum):
    """Статус оплаты, который вебхук проставляет записи или заявке Taxi Dog."""
    PENDING = "pending"
    PAID = "paid"
    PAYMENT_FAILED = "payment_failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    def __str__(self) -> str:
        return self.value


class NotificationType(str, Enum):
    """Категории уведомлений (они же каналы Android и ключи предпочтений)."""
    APPOINTMENT = "appointment"
    PAYMENT = "payment"
    TAXI_DOG = "taxi_dog"
    GENERAL = "general"
    PROMOTION = "promotion"

    def __str__(self) -> str:
        return self.value


class NotificationPriority(str, Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    def __str__(self) -> str:
        return self.value


class DeviceType(str, Enum):
    WEB = "web"
    ANDROID = "android"
    IOS = "ios"

    def __str__(self) -> str:
        return self.value


class RecordStatus(str, Enum):
    """Статус карточки клиента."""
    ACTIVE = "active"
    INACTIVE = "inactive"

    def __str__(self) -> str:
        return self.value


class PetSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXTRA_LARGE = "extra-large"

    def __str__(self) -> str:
        return self.value


class PetGender(str, Enum):
    MALE = "male"
    FEMALE = "female"

    def __str__(self) -> str:
        return self.value


class PetStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DECEASED = "deceased"

    def __str__(self) -> str:
        return self.value


class ServiceCategory(str, Enum):
    """Категории услуг каталога."""
    GROOMING = "grooming"
    VETERINARY = "veterinary"
    BOARDING = "boarding"
    TRAINING = "training"
    TAXI = "taxi"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


class ServiceStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"

    def __str__(self) -> str:
        return self.value
