# src/shared/models/__init__.py
"""
Общие Pydantic-модели API и межсервисного взаимодействия.
"""

from src.shared.models.enums import (
    UserRole,
    UserStatus,
    AppointmentStatus,
    TripStatus,
    PaymentType,
    PaymentProvider,
    RelatedPaymentStatus,
    NotificationType,
    NotificationPriority,
    DeviceType,
)
from src.shared.models.common import ApiModel, Pagination, ErrorResponse, HealthStatus
from src.shared.models.user import UserProfile, AuthUser, LoginRequest, SessionClaims
from src.shared.models.notification import PushPayload

__all__ = [
    # Enums
    "UserRole",
    "UserStatus",
    "AppointmentStatus",
    "TripStatus",
    "PaymentType",
    "PaymentProvider",
    "RelatedPaymentStatus",
    "NotificationType",
    "NotificationPriority",
    "DeviceType",
    # Common
    "ApiModel",
    "Pagination",
    "ErrorResponse",
    "HealthStatus",
    # User
    "UserProfile",
    "AuthUser",
    "LoginRequest",
    "SessionClaims",
    # Notifications
    "PushPayload",
]
