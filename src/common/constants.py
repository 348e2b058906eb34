# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class Collections:
    """Имена коллекций документного хранилища."""
    USERS = "users"
    USER_SETTINGS = "userSettings"
    CLIENTS = "clients"
    PETS = "pets"
    SERVICES = "services"
    APPOINTMENTS = "appointments"
    TAXI_REQUESTS = "taxiRequests"
    PAYMENTS = "payments"
    DISPUTES = "disputes"
    CHARGEBACKS = "chargebacks"
    NOTIFICATIONS = "notifications"
    NOTIFICATION_LOGS = "notification_logs"
    SCHEDULED_NOTIFICATIONS = "scheduled_notifications"
    FCM_TOKENS = "fcm_tokens"
    LOGS = "logs"
    ANALYTICS_EVENTS = "analytics_events"


# Логгеры компонентов
LOGGER_API = "petshop.api"
LOGGER_PAYMENTS = "petshop.payments"
LOGGER_WEBHOOKS = "petshop.webhooks"
LOGGER_NOTIFICATIONS = "petshop.notifications"
LOGGER_WORKER = "petshop.worker"
