# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_with_enough_length_1234")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("MERCADOPAGO_ACCESS_TOKEN", "TEST-token")
os.environ.setdefault("MERCADOPAGO_WEBHOOK_SECRET", "mp_test_secret")

from src.shared.models.enums import UserRole  # noqa: E402
from src.shared.models.user import AuthUser  # noqa: E402


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    return project_root / "config" / "config.json"


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_store() -> AsyncMock:
    """Мок документного хранилища."""
    store = AsyncMock()
    store.get = AsyncMock(return_value=None)
    store.set = AsyncMock(return_value=None)
    store.add = AsyncMock(return_value="doc-1")
    store.create = AsyncMock(return_value=True)
    store.update = AsyncMock(return_value=True)
    store.delete = AsyncMock(return_value=True)
    store.query = AsyncMock(return_value=[])
    store.count = AsyncMock(return_value=0)
    store.update_where = AsyncMock(return_value=0)
    store.delete_where = AsyncMock(return_value=0)
    return store


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Мок клиента Redis."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.get_model = AsyncMock(return_value=None)
    redis.set_model = AsyncMock(return_value=True)
    redis.get_json = AsyncMock(return_value=None)
    redis.set_json = AsyncMock(return_value=True)
    redis.acquire_lock = AsyncMock(return_value=True)
    redis.incr_window = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """Мок шины событий."""
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=None)
    event_bus.subscribe = AsyncMock(return_value=None)
    event_bus.is_connected = True
    return event_bus


@pytest.fixture
def mock_firebase() -> AsyncMock:
    """Мок клиента Firebase Admin."""
    firebase = AsyncMock()
    firebase.send_push = AsyncMock(return_value="projects/test/messages/1")
    firebase.verify_id_token = AsyncMock(return_value={"uid": "user-1"})
    firebase.get_user = AsyncMock(return_value={"uid": "user-1", "email": "ana@example.com", "custom_claims": {}})
    firebase.set_custom_user_claims = AsyncMock(return_value=None)
    firebase.upload_file = AsyncMock(return_value="https://storage.example.com/file")
    firebase.list_files = AsyncMock(return_value=[])
    firebase.delete_file = AsyncMock(return_value=True)
    firebase.health_check = AsyncMock(return_value=True)
    return firebase


@pytest.fixture
def mock_sms() -> AsyncMock:
    sms = AsyncMock()
    sms.send_sms = AsyncMock(return_value="SM123")
    return sms


@pytest.fixture
def mock_email() -> AsyncMock:
    email = AsyncMock()
    email.send_email = AsyncMock(return_value="email-1")
    return email


@pytest.fixture
def mock_mercadopago() -> MagicMock:
    mercadopago = MagicMock()
    mercadopago.get_payment = AsyncMock(return_value=None)
    mercadopago.create_payment = AsyncMock(return_value={})
    mercadopago.create_preference = AsyncMock(return_value={})
    mercadopago.get_preference = AsyncMock(return_value={})
    mercadopago.create_refund = AsyncMock(return_value={})
    return mercadopago


# =============================================================================
# ПОЛЬЗОВАТЕЛИ
# =============================================================================

@pytest.fixture
def client_user() -> AuthUser:
    return AuthUser(uid="user-1", email="ana@example.com", role=UserRole.CLIENT)


@pytest.fixture
def other_user() -> AuthUser:
    return AuthUser(uid="user-2", email="bruno@example.com", role=UserRole.CLIENT)


@pytest.fixture
def admin_user() -> AuthUser:
    return AuthUser(uid="admin-1", email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def employee_user() -> AuthUser:
    return AuthUser(uid="emp-1", email="staff@example.com", role=UserRole.EMPLOYEE)


@pytest.fixture
def driver_user() -> AuthUser:
    return AuthUser(uid="driver-1", email="driver@example.com", role=UserRole.DRIVER)
