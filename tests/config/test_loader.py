# tests/config/test_loader.py
"""
Тесты для модуля загрузки конфигурации.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from src.config.loader import (
    DatabaseSettings,
    FirebaseSettings,
    RabbitMQSettings,
    Settings,
    SystemSettings,
    get_config_path,
    get_project_root,
    load_config_json,
)


class TestPaths:
    def test_root_contains_src_and_config(self) -> None:
        root = get_project_root()
        assert isinstance(root, Path)
        assert (root / "src").exists()
        assert (root / "config").exists()

    def test_config_path(self) -> None:
        path = get_config_path()
        assert path.name == "config.json"
        assert path.parent.name == "config"


class TestLoadConfigJson:
    def test_contains_required_keys(self) -> None:
        config = load_config_json()
        for key in ("PROJECT_NAME", "VERSION", "API_PORT", "TIMEZONE", "TAXI_DOG_BASE_FARE"):
            assert key in config, f"Отсутствует ключ: {key}"

    def test_raises_file_not_found(self, tmp_path: Path) -> None:
        with patch("src.config.loader.get_config_path", return_value=tmp_path / "nonexistent.json"):
            with pytest.raises(FileNotFoundError):
                load_config_json()


class TestSections:
    def test_is_production(self) -> None:
        assert SystemSettings(ENVIRONMENT="production").is_production is True
        assert SystemSettings(ENVIRONMENT="development").is_production is False

    def test_database_dsn(self) -> None:
        db = DatabaseSettings(DB_USER="u", DB_PASSWORD="p", DB_HOST="h", DB_PORT=5433, DB_NAME="n")
        assert db.dsn == "postgresql://u:p@h:5433/n"

    def test_rabbitmq_url(self) -> None:
        mq = RabbitMQSettings(RABBITMQ_USER="guest", RABBITMQ_PASSWORD="secret", RABBITMQ_HOST="mq")
        assert mq.url.startswith("amqp://guest:")
        assert mq.url.endswith("@mq:5672/")

    def test_firebase_private_key_newlines(self) -> None:
        fb = FirebaseSettings(PROJECT_ID="p", CLIENT_EMAIL="e", PRIVATE_KEY="line1\\nline2")
        assert fb.PRIVATE_KEY == "line1\nline2"
        assert fb.is_configured is True

    def test_firebase_not_configured(self) -> None:
        assert FirebaseSettings().is_configured is False


class TestSettingsFromJson:
    def test_domain_values(self) -> None:
        settings = Settings.from_config_json()
        assert settings.domain.TIMEZONE == "America/Sao_Paulo"
        assert settings.domain.CURRENCY == "BRL"
        assert settings.taxi_dog.BASE_FARE == 15.0
        assert settings.taxi_dog.FARE_PER_KM == 2.5
        assert settings.notifications.ANDROID_CHANNEL_PREFIX == "luna_"
        assert settings.redis_ttl.ANALYTICS_TTL == 60

    def test_secrets_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_from_env")
        monkeypatch.setenv("API_PORT", "9001")
        settings = Settings.from_config_json()
        assert settings.stripe.WEBHOOK_SECRET == "whsec_from_env"
        assert settings.deployment.API_PORT == 9001

    def test_log_to_file_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_TO_FILE", "false")
        assert Settings.from_config_json().logging.LOG_TO_FILE is False

        monkeypatch.setenv("LOG_TO_FILE", "true")
        assert Settings.from_config_json().logging.LOG_TO_FILE is True
