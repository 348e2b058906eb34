# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины - config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "petshop_saas"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"
    ENVIRONMENT: str = "development"
    RUN_TESTS_ON_STARTUP: bool = False
    RUN_DEV_MODE: bool = True
    COMPONENT_MODE: str = "all"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


class DeploymentSettings(BaseModel):
    """Настройки развертывания компонентов."""
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_INSTANCES_COUNT: int = 1
    WORKER_INSTANCES_COUNT: int = 1
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = True
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class DomainSettings(BaseModel):
    """Настройки домена и локализации."""
    APP_URL: str = "http://localhost:3000"
    DEFAULT_LANGUAGE: str = "pt"
    SUPPORTED_LANGUAGES: list[str] = Field(default_factory=lambda: ["pt", "en"])
    LOCALE: str = "pt-BR"
    TIMEZONE: str = "America/Sao_Paulo"
    CURRENCY: str = "BRL"

    @field_validator("APP_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Убирает завершающий слэш, чтобы пути склеивались без дублей."""
        return (v or "").rstrip("/")


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "petshop"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 5
    DB_MAX_POOL_SIZE: int = 20
    DB_COMMAND_TIMEOUT: int = 60
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "petshop"
    REDIS_MAX_CONNECTIONS: int = 50

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class RedisTTLSettings(BaseModel):
    """Настройки TTL кэша."""
    PROFILE_TTL: int = 300
    ANALYTICS_TTL: int = 60
    SESSION_TTL: int = 3600


class RabbitMQSettings(BaseModel):
    """Настройки RabbitMQ."""
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    RABBITMQ_EXCHANGE: str = "petshop.events"
    RABBITMQ_PREFETCH_COUNT: int = 10

    @field_validator("RABBITMQ_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        env_pass = os.getenv("RABBITMQ_PASSWORD", "")
        if env_pass:
            return env_pass
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к RabbitMQ."""
        return (
            f"amqp://{self.RABBITMQ_USER}:{self.RABBITMQ_PASSWORD}"
            f"@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}{self.RABBITMQ_VHOST}"
        )


class AuthSettings(BaseModel):
    """Настройки сессий (JWT в httpOnly cookie)."""
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    SESSION_DAYS: int = 7
    COOKIE_NAME: str = "auth-token"

    @field_validator("JWT_SECRET", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает секрет из переменных окружения."""
        if not v:
            return os.getenv("JWT_SECRET", "")
        return v

    @property
    def session_seconds(self) -> int:
        return self.SESSION_DAYS * 24 * 60 * 60


class FirebaseSettings(BaseModel):
    """Настройки Firebase (Auth, Cloud Messaging, Storage)."""
    PROJECT_ID: str = ""
    CLIENT_EMAIL: str = ""
    PRIVATE_KEY: str = ""
    STORAGE_BUCKET: str = ""
    WEB_API_KEY: str = ""
    AUTH_REST_URL: str = "https://identitytoolkit.googleapis.com/v1"

    @field_validator("PRIVATE_KEY", mode="before")
    @classmethod
    def unescape_newlines(cls, v: str) -> str:
        """Ключ в .env хранится одной строкой с литеральными \\n."""
        return (v or "").replace("\\n", "\n")

    @property
    def is_configured(self) -> bool:
        return bool(self.PROJECT_ID and self.CLIENT_EMAIL and self.PRIVATE_KEY)


class StripeSettings(BaseModel):
    """Настройки Stripe."""
    SECRET_KEY: str = ""
    WEBHOOK_SECRET: str = ""
    CURRENCY: str = "brl"
    CHECKOUT_EXPIRY_MINUTES: int = 30
    SERVICE_PRICES: dict[str, int] = Field(default_factory=lambda: {
        "consultation": 8000,
        "vaccination": 12000,
        "grooming": 6000,
        "surgery": 50000,
        "emergency": 15000,
        "taxi_dog_base": 1500,
        "taxi_dog_per_km": 250,
    })


class MercadoPagoSettings(BaseModel):
    """Настройки Mercado Pago."""
    ACCESS_TOKEN: str = ""
    WEBHOOK_SECRET: str = ""
    API_URL: str = "https://api.mercadopago.com"
    TIMEOUT: float = 10.0
    PREFERENCE_EXPIRY_MINUTES: int = 30
    MAX_INSTALLMENTS: int = 12


class TwilioSettings(BaseModel):
    """Настройки Twilio (SMS)."""
    ACCOUNT_SID: str = ""
    AUTH_TOKEN: str = ""
    PHONE_NUMBER: str = ""
    API_URL: str = "https://api.twilio.com/2010-04-01"

    @property
    def is_configured(self) -> bool:
        return bool(self.ACCOUNT_SID and self.AUTH_TOKEN and self.PHONE_NUMBER)


class EmailSettings(BaseModel):
    """Настройки Resend (email)."""
    RESEND_API_KEY: str = ""
    FROM_EMAIL: str = "PetShop SaaS <noreply@petshop.example.com>"


class TaxiDogSettings(BaseModel):
    """Тарифы Taxi Dog."""
    BASE_FARE: float = 15.0
    FARE_PER_KM: float = 2.5
    CURRENCY: str = "BRL"


class NotificationSettings(BaseModel):
    """Настройки push-уведомлений и рассылок."""
    ANDROID_CHANNEL_PREFIX: str = "luna_"
    WEB_ICON: str = "/icons/icon-192x192.png"
    WEB_BADGE: str = "/icons/badge-72x72.png"
    SCHEDULED_POLL_INTERVAL: int = 60
    SCHEDULED_BATCH_SIZE: int = 50
    REMINDER_LEAD_HOURS: int = 24
    INBOX_MAX_PAGE_SIZE: int = 50


class UploadSettings(BaseModel):
    """Ограничения на загрузку файлов."""
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    ALLOWED_TYPES: list[str] = Field(default_factory=lambda: [
        "image/jpeg", "image/png", "image/webp", "image/gif",
        "application/pdf", "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "video/mp4", "video/webm", "video/quicktime",
    ])


class RateLimitSettings(BaseModel):
    """Ограничение частоты запросов по IP."""
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW: int = 60


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    domain: DomainSettings = Field(default_factory=DomainSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    redis_ttl: RedisTTLSettings = Field(default_factory=RedisTTLSettings)
    rabbitmq: RabbitMQSettings = Field(default_factory=RabbitMQSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    firebase: FirebaseSettings = Field(default_factory=FirebaseSettings)
    stripe: StripeSettings = Field(default_factory=StripeSettings)
    mercadopago: MercadoPagoSettings = Field(default_factory=MercadoPagoSettings)
    twilio: TwilioSettings = Field(default_factory=TwilioSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    taxi_dog: TaxiDogSettings = Field(default_factory=TaxiDogSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    uploads: UploadSettings = Field(default_factory=UploadSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты переопределяются из переменных окружения.
        """
        config_data = load_config_json()

        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        filtered_data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=filtered_data.get("PROJECT_NAME", "petshop_saas"),
                VERSION=filtered_data.get("VERSION", "1.0.0"),
                DEBUG=filtered_data.get("DEBUG", True),
                LOG_LEVEL=filtered_data.get("LOG_LEVEL", "DEBUG"),
                ENVIRONMENT=os.getenv("ENVIRONMENT", filtered_data.get("ENVIRONMENT", "development")),
                RUN_TESTS_ON_STARTUP=filtered_data.get("RUN_TESTS_ON_STARTUP", False),
                RUN_DEV_MODE=filtered_data.get("RUN_DEV_MODE", True),
                COMPONENT_MODE=os.getenv("COMPONENT_MODE", filtered_data.get("COMPONENT_MODE", "all")),
            ),
            deployment=DeploymentSettings(
                API_HOST=filtered_data.get("API_HOST", "0.0.0.0"),
                API_PORT=int(os.getenv("API_PORT", filtered_data.get("API_PORT", 8000))),
                API_INSTANCES_COUNT=filtered_data.get("API_INSTANCES_COUNT", 1),
                WORKER_INSTANCES_COUNT=filtered_data.get("WORKER_INSTANCES_COUNT", 1),
                CORS_ORIGINS=filtered_data.get("CORS_ORIGINS", ["http://localhost:3000"]),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=filtered_data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=os.getenv("LOG_TO_FILE", filtered_data.get("LOG_TO_FILE", True)),
                LOG_FILE_PATH=filtered_data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=filtered_data.get("LOG_FORMAT", "json"),
                LOG_MAX_BYTES=filtered_data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=filtered_data.get("LOG_BACKUP_COUNT", 5),
            ),
            domain=DomainSettings(
                APP_URL=os.getenv("APP_URL", filtered_data.get("APP_URL", "http://localhost:3000")),
                DEFAULT_LANGUAGE=filtered_data.get("DEFAULT_LANGUAGE", "pt"),
                SUPPORTED_LANGUAGES=filtered_data.get("SUPPORTED_LANGUAGES", ["pt", "en"]),
                LOCALE=filtered_data.get("LOCALE", "pt-BR"),
                TIMEZONE=filtered_data.get("TIMEZONE", "America/Sao_Paulo"),
                CURRENCY=filtered_data.get("CURRENCY", "BRL"),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", filtered_data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", filtered_data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", filtered_data.get("DB_NAME", "petshop")),
                DB_USER=os.getenv("DB_USER", filtered_data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", filtered_data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=filtered_data.get("DB_MIN_POOL_SIZE", 5),
                DB_MAX_POOL_SIZE=filtered_data.get("DB_MAX_POOL_SIZE", 20),
                DB_COMMAND_TIMEOUT=filtered_data.get("DB_COMMAND_TIMEOUT", 60),
                DB_RETRY_ATTEMPTS=filtered_data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=filtered_data.get("DB_RETRY_DELAY", 1.0),
            ),
            redis=RedisSettings(
                REDIS_HOST=os.getenv("REDIS_HOST", filtered_data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", filtered_data.get("REDIS_PORT", 6379))),
                REDIS_DB=filtered_data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", filtered_data.get("REDIS_PASSWORD", "")),
                REDIS_NAMESPACE=filtered_data.get("REDIS_NAMESPACE", "petshop"),
                REDIS_MAX_CONNECTIONS=filtered_data.get("REDIS_MAX_CONNECTIONS", 50),
            ),
            redis_ttl=RedisTTLSettings(
                PROFILE_TTL=filtered_data.get("PROFILE_TTL", 300),
                SESSION_TTL=filtered_data.get("SESSION_TTL", 3600),
                ANALYTICS_TTL=filtered_data.get("ANALYTICS_TTL", 60),
            ),
            rabbitmq=RabbitMQSettings(
                RABBITMQ_HOST=os.getenv("RABBITMQ_HOST", filtered_data.get("RABBITMQ_HOST", "localhost")),
                RABBITMQ_PORT=int(os.getenv("RABBITMQ_PORT", filtered_data.get("RABBITMQ_PORT", 5672))),
                RABBITMQ_USER=os.getenv("RABBITMQ_USER", filtered_data.get("RABBITMQ_USER", "guest")),
                RABBITMQ_PASSWORD=os.getenv("RABBITMQ_PASSWORD", filtered_data.get("RABBITMQ_PASSWORD", "guest")),
                RABBITMQ_VHOST=filtered_data.get("RABBITMQ_VHOST", "/"),
                RABBITMQ_EXCHANGE=filtered_data.get("RABBITMQ_EXCHANGE", "petshop.events"),
                RABBITMQ_PREFETCH_COUNT=filtered_data.get("RABBITMQ_PREFETCH_COUNT", 10),
            ),
            auth=AuthSettings(
                JWT_SECRET=os.getenv("JWT_SECRET", filtered_data.get("JWT_SECRET", "")),
                JWT_ALGORITHM=filtered_data.get("JWT_ALGORITHM", "HS256"),
                SESSION_DAYS=filtered_data.get("SESSION_DAYS", 7),
                COOKIE_NAME=filtered_data.get("COOKIE_NAME", "auth-token"),
            ),
            firebase=FirebaseSettings(
                PROJECT_ID=os.getenv("FIREBASE_PROJECT_ID", filtered_data.get("FIREBASE_PROJECT_ID", "")),
                CLIENT_EMAIL=os.getenv("FIREBASE_CLIENT_EMAIL", filtered_data.get("FIREBASE_CLIENT_EMAIL", "")),
                PRIVATE_KEY=os.getenv("FIREBASE_PRIVATE_KEY", filtered_data.get("FIREBASE_PRIVATE_KEY", "")),
                STORAGE_BUCKET=os.getenv("FIREBASE_STORAGE_BUCKET", filtered_data.get("FIREBASE_STORAGE_BUCKET", "")),
                WEB_API_KEY=os.getenv("FIREBASE_WEB_API_KEY", filtered_data.get("FIREBASE_WEB_API_KEY", "")),
            ),
            stripe=StripeSettings(
                SECRET_KEY=os.getenv("STRIPE_SECRET_KEY", filtered_data.get("STRIPE_SECRET_KEY", "")),
                WEBHOOK_SECRET=os.getenv("STRIPE_WEBHOOK_SECRET", filtered_data.get("STRIPE_WEBHOOK_SECRET", "")),
                CURRENCY=filtered_data.get("STRIPE_CURRENCY", "brl"),
                CHECKOUT_EXPIRY_MINUTES=filtered_data.get("STRIPE_CHECKOUT_EXPIRY_MINUTES", 30),
                SERVICE_PRICES=filtered_data.get("SERVICE_PRICES", StripeSettings().SERVICE_PRICES),
            ),
            mercadopago=MercadoPagoSettings(
                ACCESS_TOKEN=os.getenv("MERCADOPAGO_ACCESS_TOKEN", filtered_data.get("MERCADOPAGO_ACCESS_TOKEN", "")),
                WEBHOOK_SECRET=os.getenv("MERCADOPAGO_WEBHOOK_SECRET", filtered_data.get("MERCADOPAGO_WEBHOOK_SECRET", "")),
                API_URL=filtered_data.get("MERCADOPAGO_API_URL", "https://api.mercadopago.com"),
                TIMEOUT=filtered_data.get("MERCADOPAGO_TIMEOUT", 10.0),
                PREFERENCE_EXPIRY_MINUTES=filtered_data.get("MERCADOPAGO_PREFERENCE_EXPIRY_MINUTES", 30),
                MAX_INSTALLMENTS=filtered_data.get("MERCADOPAGO_MAX_INSTALLMENTS", 12),
            ),
            twilio=TwilioSettings(
                ACCOUNT_SID=os.getenv("TWILIO_ACCOUNT_SID", filtered_data.get("TWILIO_ACCOUNT_SID", "")),
                AUTH_TOKEN=os.getenv("TWILIO_AUTH_TOKEN", filtered_data.get("TWILIO_AUTH_TOKEN", "")),
                PHONE_NUMBER=os.getenv("TWILIO_PHONE_NUMBER", filtered_data.get("TWILIO_PHONE_NUMBER", "")),
            ),
            email=EmailSettings(
                RESEND_API_KEY=os.getenv("RESEND_API_KEY", filtered_data.get("RESEND_API_KEY", "")),
                FROM_EMAIL=filtered_data.get("FROM_EMAIL", "PetShop SaaS <noreply@petshop.example.com>"),
            ),
            taxi_dog=TaxiDogSettings(
                BASE_FARE=filtered_data.get("TAXI_DOG_BASE_FARE", 15.0),
                FARE_PER_KM=filtered_data.get("TAXI_DOG_FARE_PER_KM", 2.5),
                CURRENCY=filtered_data.get("TAXI_DOG_CURRENCY", "BRL"),
            ),
            notifications=NotificationSettings(
                ANDROID_CHANNEL_PREFIX=filtered_data.get("ANDROID_CHANNEL_PREFIX", "luna_"),
                WEB_ICON=filtered_data.get("WEB_ICON", "/icons/icon-192x192.png"),
                WEB_BADGE=filtered_data.get("WEB_BADGE", "/icons/badge-72x72.png"),
                SCHEDULED_POLL_INTERVAL=filtered_data.get("SCHEDULED_POLL_INTERVAL", 60),
                SCHEDULED_BATCH_SIZE=filtered_data.get("SCHEDULED_BATCH_SIZE", 50),
                REMINDER_LEAD_HOURS=filtered_data.get("REMINDER_LEAD_HOURS", 24),
                INBOX_MAX_PAGE_SIZE=filtered_data.get("INBOX_MAX_PAGE_SIZE", 50),
            ),
            uploads=UploadSettings(
                MAX_FILE_SIZE=filtered_data.get("UPLOAD_MAX_FILE_SIZE", 10 * 1024 * 1024),
                ALLOWED_TYPES=filtered_data.get("UPLOAD_ALLOWED_TYPES", UploadSettings().ALLOWED_TYPES),
            ),
            rate_limit=RateLimitSettings(
                RATE_LIMIT_REQUESTS=filtered_data.get("RATE_LIMIT_REQUESTS", 100),
                RATE_LIMIT_WINDOW=filtered_data.get("RATE_LIMIT_WINDOW", 60),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
