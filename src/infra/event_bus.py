# src/infra/event_bus.py
"""
Шина событий на базе RabbitMQ.
Pub/Sub между HTTP-слоем (вебхуки, записи, Taxi Dog) и фоновым воркером.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Awaitable, Callable

import aio_pika
from aio_pika import ExchangeType, Message
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractExchange, AbstractQueue

from src.common.logger import log_debug, log_error, log_info
from src.shared.events.base import DomainEvent, parse_event

LOGGER_NAME = "petshop.event_bus"


class EventTypes:
    """Константы типов событий (routing keys)."""
    PAYMENT_STATUS_CHANGED = "payment.status_changed"
    USER_CREATED = "user.created"
    APPOINTMENT_CREATED = "appointment.created"
    APPOINTMENT_STATUS_CHANGED = "appointment.status_changed"
    TAXI_DOG_STATUS_CHANGED = "taxi_dog.status_changed"


EventHandler = Callable[[DomainEvent], Awaitable[None]]


class EventBus:
    """
    Шина событий на базе RabbitMQ (Singleton).

    Topic exchange, routing_key = event_type, одна durable-очередь на тип события.
    """

    _instance: EventBus | None = None
    _connection: AbstractConnection | None = None
    _channel: AbstractChannel | None = None
    _exchange: AbstractExchange | None = None
    _handlers: dict[str, list[EventHandler]]

    def __new__(cls) -> EventBus:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._connection = None
        self._channel = None
        self._exchange = None
        self._handlers = {}
        self._exchange_name = "petshop.events"
        self._queues: dict[str, AbstractQueue] = {}

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and not self._connection.is_closed

    async def connect(
        self,
        url: str | None = None,
        exchange_name: str | None = None,
        prefetch_count: int = 10,
    ) -> None:
        """Подключается к RabbitMQ и объявляет topic exchange."""
        if self.is_connected:
            return

        if url is None:
            from src.config import settings
            url = settings.rabbitmq.url
            exchange_name = settings.rabbitmq.RABBITMQ_EXCHANGE
            prefetch_count = settings.rabbitmq.RABBITMQ_PREFETCH_COUNT

        if exchange_name:
            self._exchange_name = exchange_name

        await log_info("Подключение к RabbitMQ...", logger_name=LOGGER_NAME)

        self._connection = await aio_pika.connect_robust(url)
        self._channel = await self._connection.channel()
        await self._channel.set_qos(prefetch_count=prefetch_count)

        self._exchange = await self._channel.declare_exchange(
            self._exchange_name,
            ExchangeType.TOPIC,
            durable=True,
        )

        await log_info("Подключение к RabbitMQ установлено", logger_name=LOGGER_NAME)

    async def disconnect(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            self._channel = None
            self._exchange = None
            self._queues = {}
            self._handlers = {}
            await log_info("Соединение с RabbitMQ закрыто", logger_name=LOGGER_NAME)

    async def publish(self, event: DomainEvent) -> bool:
        """
        Публикует событие. Ошибки не пробрасываются вызывающему коду:
        запись в БД уже выполнена, а потеря события только логируется.

        Returns:
            True если событие отправлено
        """
        if not self.is_connected or self._exchange is None:
            await log_error(
                f"Не удалось опубликовать {event.event_type}: нет соединения с RabbitMQ",
                logger_name=LOGGER_NAME,
                extra={"event_id": event.event_id},
            )
            return False

        try:
            message = Message(
                body=event.to_json().encode(),
                content_type="application/json",
                message_id=event.event_id,
                timestamp=datetime.now(timezone.utc),
                delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            )
            await self._exchange.publish(message, routing_key=event.event_type)
            await log_debug(f"Событие опубликовано: {event.event_type}", logger_name=LOGGER_NAME)
            return True
        except Exception as e:
            await log_error(
                f"Ошибка публикации события {event.event_type}: {e}",
                logger_name=LOGGER_NAME,
                extra={"event_id": event.event_id},
            )
            return False

    async def subscribe(
        self,
        event_type: str,
        handler: EventHandler,
        queue_name: str | None = None,
    ) -> None:
        """
        Подписывает обработчик на тип события.

        Args:
            event_type: Тип события (routing_key pattern)
            handler: Асинхронный обработчик
            queue_name: Имя очереди (по умолчанию petshop.<event_type>)
        """
        if not self.is_connected or self._channel is None or self._exchange is None:
            await log_error("Не удалось подписаться: нет соединения с RabbitMQ", logger_name=LOGGER_NAME)
            return

        self._handlers.setdefault(event_type, []).append(handler)

        if queue_name is None:
            queue_name = f"petshop.{event_type.replace('.', '_')}"

        if queue_name not in self._queues:
            queue = await self._channel.declare_queue(queue_name, durable=True)
            await queue.bind(self._exchange, routing_key=event_type)
            self._queues[queue_name] = queue
            await queue.consume(self._make_consumer(event_type))

        await log_debug(f"Подписка на события: {event_type}", logger_name=LOGGER_NAME)

    def _make_consumer(self, event_type: str) -> Callable[[aio_pika.abc.AbstractIncomingMessage], Awaitable[None]]:
        async def consumer(message: aio_pika.abc.AbstractIncomingMessage) -> None:
            async with message.process():
                try:
                    event = parse_event(message.body)
                except ValueError as e:
                    await log_error(f"Некорректное сообщение в очереди {event_type}: {e}", logger_name=LOGGER_NAME)
                    return

                for handler in self._handlers.get(event_type, []):
                    try:
                        await handler(event)
                    except Exception as e:
                        await log_error(
                            f"Ошибка в обработчике {getattr(handler, '__name__', handler)}: {e}",
                            logger_name=LOGGER_NAME,
                            extra={"event_id": event.event_id, "event_type": event.event_type},
                            exc_info=True,
                        )

        return consumer

    async def health_check(self) -> bool:
        return self.is_connected


# Глобальный экземпляр
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Возвращает глобальный экземпляр EventBus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


async def init_event_bus() -> None:
    """Подключается к RabbitMQ по настройкам из конфигурации."""
    from src.config import settings

    await get_event_bus().connect(
        url=settings.rabbitmq.url,
        exchange_name=settings.rabbitmq.RABBITMQ_EXCHANGE,
        prefetch_count=settings.rabbitmq.RABBITMQ_PREFETCH_COUNT,
    )
    await log_info(
        f"RabbitMQ подключён: {settings.rabbitmq.RABBITMQ_HOST}:{settings.rabbitmq.RABBITMQ_PORT}",
        logger_name=LOGGER_NAME,
    )


async def close_event_bus() -> None:
    await get_event_bus().disconnect()
    await log_info("RabbitMQ отключён", logger_name=LOGGER_NAME)
