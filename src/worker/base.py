# src/worker/base.py
"""
Базовый класс для воркеров.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from src.common.constants import LOGGER_WORKER, TypeMsg
from src.common.logger import log_error, log_info
from src.infra.documents import DocumentStore, get_store
from src.infra.event_bus import EventBus, get_event_bus
from src.infra.redis_client import RedisClient, get_redis
from src.shared.events.base import DomainEvent


class BaseWorker(ABC):
    """
    Базовый класс для всех воркеров.
    Подписывается на события и обрабатывает их; может держать периодические задачи.
    """

    def __init__(
        self,
        event_bus: EventBus | None = None,
        store: DocumentStore | None = None,
        redis: RedisClient | None = None,
    ) -> None:
        self.event_bus = event_bus or get_event_bus()
        self.store = store or get_store()
        self.redis = redis or get_redis()
        self._running = False
        self._tasks: list[asyncio.Task] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Имя воркера."""

    @property
    @abstractmethod
    def subscriptions(self) -> list[str]:
        """Типы событий для подписки."""

    @abstractmethod
    async def handle_event(self, event: DomainEvent) -> None:
        """Обрабатывает событие."""

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return

        self._running = True
        await log_info(f"Воркер {self.name} запускается...", logger_name=LOGGER_WORKER)

        for event_type in self.subscriptions:
            await self.event_bus.subscribe(event_type, handler=self._on_event)
            await log_info(
                f"Воркер {self.name} подписан на {event_type}",
                type_msg=TypeMsg.DEBUG,
                logger_name=LOGGER_WORKER,
            )

        await log_info(f"Воркер {self.name} запущен", logger_name=LOGGER_WORKER)

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        await log_info(f"Воркер {self.name} остановлен", logger_name=LOGGER_WORKER)

    def run_periodic(self, name: str, interval: float, job: Callable[[], Awaitable[object]]) -> None:
        """Запускает job каждые interval секунд, пока воркер работает."""

        async def loop() -> None:
            while self._running:
                try:
                    await job()
                except Exception as e:
                    await log_error(
                        f"Ошибка периодической задачи {name} воркера {self.name}: {e}",
                        logger_name=LOGGER_WORKER,
                        exc_info=True,
                    )
                await asyncio.sleep(interval)

        self._tasks.append(asyncio.create_task(loop(), name=f"{self.name}:{name}"))

    async def _on_event(self, event: DomainEvent) -> None:
        if not self._running:
            return

        await log_info(
            f"Воркер {self.name} получил событие {event.event_type}",
            type_msg=TypeMsg.DEBUG,
            logger_name=LOGGER_WORKER,
        )
        try:
            await self.handle_event(event)
        except Exception as e:
            await log_error(
                f"Ошибка в воркере {self.name}: {e}",
                logger_name=LOGGER_WORKER,
                extra={"event_type": event.event_type, "payload": event.payload},
                exc_info=True,
            )
