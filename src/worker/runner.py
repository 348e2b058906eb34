# src/worker/runner.py
"""
Запускалка воркеров.
"""

from __future__ import annotations

import asyncio

from src.common.constants import LOGGER_WORKER, TypeMsg
from src.common.logger import log_error, log_info
from src.infra.database import close_db, init_db
from src.infra.event_bus import close_event_bus, init_event_bus
from src.infra.firebase import init_firebase
from src.infra.redis_client import close_redis, init_redis
from src.worker.base import BaseWorker
from src.worker.notifications import NotificationWorker


async def run_workers(init_infra: bool = True) -> None:
    """
    Запускает NotificationWorker и ждёт отмены.

    Args:
        init_infra: Если True, поднимает PostgreSQL, Redis, RabbitMQ и Firebase.
                    В режиме "all" инфраструктура уже поднята в main.py.
    """
    await log_info("Запуск воркеров...", logger_name=LOGGER_WORKER)

    if init_infra:
        await log_info("Инициализация инфраструктуры для воркеров...", type_msg=TypeMsg.DEBUG, logger_name=LOGGER_WORKER)
        await init_db()
        await init_redis()
        await init_event_bus()
        await init_firebase()

    workers: list[BaseWorker] = [NotificationWorker()]

    try:
        for worker in workers:
            await worker.start()

        await log_info(f"Запущено воркеров: {len(workers)}", logger_name=LOGGER_WORKER)

        while True:
            await asyncio.sleep(1)

    except asyncio.CancelledError:
        await log_info("Получен сигнал остановки", logger_name=LOGGER_WORKER)
    except Exception as e:
        await log_error(f"Критическая ошибка воркеров: {e}", logger_name=LOGGER_WORKER, exc_info=True)
    finally:
        for worker in workers:
            await worker.stop()

        if init_infra:
            await close_event_bus()
            await close_redis()
            await close_db()

        await log_info("Воркеры остановлены", logger_name=LOGGER_WORKER)


def main() -> None:
    try:
        asyncio.run(run_workers())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
