#!/usr/bin/env python3
# main.py
"""
Главная точка входа PetShop SaaS.
Запускает HTTP-шлюз, воркер уведомлений или оба компонента сразу.
"""

from __future__ import annotations

import asyncio
import signal
import sys

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info, setup_logging
from src.config import settings
from src.infra.database import close_db, init_db
from src.infra.event_bus import close_event_bus, init_event_bus
from src.infra.firebase import init_firebase
from src.infra.redis_client import close_redis, init_redis

VALID_MODES = ("api", "worker", "all")

_shutdown_event: asyncio.Event | None = None
_running_tasks: list[asyncio.Task] = []


def setup_signal_handlers() -> None:
    """Настраивает обработчики SIGINT и SIGTERM для graceful shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        if _shutdown_event and not _shutdown_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            _shutdown_event.set()
            for task in _running_tasks:
                if not task.done():
                    task.cancel()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


async def init_infrastructure() -> None:
    await log_info("Инициализация инфраструктуры...", type_msg=TypeMsg.INFO)
    await init_db()
    await init_redis()
    await init_event_bus()
    await init_firebase()
    await log_info("Инфраструктура инициализирована", type_msg=TypeMsg.INFO)


async def close_infrastructure() -> None:
    await log_info("Закрытие подключений...", type_msg=TypeMsg.INFO)
    await close_event_bus()
    await close_redis()
    await close_db()
    await log_info("Подключения закрыты", type_msg=TypeMsg.INFO)


async def run_api() -> None:
    """HTTP-шлюз под uvicorn; инфраструктуру поднимает lifespan приложения."""
    import uvicorn

    await log_info(
        f"Запуск HTTP-шлюза на {settings.deployment.API_HOST}:{settings.deployment.API_PORT}...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.api.app:app",
        host=settings.deployment.API_HOST,
        port=settings.deployment.API_PORT,
        log_level=settings.system.LOG_LEVEL.lower(),
    )
    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("HTTP-шлюз: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def run_worker(init_infra: bool = True) -> None:
    from src.worker.runner import run_workers

    await run_workers(init_infra=init_infra)


def interactive_mode_selection() -> str:
    print("\n" + "=" * 60)
    print(f"  PetShop SaaS v{settings.system.VERSION} - выбор компонента")
    print("=" * 60)
    print("  1. api     - HTTP-шлюз (FastAPI)")
    print("  2. worker  - воркер уведомлений")
    print("  3. all     - шлюз и воркер в одном процессе")
    print("=" * 60)

    mode_map = {"1": "api", "2": "worker", "3": "all"}
    while True:
        choice = input("Выберите режим [1-3]: ").strip().lower()
        if choice in mode_map:
            return mode_map[choice]
        if choice in VALID_MODES:
            return choice
        print("Неверный выбор, попробуйте снова.")


async def resolve_mode(mode: str | None) -> str:
    """Аргумент командной строки, затем COMPONENT_MODE, затем интерактивный выбор."""
    if mode:
        return mode

    component_mode = settings.system.COMPONENT_MODE
    if component_mode in VALID_MODES:
        await log_info(f"Запуск компонента '{component_mode}' из COMPONENT_MODE", type_msg=TypeMsg.INFO)
        return component_mode

    return interactive_mode_selection()


async def main(mode: str | None = None) -> None:
    global _running_tasks

    setup_logging()
    setup_signal_handlers()

    mode = await resolve_mode(mode)
    await log_info(f"PetShop SaaS v{settings.system.VERSION} - запуск в режиме '{mode}'", type_msg=TypeMsg.INFO)

    try:
        if mode == "api":
            _running_tasks = [asyncio.create_task(run_api())]
        elif mode == "worker":
            _running_tasks = [asyncio.create_task(run_worker())]
        elif mode == "all":
            await init_infrastructure()
            _running_tasks = [
                asyncio.create_task(run_api()),
                asyncio.create_task(run_worker(init_infra=False)),
            ]
        else:
            await log_error(f"Неизвестный режим: {mode}")
            return

        await asyncio.gather(*_running_tasks, return_exceptions=True)

    except asyncio.CancelledError:
        await log_info("Отмена всех задач...", type_msg=TypeMsg.INFO)
        for task in _running_tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*_running_tasks, return_exceptions=True)
    finally:
        if mode == "all":
            await close_infrastructure()
        await log_info("Приложение остановлено", type_msg=TypeMsg.INFO)


def print_usage() -> None:
    print("""
PetShop SaaS

Использование:
    python main.py [режим]

Режимы:
    api       HTTP-шлюз (FastAPI + uvicorn)
    worker    воркер уведомлений (RabbitMQ + отложенные рассылки)
    all       оба компонента в одном процессе

Без аргумента режим берётся из COMPONENT_MODE или выбирается интерактивно.
    """)


if __name__ == "__main__":
    mode = None

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in VALID_MODES:
            mode = arg
        else:
            print(f"Ошибка: неизвестный режим '{arg}'")
            print_usage()
            sys.exit(1)

    try:
        asyncio.run(main(mode))
    except KeyboardInterrupt:
        pass
