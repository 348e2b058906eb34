# tests/worker/test_base_worker.py
"""
Тесты базового воркера: подписки, изоляция ошибок, периодические задачи.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.shared.events.base import DomainEvent
from src.worker.base import BaseWorker


class EchoWorker(BaseWorker):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.handled: list[DomainEvent] = []

    @property
    def name(self) -> str:
        return "EchoWorker"

    @property
    def subscriptions(self) -> list[str]:
        return ["test.first", "test.second"]

    async def handle_event(self, event: DomainEvent) -> None:
        self.handled.append(event)


@pytest.fixture
def worker(mock_event_bus, mock_store, mock_redis) -> EchoWorker:
    return EchoWorker(mock_event_bus, mock_store, mock_redis)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_subscribes_to_every_event(self, worker, mock_event_bus):
        await worker.start()

        assert worker.is_running is True
        subscribed = [c.args[0] for c in mock_event_bus.subscribe.call_args_list]
        assert subscribed == ["test.first", "test.second"]
        assert mock_event_bus.subscribe.call_args.kwargs["handler"] == worker._on_event

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, worker, mock_event_bus):
        await worker.start()
        await worker.start()

        assert mock_event_bus.subscribe.await_count == 2

    @pytest.mark.asyncio
    async def test_stop_cancels_tasks(self, worker):
        await worker.start()
        worker.run_periodic("idle", 3600, AsyncMock())

        await worker.stop()

        assert worker.is_running is False
        assert worker._tasks == []


class TestOnEvent:
    @pytest.mark.asyncio
    async def test_dispatches_when_running(self, worker):
        worker._running = True
        event = DomainEvent(event_type="test.first")

        await worker._on_event(event)

        assert worker.handled == [event]

    @pytest.mark.asyncio
    async def test_ignored_when_stopped(self, worker):
        await worker._on_event(DomainEvent(event_type="test.first"))

        assert worker.handled == []

    @pytest.mark.asyncio
    async def test_handler_error_is_isolated(self, worker):
        """Исключение обработчика логируется и не выходит наружу."""
        worker._running = True
        worker.handle_event = AsyncMock(side_effect=RuntimeError("boom"))

        await worker._on_event(DomainEvent(event_type="test.first"))

        worker.handle_event.assert_awaited_once()


class TestRunPeriodic:
    @pytest.mark.asyncio
    async def test_job_survives_errors(self, worker):
        worker._running = True
        calls = 0
        done = asyncio.Event()

        async def job() -> None:
            nonlocal calls
            calls += 1
            if calls >= 3:
                done.set()
            raise RuntimeError("periodic failure")

        worker.run_periodic("flaky", 0, job)
        await asyncio.wait_for(done.wait(), timeout=1)
        await worker.stop()

        assert calls >= 3
