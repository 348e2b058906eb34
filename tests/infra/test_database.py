# tests/infra/test_database.py
"""
Тесты для менеджера базы данных.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.infra.database import SCHEMA_LOCK_ID, DatabaseManager, _init_schema, retry_on_connection_error


def pool_with(conn: MagicMock) -> MagicMock:
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.acquire.return_value.__aexit__.return_value = None
    return pool


class TestRetryOnConnectionError:
    @pytest.mark.asyncio
    async def test_retries_until_success(self) -> None:
        calls = 0

        @retry_on_connection_error(max_attempts=3, delay=0.01)
        async def flaky() -> str:
            nonlocal calls
            calls += 1
            if calls < 3:
                raise ConnectionRefusedError("refused")
            return "ok"

        assert await flaky() == "ok"
        assert calls == 3

    @pytest.mark.asyncio
    async def test_gives_up(self) -> None:
        @retry_on_connection_error(max_attempts=2, delay=0.01)
        async def down() -> None:
            raise ConnectionRefusedError("refused")

        with pytest.raises(ConnectionRefusedError):
            await down()

    @pytest.mark.asyncio
    async def test_query_errors_not_retried(self) -> None:
        calls = 0

        @retry_on_connection_error(max_attempts=3, delay=0.01)
        async def bad_query() -> None:
            nonlocal calls
            calls += 1
            raise ValueError("syntax")

        with pytest.raises(ValueError):
            await bad_query()
        assert calls == 1


class TestDatabaseManager:
    @pytest.fixture
    def db_manager(self) -> DatabaseManager:
        # Сбрасываем синглтон для каждого теста
        DatabaseManager._instance = None
        DatabaseManager._pool = None
        yield DatabaseManager()
        DatabaseManager._instance = None

    def test_pool_not_initialized(self, db_manager: DatabaseManager) -> None:
        with pytest.raises(RuntimeError, match="Пул соединений не инициализирован"):
            _ = db_manager.pool

    @pytest.mark.asyncio
    async def test_connect_registers_jsonb_codec(self, db_manager: DatabaseManager) -> None:
        with patch("asyncpg.create_pool", new_callable=AsyncMock, return_value=MagicMock()) as create:
            await db_manager.connect(dsn="postgresql://petshop:x@localhost/petshop", min_size=1, max_size=2)
            await db_manager.connect(dsn="postgresql://petshop:x@localhost/petshop")

        create.assert_awaited_once()
        assert create.call_args[1]["init"] is not None

    @pytest.mark.asyncio
    async def test_disconnect(self, db_manager: DatabaseManager) -> None:
        pool = AsyncMock()
        db_manager._pool = pool

        await db_manager.disconnect()
        await db_manager.disconnect()

        pool.close.assert_awaited_once()
        assert db_manager._pool is None

    @pytest.mark.asyncio
    async def test_execute_returns_status(self, db_manager: DatabaseManager) -> None:
        conn = AsyncMock()
        conn.execute.return_value = "UPDATE 2"
        db_manager._pool = pool_with(conn)

        assert await db_manager.execute("UPDATE documents SET data = $1", {}) == "UPDATE 2"

    @pytest.mark.asyncio
    async def test_fetchval(self, db_manager: DatabaseManager) -> None:
        conn = AsyncMock()
        conn.fetchval.return_value = 1
        db_manager._pool = pool_with(conn)

        assert await db_manager.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_failure(self, db_manager: DatabaseManager) -> None:
        assert await db_manager.health_check() is False


class TestInitSchema:
    @pytest.mark.asyncio
    async def test_applies_schema_under_advisory_lock(self) -> None:
        conn = AsyncMock()
        db = MagicMock()
        db.transaction.return_value.__aenter__ = AsyncMock(return_value=conn)
        db.transaction.return_value.__aexit__ = AsyncMock(return_value=False)

        await _init_schema(db)

        first, second = conn.execute.await_args_list
        assert first[0] == ("SELECT pg_advisory_xact_lock($1)", SCHEMA_LOCK_ID)
        assert "CREATE TABLE IF NOT EXISTS documents" in second[0][0]
