# src/infra/documents.py
"""
Документное хранилище поверх PostgreSQL (JSONB).

Каждая коллекция - набор JSON-документов с ключом (collection, id).
Даты хранятся строками ISO-8601 в UTC, поэтому сравнение и сортировка
по ним работают как строковые (COLLATE "C").
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Iterable, Sequence
from uuid import uuid4

from src.infra.database import DatabaseManager, get_db


_COMPARISON_OPS = {">", ">=", "<", "<="}
SUPPORTED_OPS = {"==", "!=", "in"} | _COMPARISON_OPS
ID_FIELD = "id"


@dataclass(frozen=True)
class Where:
    """Условие фильтрации по полю верхнего уровня документа."""
    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in SUPPORTED_OPS:
            raise ValueError(f"Неподдерживаемый оператор фильтра: {self.op}")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_jsonable(value: Any) -> Any:
    """Приводит значение к JSON-совместимому виду (datetime → ISO UTC, Enum → value)."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


def _as_text(value: Any) -> str:
    """Текстовое представление значения так, как его вернёт оператор ->> ."""
    value = to_jsonable(value)
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _build_where(filters: Iterable[Where], params: list[Any]) -> str:
    """Собирает SQL-условия; параметры дописываются в params."""
    clauses: list[str] = []

    def bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    for cond in filters:
        # "id" - ключ документа, а не поле внутри data
        if cond.field == ID_FIELD:
            if cond.op == "==":
                clauses.append(f"id = {bind(str(cond.value))}")
            elif cond.op == "in":
                clauses.append(f"id = ANY({bind([str(v) for v in cond.value])}::text[])")
            else:
                raise ValueError(f"Для id поддерживаются только == и in, получено: {cond.op}")
            continue

        if cond.op == "==":
            clauses.append(f"data @> {bind({cond.field: to_jsonable(cond.value)})}::jsonb")
        elif cond.op == "!=":
            clauses.append(f"NOT (data @> {bind({cond.field: to_jsonable(cond.value)})}::jsonb)")
        elif cond.op == "in":
            values = [_as_text(v) for v in cond.value]
            clauses.append(f"(data->>{bind(cond.field)}) = ANY({bind(values)}::text[])")
        elif _is_number(cond.value):
            clauses.append(f"(data->>{bind(cond.field)})::numeric {cond.op} {bind(cond.value)}::numeric")
        else:
            clauses.append(f"(data->>{bind(cond.field)}) COLLATE \"C\" {cond.op} {bind(_as_text(cond.value))}")

    return " AND ".join(clauses)


def _affected(status: str) -> int:
    """Количество строк из статуса asyncpg ("UPDATE 3" → 3)."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


def _row_to_doc(row: Any) -> dict[str, Any]:
    return {**row["data"], "id": row["id"]}


class DocumentStore:
    """
    CRUD и выборки по коллекциям документов.
    Все методы возвращают документы как dict с ключом "id".
    """

    def __init__(self, db: DatabaseManager | None = None) -> None:
        self.db = db or get_db()

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        row = await self.db.fetchrow(
            "SELECT id, data FROM documents WHERE collection = $1 AND id = $2",
            collection, str(doc_id),
        )
        return _row_to_doc(row) if row else None

    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        """
        Создаёт или заменяет документ.
        merge=True сливает поля верхнего уровня с существующими.
        """
        on_conflict = "documents.data || EXCLUDED.data" if merge else "EXCLUDED.data"
        await self.db.execute(
            f"""
            INSERT INTO documents (collection, id, data)
            VALUES ($1, $2, $3::jsonb)
            ON CONFLICT (collection, id)
            DO UPDATE SET data = {on_conflict}, updated_at = now()
            """,
            collection, str(doc_id), to_jsonable(data),
        )

    async def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> bool:
        """Создаёт документ с заданным id. False, если он уже есть."""
        status = await self.db.execute(
            """
            INSERT INTO documents (collection, id, data)
            VALUES ($1, $2, $3::jsonb)
            ON CONFLICT (collection, id) DO NOTHING
            """,
            collection, str(doc_id), to_jsonable(data),
        )
        return _affected(status) > 0

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Создаёт документ со сгенерированным id и возвращает его."""
        doc_id = uuid4().hex
        await self.db.execute(
            "INSERT INTO documents (collection, id, data) VALUES ($1, $2, $3::jsonb)",
            collection, doc_id, to_jsonable(data),
        )
        return doc_id

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> bool:
        """Сливает поля с документом. False, если документа нет."""
        status = await self.db.execute(
            """
            UPDATE documents SET data = data || $3::jsonb, updated_at = now()
            WHERE collection = $1 AND id = $2
            """,
            collection, str(doc_id), to_jsonable(fields),
        )
        return _affected(status) > 0

    async def delete(self, collection: str, doc_id: str) -> bool:
        status = await self.db.execute(
            "DELETE FROM documents WHERE collection = $1 AND id = $2",
            collection, str(doc_id),
        )
        return _affected(status) > 0

    async def query(
        self,
        collection: str,
        filters: Sequence[Where] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        params: list[Any] = [collection]
        sql = "SELECT id, data FROM documents WHERE collection = $1"

        where = _build_where(filters, params)
        if where:
            sql += f" AND {where}"

        if order_by:
            params.append(order_by)
            direction = "DESC" if descending else "ASC"
            sql += f" ORDER BY (data->>${len(params)}) COLLATE \"C\" {direction} NULLS LAST, id"

        if limit is not None:
            params.append(limit)
            sql += f" LIMIT ${len(params)}"
        if offset:
            params.append(offset)
            sql += f" OFFSET ${len(params)}"

        rows = await self.db.fetch(sql, *params)
        return [_row_to_doc(row) for row in rows]

    async def count(self, collection: str, filters: Sequence[Where] = ()) -> int:
        params: list[Any] = [collection]
        sql = "SELECT count(*) FROM documents WHERE collection = $1"
        where = _build_where(filters, params)
        if where:
            sql += f" AND {where}"
        return int(await self.db.fetchval(sql, *params) or 0)

    async def update_where(self, collection: str, filters: Sequence[Where], fields: dict[str, Any]) -> int:
        """Обновляет все документы, подходящие под фильтры. Возвращает их количество."""
        params: list[Any] = [collection, to_jsonable(fields)]
        sql = "UPDATE documents SET data = data || $2::jsonb, updated_at = now() WHERE collection = $1"
        where = _build_where(filters, params)
        if where:
            sql += f" AND {where}"
        return _affected(await self.db.execute(sql, *params))

    async def delete_where(self, collection: str, filters: Sequence[Where]) -> int:
        params: list[Any] = [collection]
        sql = "DELETE FROM documents WHERE collection = $1"
        where = _build_where(filters, params)
        if where:
            sql += f" AND {where}"
        return _affected(await self.db.execute(sql, *params))


_store: DocumentStore | None = None


def get_store() -> DocumentStore:
    """Возвращает глобальный DocumentStore поверх общего пула."""
    global _store
    if _store is None:
        _store = DocumentStore(get_db())
    return _store
