# src/api/errors.py
"""
Перевод исключений сервисов в HTTP-ответы.

ValueError → 400, PermissionError → 403, LookupError → 404.
Тело ошибки всегда {"error": "..."} (см. обработчик в src.api.app).
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException

from src.shared.models.common import ErrorResponse

STATUS_BY_ERROR: tuple[tuple[type[Exception], int], ...] = (
    (PermissionError, 403),
    (LookupError, 404),
    (ValueError, 400),
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@contextmanager
def service_errors() -> Iterator[None]:
    try:
        yield
    except (PermissionError, LookupError, ValueError) as e:
        for error_cls, status_code in STATUS_BY_ERROR:
            if isinstance(e, error_cls):
                raise HTTPException(status_code=status_code, detail=str(e))
        raise
