# src/shared/models/analytics.py
"""
Модели аналитики: событие фронтенда и произвольный отчёт по коллекции.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from src.shared.models.common import ApiModel


class AnalyticsEventRequest(ApiModel):
    event: str | None = None
    category: str = "general"
    data: dict[str, Any] = Field(default_factory=dict)


class ReportFilter(ApiModel):
    field: str
    operator: str
    value: Any


class ReportRequest(ApiModel):
    collection: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    filters: list[ReportFilter] = Field(default_factory=list)
    group_by: str | None = None
    metrics: list[str] | None = None
