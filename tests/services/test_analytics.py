# tests/services/test_analytics.py
"""
Тесты аналитики: агрегаты, кэш сводки и отчёты по коллекциям.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import RedisError

from src.infra.documents import Where
from src.services.analytics import aggregation
from src.services.analytics.service import AnalyticsService, month_start
from src.shared.models.analytics import AnalyticsEventRequest, ReportRequest

NOW = datetime(2025, 3, 20, 12, 0, tzinfo=timezone.utc)
MONTH = month_start(NOW)


class TestAggregation:
    def test_parse_ts(self) -> None:
        assert aggregation.parse_ts("2025-03-01T00:00:00Z") == datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert aggregation.parse_ts("ontem") is None
        assert aggregation.parse_ts(None) is None

    def test_month_start(self) -> None:
        assert MONTH == datetime(2025, 3, 1, tzinfo=timezone.utc)

    def test_users_summary(self) -> None:
        users = [
            {"role": "admin", "lastLoginAt": "2025-03-19T00:00:00Z", "createdAt": "2024-01-01T00:00:00Z"},
            {"role": "client", "createdAt": "2025-03-05T00:00:00Z"},
            {"createdAt": "garbage"},
        ]

        summary = aggregation.users_summary(users, datetime(2025, 3, 1, tzinfo=timezone.utc), MONTH)

        assert summary == {"total": 3, "active": 1, "newThisMonth": 1, "byRole": {"admin": 1, "client": 2}}

    def test_appointments_revenue_in_reais(self) -> None:
        appointments = [
            {"status": "completed", "amount": 8000, "serviceId": "banho"},
            {"status": "completed", "amount": 4550, "serviceId": "tosa"},
            {"status": "cancelled", "amount": 9999},
        ]

        summary = aggregation.appointments_summary(appointments, MONTH)

        assert summary["revenue"] == 125.5
        assert summary["byStatus"] == {"completed": 2, "cancelled": 1}
        assert summary["byService"][aggregation.UNSPECIFIED] == 1

    def test_taxi_summary(self) -> None:
        requests = [
            {"status": "completed", "fare": {"total": 40.0}, "rating": {"clientRating": 5}},
            {"status": "completed", "fare": {"total": 25.0}, "rating": {"clientRating": 4}},
            {"status": "requested", "fare": {"total": 99.0}},
        ]

        summary = aggregation.taxi_summary(requests, MONTH)

        assert summary["revenue"] == 65.0
        assert summary["averageRating"] == 4.5

    def test_payments_mixed_units(self) -> None:
        payments = [
            {"provider": "stripe", "status": "completed", "amount": 15000, "createdAt": "2025-03-02T00:00:00Z"},
            {"provider": "mercadopago", "status": "approved", "amount": 89.9, "createdAt": "2025-02-02T00:00:00Z"},
            {"provider": "mercadopago", "status": "rejected", "amount": 10},
        ]

        summary = aggregation.payments_summary(payments, MONTH)

        assert summary["totalRevenue"] == 239.9
        assert summary["monthlyRevenue"] == 150.0
        assert summary["byStatus"]["rejected"] == 1

    def test_group_documents_with_metrics(self) -> None:
        docs = [
            {"id": "1", "status": "paid", "amount": 10, "secret": "x"},
            {"id": "2", "status": "paid", "amount": 20},
            {"id": "3", "amount": 5},
        ]

        groups = aggregation.group_documents(docs, "status", ["amount"])

        paid = next(g for g in groups if g["group"] == "paid")
        assert paid["count"] == 2
        assert paid["items"][0] == {"id": "1", "amount": 10}
        assert any(g["group"] == aggregation.UNSPECIFIED for g in groups)


@pytest.fixture
def service(mock_store: AsyncMock, mock_redis: AsyncMock) -> AnalyticsService:
    return AnalyticsService(mock_store, mock_redis)


class TestOverview:
    @pytest.mark.asyncio
    async def test_admin_only(self, service: AnalyticsService, employee_user) -> None:
        with pytest.raises(PermissionError):
            await service.overview(employee_user)

    @pytest.mark.asyncio
    async def test_invalid_period(self, service: AnalyticsService, admin_user) -> None:
        with pytest.raises(ValueError):
            await service.overview(admin_user, period=0)

    @pytest.mark.asyncio
    async def test_cached(self, service: AnalyticsService, mock_redis: AsyncMock, mock_store: AsyncMock, admin_user) -> None:
        mock_redis.get_json.return_value = {"analytics": {}, "period": 7}

        assert await service.overview(admin_user, period=7) == {"analytics": {}, "period": 7}
        mock_redis.get_json.assert_awaited_once_with("analytics:overview:7")
        mock_store.query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_computes_and_caches(
        self, service: AnalyticsService, mock_redis: AsyncMock, mock_store: AsyncMock, admin_user
    ) -> None:
        result = await service.overview(admin_user, period=30, now=NOW)

        assert set(result["analytics"]) == {"users", "appointments", "taxiDog", "payments", "pets"}
        assert mock_store.query.await_count == 5
        key = mock_redis.set_json.call_args[0][0]
        assert key == "analytics:overview:30"
        assert mock_redis.set_json.call_args[1]["ttl"] == 60

    @pytest.mark.asyncio
    async def test_redis_down(self, service: AnalyticsService, mock_redis: AsyncMock, admin_user) -> None:
        mock_redis.get_json.side_effect = RedisError("down")
        mock_redis.set_json.side_effect = RedisError("down")

        result = await service.overview(admin_user, now=NOW)

        assert result["period"] == 30


class TestEventsAndReports:
    @pytest.mark.asyncio
    async def test_track_event(self, service: AnalyticsService, mock_store: AsyncMock, client_user) -> None:
        await service.track_event(client_user, AnalyticsEventRequest(event="page_view"), user_agent="UA", ip="1.2.3.4")

        collection, doc = mock_store.add.call_args[0]
        assert collection == "analytics_events"
        assert doc["userId"] == "user-1"
        assert doc["category"] == "general"
        assert doc["ip"] == "1.2.3.4"

    @pytest.mark.asyncio
    async def test_track_event_requires_name(self, service: AnalyticsService, client_user) -> None:
        with pytest.raises(ValueError):
            await service.track_event(client_user, AnalyticsEventRequest())

    @pytest.mark.asyncio
    async def test_report_collection_whitelist(self, service: AnalyticsService, admin_user) -> None:
        with pytest.raises(ValueError, match="não permitida"):
            await service.report(admin_user, ReportRequest(collection="fcm_tokens"))

    @pytest.mark.asyncio
    async def test_report_bad_operator(self, service: AnalyticsService, admin_user) -> None:
        request = ReportRequest.model_validate(
            {"collection": "payments", "filters": [{"field": "amount", "operator": "~", "value": 1}]}
        )
        with pytest.raises(ValueError, match="Operador"):
            await service.report(admin_user, request)

    @pytest.mark.asyncio
    async def test_report_grouped(self, service: AnalyticsService, mock_store: AsyncMock, admin_user) -> None:
        mock_store.query.return_value = [{"id": "1", "status": "paid"}, {"id": "2", "status": "paid"}]
        request = ReportRequest.model_validate({
            "collection": "payments",
            "startDate": "2025-03-01T00:00:00Z",
            "filters": [{"field": "provider", "operator": "==", "value": "stripe"}],
            "groupBy": "status",
        })

        result = await service.report(admin_user, request)

        filters = mock_store.query.call_args[0][1]
        assert filters[0] == Where("createdAt", ">=", datetime(2025, 3, 1, tzinfo=timezone.utc))
        assert filters[1] == Where("provider", "==", "stripe")
        assert result["total"] == 2
        assert result["data"] == [{"group": "paid", "count": 2, "items": mock_store.query.return_value}]

    @pytest.mark.asyncio
    async def test_report_admin_only(self, service: AnalyticsService, client_user) -> None:
        with pytest.raises(PermissionError):
            await service.report(client_user, ReportRequest(collection="payments"))
