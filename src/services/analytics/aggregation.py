# src/services/analytics/aggregation.py
"""
Агрегаты по документам коллекций.

Суммы выручки возвращаются в реалах: Stripe и записи хранят сентаво,
Mercado Pago и тарифы Taxi Dog хранят реалы.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Iterable

from src.shared.models.enums import PaymentProvider

UNSPECIFIED = "Não especificado"
PAID_PAYMENT_STATUSES = {"paid", "completed", "succeeded", "approved"}


def parse_ts(value: Any) -> datetime | None:
    """ISO-строка из хранилища → datetime; мусор → None."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _since(docs: Iterable[dict[str, Any]], field: str, start: datetime) -> list[dict[str, Any]]:
    result = []
    for doc in docs:
        ts = parse_ts(doc.get(field))
        if ts is not None and ts >= start:
            result.append(doc)
    return result


def count_by(docs: Iterable[dict[str, Any]], field: str, default: str = UNSPECIFIED) -> dict[str, int]:
    return dict(Counter(str(doc.get(field) or default) for doc in docs))


def payment_amount(doc: dict[str, Any]) -> float:
    amount = float(doc.get("amount") or 0)
    if doc.get("provider") == PaymentProvider.STRIPE.value:
        return amount / 100
    return amount


def users_summary(users: list[dict[str, Any]], period_start: datetime, month_start: datetime) -> dict[str, Any]:
    return {
        "total": len(users),
        "active": len(_since(users, "lastLoginAt", period_start)),
        "newThisMonth": len(_since(users, "createdAt", month_start)),
        "byRole": count_by(users, "role", default="client"),
    }


def appointments_summary(appointments: list[dict[str, Any]], month_start: datetime) -> dict[str, Any]:
    completed = [a for a in appointments if a.get("status") == "completed"]
    return {
        "total": len(appointments),
        "thisMonth": len(_since(appointments, "createdAt", month_start)),
        "byStatus": count_by(appointments, "status"),
        "byService": count_by(appointments, "serviceId"),
        "revenue": round(sum(int(a.get("amount") or 0) for a in completed) / 100, 2),
    }


def taxi_summary(requests: list[dict[str, Any]], month_start: datetime) -> dict[str, Any]:
    completed = [r for r in requests if r.get("status") == "completed"]
    ratings = [
        r["rating"]["clientRating"]
        for r in completed
        if isinstance(r.get("rating"), dict) and r["rating"].get("clientRating") is not None
    ]
    average = sum(ratings) / len(ratings) if ratings else 0
    return {
        "total": len(requests),
        "thisMonth": len(_since(requests, "createdAt", month_start)),
        "byStatus": count_by(requests, "status"),
        "revenue": round(sum(float((r.get("fare") or {}).get("total") or 0) for r in completed), 2),
        "averageRating": round(average, 1),
    }


def payments_summary(payments: list[dict[str, Any]], month_start: datetime) -> dict[str, Any]:
    paid = [p for p in payments if p.get("status") in PAID_PAYMENT_STATUSES]
    paid_this_month = _since(paid, "createdAt", month_start)
    return {
        "total": len(payments),
        "thisMonth": len(_since(payments, "createdAt", month_start)),
        "byMethod": count_by(payments, "paymentMethod"),
        "byStatus": count_by(payments, "status"),
        "totalRevenue": round(sum(payment_amount(p) for p in paid), 2),
        "monthlyRevenue": round(sum(payment_amount(p) for p in paid_this_month), 2),
    }


def pets_summary(pets: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "total": len(pets),
        "bySpecies": count_by(pets, "species"),
        "bySize": count_by(pets, "size"),
    }


def group_documents(
    docs: list[dict[str, Any]], group_by: str, metrics: list[str] | None
) -> list[dict[str, Any]]:
    """Группировка для произвольного отчёта; metrics ограничивает поля элементов."""
    groups: dict[str, list[dict[str, Any]]] = {}
    for doc in docs:
        groups.setdefault(str(doc.get(group_by) or UNSPECIFIED), []).append(doc)

    result = []
    for key, items in groups.items():
        if metrics:
            items = [{"id": item["id"], **{m: item.get(m) for m in metrics}} for item in items]
        result.append({"group": key, "count": len(items), "items": items})
    return result
