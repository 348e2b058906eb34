# src/services/taxi_dog/pricing.py
"""
Тариф Taxi Dog: посадка + стоимость километра (BRL).
"""

from __future__ import annotations

from src.config import settings
from src.shared.models.taxi import TaxiFare


def calculate_fare(distance_km: float, base_fare: float | None = None, fare_per_km: float | None = None) -> TaxiFare:
    """
    Разбивка стоимости поездки.

    Raises:
        ValueError: отрицательное расстояние
    """
    if distance_km < 0:
        raise ValueError("Distância inválida")

    cfg = settings.taxi_dog
    base = cfg.BASE_FARE if base_fare is None else base_fare
    per_km = cfg.FARE_PER_KM if fare_per_km is None else fare_per_km

    distance_fare = round(distance_km * per_km, 2)
    return TaxiFare(
        base_fare=round(base, 2),
        distance_fare=distance_fare,
        time_fare=0.0,
        total=round(base + distance_fare, 2),
        currency=cfg.CURRENCY,
    )
