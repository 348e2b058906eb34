# src/shared/models/taxi.py
"""
Модели Taxi Dog.
"""

from __future__ import annotations

from pydantic import Field

from src.shared.models.common import ApiModel, UtcDatetime
from src.shared.models.enums import TripStatus


class Coordinates(ApiModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Address(ApiModel):
    street: str
    number: str
    complement: str | None = None
    neighborhood: str
    city: str
    state: str
    zip_code: str
    coordinates: Coordinates | None = None


class TaxiFare(ApiModel):
    """Разбивка стоимости в BRL."""

    base_fare: float
    distance_fare: float
    time_fare: float = 0.0
    total: float
    currency: str = "BRL"


class FareEstimateRequest(ApiModel):
    distance_km: float = Field(..., ge=0)


class TaxiRequestCreate(ApiModel):
    pet_ids: list[str] = Field(..., min_length=1)
    pickup_address: Address
    delivery_address: Address
    scheduled_time: UtcDatetime
    estimated_distance: float = Field(..., ge=0)  # км
    estimated_duration: int = Field(default=0, ge=0)  # минуты
    special_instructions: str | None = None


class TaxiStatusUpdate(ApiModel):
    status: TripStatus


class AssignDriverRequest(ApiModel):
    driver_id: str


class TaxiRatingRequest(ApiModel):
    score: int = Field(..., ge=1, le=5)
    comment: str | None = None


class TaxiLocationUpdate(ApiModel):
    """Текущая позиция водителя во время перевозки."""

    location: Coordinates
    estimated_arrival: UtcDatetime | None = None
