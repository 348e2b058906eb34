# src/shared/models/catalog.py
"""
Модели каталога услуг (коллекция services).
"""

from __future__ import annotations

from pydantic import Field

from src.shared.models.common import ApiModel
from src.shared.models.enums import PetSize, ServiceCategory, ServiceStatus


class CatalogItemCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str = ""
    category: ServiceCategory
    duration: int = Field(..., gt=0)  # минуты
    price: int = Field(..., ge=0)  # в сентаво
    pet_sizes: list[PetSize] = Field(default_factory=lambda: list(PetSize))
    requirements: list[str] = Field(default_factory=list)
    image_url: str | None = None
    status: ServiceStatus = ServiceStatus.ACTIVE
    max_pets_per_session: int = Field(default=1, ge=1)
    is_popular: bool = False


class CatalogItemUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    category: ServiceCategory | None = None
    duration: int | None = Field(default=None, gt=0)
    price: int | None = Field(default=None, ge=0)
    pet_sizes: list[PetSize] | None = None
    requirements: list[str] | None = None
    image_url: str | None = None
    status: ServiceStatus | None = None
    max_pets_per_session: int | None = Field(default=None, ge=1)
    is_popular: bool | None = None


class CatalogListQuery(ApiModel):
    category: ServiceCategory | None = None
    status: ServiceStatus | None = None  # учитывается только для персонала
    popular: bool | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)
