# src/shared/models/customer.py
"""
Модели карточек клиентов и их питомцев.
"""

from __future__ import annotations

from datetime import date

from pydantic import Field

from src.shared.models.common import ApiModel
from src.shared.models.enums import PetGender, PetSize, PetStatus, RecordStatus
from src.shared.models.taxi import Address


# =============================================================================
# КЛИЕНТЫ
# =============================================================================

class EmergencyContact(ApiModel):
    name: str
    phone: str
    relationship: str


class ClientPreferences(ApiModel):
    notifications: bool = True
    sms_notifications: bool = True
    email_notifications: bool = True
    preferred_time_slots: list[str] = Field(default_factory=list)


class ClientCreate(ApiModel):
    user_id: str | None = None  # задаёт только персонал
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(..., min_length=8, max_length=20)
    cpf: str | None = Field(default=None, pattern=r"^\d{3}\.?\d{3}\.?\d{3}-?\d{2}$")
    birth_date: date | None = None
    address: Address | None = None
    emergency_contact: EmergencyContact | None = None
    preferences: ClientPreferences = Field(default_factory=ClientPreferences)
    notes: str | None = None


class ClientUpdate(ApiModel):
    user_id: str | None = None
    name: str | None = Field(default=None, min_length=1, max_length=120)
    email: str | None = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str | None = Field(default=None, min_length=8, max_length=20)
    cpf: str | None = Field(default=None, pattern=r"^\d{3}\.?\d{3}\.?\d{3}-?\d{2}$")
    birth_date: date | None = None
    address: Address | None = None
    emergency_contact: EmergencyContact | None = None
    preferences: ClientPreferences | None = None
    notes: str | None = None
    status: RecordStatus | None = None


class ClientListQuery(ApiModel):
    search: str | None = None  # имя, email или телефон
    status: RecordStatus | None = None
    user_id: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


# =============================================================================
# ПИТОМЦЫ
# =============================================================================

class VetContact(ApiModel):
    name: str
    phone: str
    clinic: str


class Vaccination(ApiModel):
    name: str
    applied_on: date = Field(..., alias="date")
    next_due: date | None = None
    veterinarian: str
    batch_number: str | None = None


class MedicalInfo(ApiModel):
    allergies: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)
    vaccinations: list[Vaccination] = Field(default_factory=list)
    last_vet_visit: date | None = None
    vet_contact: VetContact | None = None


class PetCreate(ApiModel):
    client_id: str
    name: str = Field(..., min_length=1, max_length=80)
    species: str = Field(..., min_length=1)  # dog, cat, ...
    breed: str = ""
    size: PetSize
    weight: float = Field(..., ge=0)  # кг
    age: float = Field(default=0, ge=0)  # лет
    gender: PetGender
    color: str = ""
    photo_url: str | None = None
    microchip: str | None = None
    medical_info: MedicalInfo = Field(default_factory=MedicalInfo)
    behavior_notes: str | None = None
    special_needs: str | None = None


class PetUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=80)
    species: str | None = Field(default=None, min_length=1)
    breed: str | None = None
    size: PetSize | None = None
    weight: float | None = Field(default=None, ge=0)
    age: float | None = Field(default=None, ge=0)
    gender: PetGender | None = None
    color: str | None = None
    photo_url: str | None = None
    microchip: str | None = None
    medical_info: MedicalInfo | None = None
    behavior_notes: str | None = None
    special_needs: str | None = None
    status: PetStatus | None = None


class PetListQuery(ApiModel):
    client_id: str | None = None
    species: str | None = None
    size: PetSize | None = None
    status: PetStatus | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)
