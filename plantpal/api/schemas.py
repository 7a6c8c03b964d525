"""
API Schemas for PlantPal

Pydantic models for request validation and response serialization:
- Auth models
- Plant item models
- System models

JSON field names are camelCase; Python attributes are snake_case.
Dates travel as strict YYYY-MM-DD strings.
"""

from datetime import date, datetime, timezone
from typing import Optional, Any
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from plantpal.scheduling.date_math import format_calendar_date, parse_calendar_date
from plantpal.scheduling.urgency import (
    MAX_INTERVAL_DAYS,
    Urgency,
    WateringStatus,
    ensure_schedulable,
)
from plantpal.storage.plant_repository import StoredPlant
from plantpal.storage.user_repository import StoredUser


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Enums
# =============================================================================

class Sunlight(str, Enum):
    """Light requirement of a plant."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _strict_date(value: Any) -> date:
    # JSON only carries strings; anything else is not a calendar date
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return parse_calendar_date(value)


def _blank_if_none(value: Any) -> Any:
    return "" if value is None else value


# =============================================================================
# Auth Schemas
# =============================================================================

class LoginRequest(BaseModel):
    """Local login (and implicit registration) request."""

    username: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, max_length=1024)


class LoginResponse(BaseModel):
    """Local login result."""

    ok: bool = True
    created: bool
    username: str


class UserPublic(CamelModel):
    """Public view of a user."""

    id: str
    username: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: StoredUser) -> "UserPublic":
        return cls(id=user.id, username=user.username, created_at=user.created_at)


class MeResponse(BaseModel):
    """Current user, or null when not logged in."""

    user: Optional[UserPublic] = None


class OkResponse(BaseModel):
    """Bare acknowledgement."""

    ok: bool = True


# =============================================================================
# Plant Schemas
# =============================================================================

class PlantCreate(CamelModel):
    """Plant creation request."""

    name: str = Field(..., min_length=1, max_length=100)
    species: str = Field("", max_length=100)
    last_watered: date
    interval_days: int = Field(..., ge=1, le=MAX_INTERVAL_DAYS)
    sunlight: Sunlight = Sunlight.MEDIUM
    indoors: bool = True
    notes: str = Field("", max_length=500)

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "name": "Monstera",
                "species": "Monstera deliciosa",
                "lastWatered": "2025-09-01",
                "intervalDays": 7,
                "sunlight": "medium",
                "indoors": True,
            }
        },
    )

    @field_validator("last_watered", mode="before")
    @classmethod
    def _parse_last_watered(cls, value: Any) -> date:
        return _strict_date(value)

    @field_validator("species", "notes", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_if_none(value)

    @model_validator(mode="after")
    def _schedule_in_range(self) -> "PlantCreate":
        ensure_schedulable(self.last_watered, self.interval_days)
        return self


class PlantUpdate(CamelModel):
    """Plant update request (partial)."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    species: Optional[str] = Field(None, max_length=100)
    last_watered: Optional[date] = None
    interval_days: Optional[int] = Field(None, ge=1, le=MAX_INTERVAL_DAYS)
    sunlight: Optional[Sunlight] = None
    indoors: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("last_watered", mode="before")
    @classmethod
    def _parse_last_watered(cls, value: Any) -> Optional[date]:
        if value is None:
            return None
        return _strict_date(value)

    @field_validator("species", "notes", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_if_none(value)

    @model_validator(mode="after")
    def _no_null_required_fields(self) -> "PlantUpdate":
        for name in ("name", "last_watered", "interval_days", "sunlight", "indoors"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        # When only one is sent the route checks it against the stored record
        if self.last_watered is not None and self.interval_days is not None:
            ensure_schedulable(self.last_watered, self.interval_days)
        return self

    def changes(self) -> dict:
        """Only the fields the client sent, keyed by column name."""
        updates = self.model_dump(exclude_unset=True)
        if "sunlight" in updates:
            updates["sunlight"] = updates["sunlight"].value
        return updates


class PlantResponse(CamelModel):
    """Plant record with its derived watering schedule."""

    id: str
    owner_id: str
    name: str
    species: str = ""
    last_watered: date
    interval_days: int
    sunlight: Sunlight = Sunlight.MEDIUM
    indoors: bool = True
    notes: str = ""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Derived
    next_water_date: date
    urgency: Urgency

    @field_serializer("last_watered", "next_water_date")
    def _serialize_date(self, value: date) -> str:
        return format_calendar_date(value)

    @classmethod
    def from_plant(cls, plant: StoredPlant, status: WateringStatus) -> "PlantResponse":
        return cls(
            **plant.to_dict(),
            next_water_date=status.next_water_date,
            urgency=status.urgency,
        )


class PlantEnvelope(BaseModel):
    """Single item response."""

    item: PlantResponse


class PlantListResponse(BaseModel):
    """Item list response."""

    items: list[PlantResponse]


# =============================================================================
# System Schemas
# =============================================================================

class ConfigResponse(CamelModel):
    """Client-visible feature flags."""

    oauth_enabled: bool


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    code: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


