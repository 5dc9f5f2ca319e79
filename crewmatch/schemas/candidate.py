from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_validator

from crewmatch.services.location import Location, resolve_location
from crewmatch.services.roles import parse_role_ids
from crewmatch.services.skills import parse_skills


class Candidate(BaseModel):
    """Read-only view of a creator as seen by the matching engine."""

    id: int
    display_name: str
    role_ids: set[int] = set()
    skills: list[str] = []
    hourly_rate: Decimal = Decimal("0")
    rating: float = 0.0
    location: Location | None = None
    verified: bool = False
    active: bool = True
    draft: bool = False
    is_available: bool = True
    experience_years: int | None = None
    bio: str | None = None
    created_at: datetime | None = None

    @field_validator("role_ids", mode="before")
    @classmethod
    def normalize_role_ids(cls, v):
        return parse_role_ids(v)

    @field_validator("skills", mode="before")
    @classmethod
    def normalize_skills(cls, v):
        return parse_skills(v)

    @field_validator("location", mode="before")
    @classmethod
    def normalize_location(cls, v):
        return resolve_location(v)

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def default_hourly_rate(cls, v):
        return Decimal("0") if v is None else v

    @field_validator("rating", mode="before")
    @classmethod
    def default_rating(cls, v):
        return 0.0 if v is None else float(v)

    @property
    def eligible(self) -> bool:
        return self.verified and self.active and not self.draft


class EquipmentItem(BaseModel):
    id: int
    name: str
    category: str | None = None
    category_id: int | None = None
    brand: str | None = None
    model: str | None = None
    price_per_day: Decimal = Decimal("0")
    price_per_hour: Decimal = Decimal("0")
    purchase_price: Decimal = Decimal("0")
    location: Location | None = None
    availability: str | None = None
    condition: str | None = None
    description: str | None = None

    @field_validator("location", mode="before")
    @classmethod
    def normalize_location(cls, v):
        return resolve_location(v)

    @field_validator("price_per_day", "price_per_hour", "purchase_price", mode="before")
    @classmethod
    def default_price(cls, v):
        return Decimal("0") if v is None else v
