import json
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from crewmatch.services.skills import parse_skills


def split_filter_values(value) -> list:
    """Accept a JSON list, a comma separated string or a list of values."""
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            value = decoded
        else:
            value = text.split(",")
    elif not isinstance(value, (list, tuple, set)):
        value = [value]

    result = []
    for item in value:
        if isinstance(item, str):
            item = item.strip()
            if not item:
                continue
            result.extend(split_filter_values(item) if "," in item else [item])
        elif item is not None:
            result.append(item)
    return result


class SearchCriteria(BaseModel):
    budget_min: Decimal | None = Field(None, ge=0)
    budget_max: Decimal | None = Field(None, ge=0)
    location: str | dict | None = None
    skills: list[str] = []
    role_filters: list[str | int] = []
    max_distance_miles: float | None = Field(None, gt=0)
    required_count: int = Field(1, ge=1)
    require_skill_match: bool = False
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1)

    @field_validator("skills", mode="before")
    @classmethod
    def normalize_requested_skills(cls, v):
        return parse_skills(v)

    @field_validator("role_filters", mode="before")
    @classmethod
    def normalize_role_filters(cls, v):
        return split_filter_values(v)


class Pagination(BaseModel):
    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    total_pages: int = Field(alias="totalPages")
    has_more: bool = Field(alias="hasMore")

    model_config = {"populate_by_name": True}


class SearchMeta(BaseModel):
    requested_count: int = Field(alias="requestedCount")
    found_count: int = Field(alias="foundCount")
    initial_radius: float | None = Field(alias="initialRadius")
    actual_radius: float | None = Field(alias="actualRadius")
    radius_expanded: bool = Field(alias="radiusExpanded")
    radius_unlimited: bool = Field(alias="radiusUnlimited")

    model_config = {"populate_by_name": True}


class LocationResponse(BaseModel):
    address: str | None = None
    coordinates: dict | None = None
    has_coordinates: bool = Field(False, alias="hasCoordinates")

    model_config = {"populate_by_name": True}


class CreatorHit(BaseModel):
    crew_member_id: int
    name: str
    role_id: int | None
    role_ids: list[int]
    role_name: str
    hourly_rate: float
    rating: float
    location: LocationResponse
    experience_years: int | None = None
    bio: str | None = None
    skills: list[str]
    is_available: bool
    distance: float | None = None
    distance_text: str | None = Field(None, alias="distanceText")
    match_score: int | None = Field(None, alias="matchScore")
    matching_skills: list[str] | None = Field(None, alias="matchingSkills")

    model_config = {"populate_by_name": True}


class CreatorSearchData(BaseModel):
    data: list[CreatorHit]
    pagination: Pagination
    search_meta: SearchMeta = Field(alias="searchMeta")

    model_config = {"populate_by_name": True}


class CreatorSearchResponse(BaseModel):
    success: bool = True
    data: CreatorSearchData


class RandomCreatorsResponse(BaseModel):
    success: bool = True
    data: list[CreatorHit]


class EquipmentPricing(BaseModel):
    per_day: float = Field(alias="perDay")
    per_hour: float = Field(alias="perHour")
    purchase_price: float = Field(alias="purchasePrice")

    model_config = {"populate_by_name": True}


class EquipmentHit(BaseModel):
    id: int
    name: str
    category: str | None = None
    category_id: int | None = Field(None, alias="categoryId")
    brand: str | None = None
    model: str | None = None
    pricing: EquipmentPricing
    location: LocationResponse
    availability: str | None = None
    condition: str | None = None
    description: str | None = None
    distance: float | None = None
    distance_text: str | None = Field(None, alias="distanceText")

    model_config = {"populate_by_name": True}


class EquipmentSearchParams(BaseModel):
    use_proximity_search: bool = Field(alias="useProximitySearch")
    max_distance: float | None = Field(alias="maxDistance")
    search_location: LocationResponse | None = Field(alias="searchLocation")

    model_config = {"populate_by_name": True}


class EquipmentSearchData(BaseModel):
    equipment: list[EquipmentHit]
    pagination: Pagination
    search_params: EquipmentSearchParams = Field(alias="searchParams")

    model_config = {"populate_by_name": True}


class EquipmentSearchResponse(BaseModel):
    success: bool = True
    data: EquipmentSearchData


class SearchOutcome(BaseModel):
    items: list[CreatorHit]
    pagination: Pagination
    search_meta: SearchMeta

    def to_response(self) -> CreatorSearchResponse:
        return CreatorSearchResponse(
            data=CreatorSearchData(
                data=self.items,
                pagination=self.pagination,
                search_meta=self.search_meta,
            )
        )
