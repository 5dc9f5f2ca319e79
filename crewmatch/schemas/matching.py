from pydantic import BaseModel, Field, field_validator

from crewmatch.schemas.search import LocationResponse, split_filter_values


class CrewMatchRequest(BaseModel):
    crew_roles: list[str | int] = []
    required_skills: list[str] = []
    crew_size_needed: int | None = Field(None, ge=1)
    location: str | None = None
    hourly_rate: float | None = Field(None, gt=0)

    @field_validator("crew_roles", mode="before")
    @classmethod
    def normalize_crew_roles(cls, v):
        return split_filter_values(v)

    @field_validator("required_skills", mode="before")
    @classmethod
    def normalize_required_skills(cls, v):
        return [str(s) for s in split_filter_values(v)]


class CrewMatchHit(BaseModel):
    crew_member_id: int
    name: str
    role_ids: list[int]
    role_name: str
    hourly_rate: float | None
    rating: float
    location: LocationResponse
    skills: list[str]
    match_count: int = Field(alias="matchCount")
    matching_skills: list[str] = Field(alias="matchingSkills")

    model_config = {"populate_by_name": True}


class CrewMatchResponse(BaseModel):
    error: bool = False
    message: str = "Crew matched successfully"
    crew_size_needed: int | None = None
    data: list[CrewMatchHit]
