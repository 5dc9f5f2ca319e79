from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Request

from crewmatch.core.config import get_settings
from crewmatch.core.dependencies import get_candidate_gateway, get_search_pipeline
from crewmatch.core.rate_limit import limiter
from crewmatch.schemas.search import (
    CreatorSearchResponse,
    RandomCreatorsResponse,
    SearchCriteria,
    split_filter_values,
)
from crewmatch.services.repository import CandidateGateway
from crewmatch.services.search import CreatorSearchPipeline, pick_random_creators

router = APIRouter(prefix="/creators", tags=["creators"])
settings = get_settings()


@router.get("/search", response_model=CreatorSearchResponse)
@limiter.limit(settings.SEARCH_RATE_LIMIT)
async def search_creators(
    request: Request,
    budget: Decimal | None = Query(None, ge=0, description="Max hourly rate"),
    min_budget: Decimal | None = Query(None, ge=0),
    max_budget: Decimal | None = Query(None, ge=0),
    location: str | None = Query(
        None, description='Plain address or Mapbox JSON {"lat", "lng", "address"}'
    ),
    skills: str | None = Query(None, description="Comma separated or JSON list"),
    content_type: str | None = Query(None, description="Role id or role name"),
    content_types: str | None = Query(None, description="Comma separated role ids or names"),
    roles: str | None = None,
    max_distance: float | None = Query(None, alias="maxDistance", gt=0),
    required_count: int = Query(1, ge=1),
    require_skill_match: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.SEARCH_DEFAULT_PAGE_SIZE, ge=1, le=settings.SEARCH_MAX_PAGE_SIZE),
    pipeline: CreatorSearchPipeline = Depends(get_search_pipeline),
):
    """
    Search verified creators.
    With coordinates in `location` results are ranked by distance, widening
    the radius until `required_count` creators are found. With `skills` the
    ranking is by skill overlap, then rating.
    """
    role_filters = (
        split_filter_values(content_type)
        + split_filter_values(content_types)
        + split_filter_values(roles)
    )
    criteria = SearchCriteria(
        budget_min=min_budget,
        budget_max=max_budget if max_budget is not None else budget,
        location=location,
        skills=skills,
        role_filters=role_filters,
        max_distance_miles=max_distance,
        required_count=required_count,
        require_skill_match=require_skill_match,
        page=page,
        page_size=limit,
    )

    outcome = await pipeline.search(criteria)
    return outcome.to_response()


@router.get("/random", response_model=RandomCreatorsResponse)
@limiter.limit(settings.SEARCH_RATE_LIMIT)
async def random_creators(
    request: Request,
    limit: int = Query(10, ge=1),
    gateway: CandidateGateway = Depends(get_candidate_gateway),
):
    """
    Random creators, used as a fallback when a search has no results.
    """
    creators = await pick_random_creators(gateway, limit, settings.RANDOM_CREATORS_MAX)
    return RandomCreatorsResponse(data=creators)
