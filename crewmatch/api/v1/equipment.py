from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Request

from crewmatch.core.config import get_settings
from crewmatch.core.dependencies import get_equipment_gateway
from crewmatch.core.rate_limit import limiter
from crewmatch.schemas.search import EquipmentSearchResponse
from crewmatch.services.equipment_search import search_equipment
from crewmatch.services.repository import EquipmentFilter, EquipmentGateway

router = APIRouter(prefix="/equipment", tags=["equipment"])
settings = get_settings()


@router.get("/search", response_model=EquipmentSearchResponse)
@limiter.limit(settings.SEARCH_RATE_LIMIT)
async def search(
    request: Request,
    category: int | None = Query(None, description="Equipment category id"),
    min_price: Decimal | None = Query(None, alias="minPrice", ge=0),
    max_price: Decimal | None = Query(None, alias="maxPrice", ge=0),
    location: str | None = None,
    max_distance: float | None = Query(None, alias="maxDistance", gt=0),
    available: bool = True,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.SEARCH_DEFAULT_PAGE_SIZE, ge=1, le=settings.SEARCH_MAX_PAGE_SIZE),
    gateway: EquipmentGateway = Depends(get_equipment_gateway),
):
    """
    Search rental equipment by category, daily price and location.
    """
    data = await search_equipment(
        gateway,
        criteria=EquipmentFilter(
            category_id=category,
            price_min=min_price,
            price_max=max_price,
            available_only=available,
        ),
        location=location,
        max_distance=max_distance,
        page=page,
        page_size=limit,
    )
    return EquipmentSearchResponse(data=data)
