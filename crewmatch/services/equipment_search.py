import structlog
from pydantic import BaseModel

from crewmatch.schemas.candidate import EquipmentItem
from crewmatch.schemas.search import (
    EquipmentHit,
    EquipmentPricing,
    EquipmentSearchData,
    EquipmentSearchParams,
    LocationResponse,
)
from crewmatch.services.distance import distance_between, distance_text
from crewmatch.services.location import format_location_response, has_usable_coordinates, resolve_location
from crewmatch.services.pagination import page_offset, page_slice, paginate
from crewmatch.services.repository import EquipmentFilter, EquipmentGateway
from crewmatch.services.search import sort_by_distance, within_radius

logger = structlog.get_logger()


class EquipmentMatch(BaseModel):
    item: EquipmentItem
    distance_miles: float | None = None


def build_equipment_hit(match: EquipmentMatch, *, with_distance: bool) -> EquipmentHit:
    item = match.item
    return EquipmentHit(
        id=item.id,
        name=item.name,
        category=item.category,
        category_id=item.category_id,
        brand=item.brand,
        model=item.model,
        pricing=EquipmentPricing(
            per_day=float(item.price_per_day),
            per_hour=float(item.price_per_hour),
            purchase_price=float(item.purchase_price),
        ),
        location=LocationResponse(**format_location_response(item.location)),
        availability=item.availability,
        condition=item.condition,
        description=item.description,
        distance=match.distance_miles if with_distance else None,
        distance_text=distance_text(match.distance_miles) if with_distance else None,
    )


async def search_equipment(
    gateway: EquipmentGateway,
    *,
    criteria: EquipmentFilter,
    location: str | None,
    max_distance: float | None,
    page: int,
    page_size: int,
) -> EquipmentSearchData:
    """Equipment search with a fixed proximity radius.

    Proximity needs both usable coordinates and a max distance; otherwise the
    location acts as a text filter and the store paginates.
    """
    target = resolve_location(location)
    use_proximity = has_usable_coordinates(target) and max_distance is not None
    if target and not use_proximity:
        criteria = criteria.model_copy(update={"text_location_hint": target.address})

    if use_proximity:
        items = await gateway.find(criteria)
        matches = [
            EquipmentMatch(item=item, distance_miles=distance_between(target, item.location))
            for item in items
        ]
        matches = sort_by_distance(within_radius(matches, max_distance))
        total = len(matches)
        hits = [build_equipment_hit(m, with_distance=True) for m in page_slice(matches, page, page_size)]
    else:
        total = await gateway.count(criteria)
        items = await gateway.find(criteria, limit=page_size, offset=page_offset(page, page_size))
        hits = [build_equipment_hit(EquipmentMatch(item=item), with_distance=False) for item in items]

    logger.info("equipment_search", use_proximity=use_proximity, found=total)

    return EquipmentSearchData(
        equipment=hits,
        pagination=paginate(total, page, page_size),
        search_params=EquipmentSearchParams(
            use_proximity_search=use_proximity,
            max_distance=max_distance if use_proximity else None,
            search_location=(
                LocationResponse(**format_location_response(target)) if target else None
            ),
        ),
    )
