from decimal import Decimal

import structlog

from crewmatch.schemas.matching import CrewMatchHit, CrewMatchRequest
from crewmatch.schemas.search import LocationResponse
from crewmatch.services.location import format_location_response
from crewmatch.services.repository import CandidateFilter, CandidateGateway
from crewmatch.services.roles import matches_roles, resolve_role_ids, role_name
from crewmatch.services.skills import score_skills

logger = structlog.get_logger()


def rate_bounds(hourly_rate: float | None, tolerance: float) -> tuple[Decimal | None, Decimal | None]:
    """Acceptable hourly rate window around the requested rate."""
    if hourly_rate is None:
        return None, None
    rate = Decimal(str(hourly_rate))
    spread = rate * Decimal(str(tolerance))
    return rate - spread, rate + spread


async def match_crew(
    gateway: CandidateGateway,
    request: CrewMatchRequest,
    *,
    rate_tolerance: float,
) -> list[CrewMatchHit]:
    """
    Match active crew members against a booking's roles, skills, location and rate.
    A crew member must hold one of the roles and at least one matching skill.
    """
    wanted_roles = resolve_role_ids(request.crew_roles)
    if not wanted_roles:
        logger.info("match_crew_no_roles", crew_roles=request.crew_roles)
        return []

    lower, upper = rate_bounds(request.hourly_rate, rate_tolerance)
    wanted_location = request.location.strip().lower() if request.location else None

    candidates = await gateway.find_eligible(
        CandidateFilter(
            budget_min=lower,
            budget_max=upper,
            verified=None,
            active=True,
            draft=None,
            role_token_hint=wanted_roles,
            text_location_hint=request.location.strip() if request.location else None,
        )
    )

    hits = []
    for candidate in candidates:
        if not candidate.active or not matches_roles(candidate.role_ids, wanted_roles):
            continue

        if wanted_location is not None:
            address = candidate.location.address if candidate.location else None
            if (address or "").strip().lower() != wanted_location:
                continue

        score = score_skills(request.required_skills, candidate.skills)
        if score.count == 0:
            continue

        role_ids = sorted(candidate.role_ids)
        hits.append(
            CrewMatchHit(
                crew_member_id=candidate.id,
                name=candidate.display_name,
                role_ids=role_ids,
                role_name=role_name(role_ids),
                hourly_rate=float(candidate.hourly_rate) if candidate.hourly_rate else None,
                rating=candidate.rating,
                location=LocationResponse(**format_location_response(candidate.location)),
                skills=candidate.skills,
                match_count=score.count,
                matching_skills=score.matched,
            )
        )

    hits.sort(key=lambda h: h.match_count, reverse=True)

    logger.info(
        "match_crew",
        roles=sorted(wanted_roles),
        scanned=len(candidates),
        matched=len(hits),
    )
    return hits
