from fastapi import APIRouter, Depends, HTTPException

from crewmatch.core.config import Settings, get_settings
from crewmatch.core.dependencies import get_candidate_gateway
from crewmatch.schemas.matching import CrewMatchRequest, CrewMatchResponse
from crewmatch.services.matching import match_crew
from crewmatch.services.repository import CandidateGateway

router = APIRouter(prefix="/crew", tags=["Matching"])


@router.post("/match", response_model=CrewMatchResponse)
async def match_crew_for_booking(
    request: CrewMatchRequest,
    gateway: CandidateGateway = Depends(get_candidate_gateway),
    settings: Settings = Depends(get_settings),
):
    """
    Find crew members for a booking by role, skills, location and hourly rate.
    """
    if not request.crew_roles or not request.required_skills:
        raise HTTPException(status_code=400, detail="crew_roles and required_skills are required")

    matches = await match_crew(
        gateway,
        request,
        rate_tolerance=settings.CREW_MATCH_RATE_TOLERANCE,
    )

    return CrewMatchResponse(crew_size_needed=request.crew_size_needed, data=matches)
