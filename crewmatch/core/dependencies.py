from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crewmatch.core.config import Settings, get_settings
from crewmatch.core.database import get_db
from crewmatch.services.repository import (
    CandidateGateway,
    EquipmentGateway,
    SqlCandidateGateway,
    SqlEquipmentGateway,
)
from crewmatch.services.search import CreatorSearchPipeline


def get_candidate_gateway(db: AsyncSession = Depends(get_db)) -> CandidateGateway:
    return SqlCandidateGateway(db)


def get_equipment_gateway(db: AsyncSession = Depends(get_db)) -> EquipmentGateway:
    return SqlEquipmentGateway(db)


def get_search_pipeline(
    gateway: CandidateGateway = Depends(get_candidate_gateway),
    settings: Settings = Depends(get_settings),
) -> CreatorSearchPipeline:
    return CreatorSearchPipeline(gateway, settings)
