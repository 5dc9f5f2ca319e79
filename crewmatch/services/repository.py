"""Coarse, store-side candidate queries.

The store only answers equality and range predicates. Geo distance, exact
role-token matching and fuzzy skill scoring happen in memory afterwards, so
these gateways return a superset of what the caller will finally show.
"""

from decimal import Decimal
from typing import Protocol

import structlog
from pydantic import BaseModel
from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crewmatch.core.exceptions import RepositoryUnavailable
from crewmatch.models.crew_member import CrewMember
from crewmatch.models.equipment import Equipment
from crewmatch.schemas.candidate import Candidate, EquipmentItem

logger = structlog.get_logger()


class CandidateFilter(BaseModel):
    budget_min: Decimal | None = None
    budget_max: Decimal | None = None
    verified: bool | None = True
    active: bool | None = True
    draft: bool | None = False
    role_token_hint: set[int] = set()
    text_location_hint: str | None = None


class EquipmentFilter(BaseModel):
    category_id: int | None = None
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    available_only: bool = True
    text_location_hint: str | None = None


class CandidateGateway(Protocol):
    async def find_eligible(
        self, criteria: CandidateFilter, limit: int | None = None, offset: int | None = None
    ) -> list[Candidate]: ...

    async def count_eligible(self, criteria: CandidateFilter) -> int: ...

    async def find_random(self, criteria: CandidateFilter, limit: int) -> list[Candidate]: ...


class EquipmentGateway(Protocol):
    async def find(
        self, criteria: EquipmentFilter, limit: int | None = None, offset: int | None = None
    ) -> list[EquipmentItem]: ...

    async def count(self, criteria: EquipmentFilter) -> int: ...


def to_candidate(member: CrewMember) -> Candidate:
    return Candidate(
        id=member.crew_member_id,
        display_name=f"{member.first_name} {member.last_name or ''}".strip(),
        role_ids=member.primary_role,
        skills=member.skills,
        hourly_rate=member.hourly_rate,
        rating=member.rating,
        location=member.location,
        verified=bool(member.is_crew_verified),
        active=bool(member.is_active),
        draft=bool(member.is_draft),
        is_available=bool(member.is_available),
        experience_years=member.years_of_experience,
        bio=member.bio,
        created_at=member.created_at,
    )


def to_equipment_item(equipment: Equipment) -> EquipmentItem:
    return EquipmentItem(
        id=equipment.equipment_id,
        name=equipment.equipment_name,
        category=equipment.category.category_name if equipment.category else None,
        category_id=equipment.category_id,
        brand=equipment.brand,
        model=equipment.model_number,
        price_per_day=equipment.rental_price_per_day,
        price_per_hour=equipment.rental_price_per_hour,
        purchase_price=equipment.purchase_price,
        location=equipment.storage_location,
        availability=equipment.availability_status,
        condition=equipment.condition_status,
        description=equipment.description,
    )


def apply_candidate_filter(query: Select, criteria: CandidateFilter) -> Select:
    if criteria.verified is not None:
        query = query.where(CrewMember.is_crew_verified.is_(criteria.verified))
    if criteria.active is not None:
        query = query.where(CrewMember.is_active.is_(criteria.active))
    if criteria.draft is not None:
        query = query.where(CrewMember.is_draft.is_(criteria.draft))

    if criteria.budget_min is not None:
        query = query.where(CrewMember.hourly_rate >= criteria.budget_min)
    if criteria.budget_max is not None:
        query = query.where(CrewMember.hourly_rate <= criteria.budget_max)

    # Substring hint only; exact role-id equality is checked in memory
    if criteria.role_token_hint:
        query = query.where(
            or_(*[CrewMember.primary_role.like(f"%{rid}%") for rid in sorted(criteria.role_token_hint)])
        )

    if criteria.text_location_hint:
        query = query.where(CrewMember.location.icontains(criteria.text_location_hint, autoescape=True))

    return query


def apply_equipment_filter(query: Select, criteria: EquipmentFilter) -> Select:
    query = query.where(Equipment.is_active.is_(True))
    if criteria.available_only:
        query = query.where(Equipment.availability_status == "available")
    if criteria.price_min is not None:
        query = query.where(Equipment.rental_price_per_day >= criteria.price_min)
    if criteria.price_max is not None:
        query = query.where(Equipment.rental_price_per_day <= criteria.price_max)
    if criteria.category_id is not None:
        query = query.where(Equipment.category_id == criteria.category_id)
    if criteria.text_location_hint:
        query = query.where(Equipment.storage_location.icontains(criteria.text_location_hint, autoescape=True))
    return query


class SqlCandidateGateway:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _execute(self, query):
        try:
            return await self.db.execute(query)
        except (SQLAlchemyError, OSError) as e:
            logger.error("candidate_repository_error", error=str(e))
            raise RepositoryUnavailable() from e

    async def find_eligible(
        self, criteria: CandidateFilter, limit: int | None = None, offset: int | None = None
    ) -> list[Candidate]:
        query = apply_candidate_filter(select(CrewMember), criteria).order_by(
            CrewMember.rating.desc().nulls_last(),
            CrewMember.created_at.desc(),
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self._execute(query)
        return [to_candidate(member) for member in result.scalars().all()]

    async def count_eligible(self, criteria: CandidateFilter) -> int:
        query = apply_candidate_filter(select(func.count()).select_from(CrewMember), criteria)
        result = await self._execute(query)
        return result.scalar() or 0

    async def find_random(self, criteria: CandidateFilter, limit: int) -> list[Candidate]:
        query = apply_candidate_filter(select(CrewMember), criteria).order_by(func.random()).limit(limit)
        result = await self._execute(query)
        return [to_candidate(member) for member in result.scalars().all()]


class SqlEquipmentGateway:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _execute(self, query):
        try:
            return await self.db.execute(query)
        except (SQLAlchemyError, OSError) as e:
            logger.error("equipment_repository_error", error=str(e))
            raise RepositoryUnavailable("Equipment repository unavailable") from e

    async def find(
        self, criteria: EquipmentFilter, limit: int | None = None, offset: int | None = None
    ) -> list[EquipmentItem]:
        query = (
            apply_equipment_filter(select(Equipment), criteria)
            .options(selectinload(Equipment.category))
            .order_by(Equipment.rental_price_per_day.asc())
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self._execute(query)
        return [to_equipment_item(eq) for eq in result.scalars().all()]

    async def count(self, criteria: EquipmentFilter) -> int:
        query = apply_equipment_filter(select(func.count()).select_from(Equipment), criteria)
        result = await self._execute(query)
        return result.scalar() or 0
