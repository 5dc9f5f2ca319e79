"""Creator search: coarse store query, then in-memory geo and skill ranking.

The store cannot evaluate distance or fuzzy skill overlap, so whenever any
of those passes run the full eligible superset is fetched once, ranked in
memory and only then paginated.
"""

import asyncio
from collections.abc import Sequence
from typing import NamedTuple

import structlog
from pydantic import BaseModel

from crewmatch.core.config import Settings, get_settings
from crewmatch.core.exceptions import DeadlineExceeded
from crewmatch.schemas.candidate import Candidate
from crewmatch.schemas.search import CreatorHit, LocationResponse, SearchCriteria, SearchMeta, SearchOutcome
from crewmatch.services.distance import distance_between, distance_sort_key, distance_text
from crewmatch.services.location import Location, format_location_response, has_usable_coordinates, resolve_location
from crewmatch.services.pagination import page_offset, page_slice, paginate
from crewmatch.services.repository import CandidateFilter, CandidateGateway
from crewmatch.services.roles import matches_roles, resolve_role_ids, role_name
from crewmatch.services.skills import score_skills

logger = structlog.get_logger()


class MatchResult(BaseModel):
    candidate: Candidate
    distance_miles: float | None = None
    skill_match_count: int = 0
    matched_skills: list[str] = []


class RadiusExpansion(NamedTuple):
    matches: list
    initial_radius: float
    actual_radius: float | None
    expanded: bool
    unlimited: bool


def ladder_start_index(ladder: Sequence[float], radius: float) -> int:
    """Index of the smallest ladder step >= radius, or the top step."""
    for index, step in enumerate(ladder):
        if step >= radius:
            return index
    return len(ladder) - 1


def within_radius(matches: Sequence, radius: float) -> list:
    return [m for m in matches if m.distance_miles is not None and m.distance_miles <= radius]


def sort_by_distance(matches: Sequence) -> list:
    return sorted(matches, key=lambda m: distance_sort_key(m.distance_miles))


def expand_radius(
    matches: Sequence,
    required_count: int,
    initial_radius: float,
    ladder: Sequence[float],
) -> RadiusExpansion:
    """Widen the search radius along the ladder until enough matches are found.

    Every step re-filters the full superset. When even the top step is not
    enough, the distance bound is dropped and every match is returned,
    nearest first with unknown distances last.
    """
    start = ladder_start_index(ladder, initial_radius)
    index = start
    filtered = within_radius(matches, ladder[index])

    while len(filtered) < required_count and index < len(ladder) - 1:
        index += 1
        filtered = within_radius(matches, ladder[index])

    if len(filtered) < required_count:
        return RadiusExpansion(sort_by_distance(matches), initial_radius, None, True, True)

    return RadiusExpansion(sort_by_distance(filtered), initial_radius, ladder[index], index > start, False)


def annotate(
    candidates: Sequence[Candidate],
    target: Location | None,
    skills: Sequence[str],
) -> list[MatchResult]:
    """Compute every sort key up front; ranking happens only afterwards."""
    results = []
    for candidate in candidates:
        result = MatchResult(candidate=candidate)
        if target is not None:
            result.distance_miles = distance_between(target, candidate.location)
        if skills:
            score = score_skills(skills, candidate.skills)
            result.skill_match_count = score.count
            result.matched_skills = score.matched
        results.append(result)
    return results


def rank_by_skills(matches: Sequence[MatchResult]) -> list[MatchResult]:
    return sorted(matches, key=lambda m: (-m.skill_match_count, -m.candidate.rating))


def build_creator_hit(match: MatchResult, *, with_distance: bool, with_skills: bool) -> CreatorHit:
    candidate = match.candidate
    role_ids = sorted(candidate.role_ids)
    return CreatorHit(
        crew_member_id=candidate.id,
        name=candidate.display_name,
        role_id=role_ids[0] if role_ids else None,
        role_ids=role_ids,
        role_name=role_name(role_ids),
        hourly_rate=float(candidate.hourly_rate),
        rating=candidate.rating,
        location=LocationResponse(**format_location_response(candidate.location)),
        experience_years=candidate.experience_years,
        bio=candidate.bio,
        skills=candidate.skills,
        is_available=candidate.is_available,
        distance=match.distance_miles if with_distance else None,
        distance_text=distance_text(match.distance_miles) if with_distance else None,
        match_score=match.skill_match_count if with_skills else None,
        matching_skills=match.matched_skills if with_skills else None,
    )


class CreatorSearchPipeline:
    def __init__(self, gateway: CandidateGateway, settings: Settings | None = None):
        self.gateway = gateway
        self.settings = settings or get_settings()

    async def search(self, criteria: SearchCriteria) -> SearchOutcome:
        timeout = self.settings.SEARCH_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(self._search(criteria), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning("creator_search_timeout", timeout=timeout)
            raise DeadlineExceeded() from e

    async def _search(self, criteria: SearchCriteria) -> SearchOutcome:
        target = resolve_location(criteria.location)
        use_proximity = has_usable_coordinates(target)
        initial_radius = criteria.max_distance_miles
        if use_proximity and initial_radius is None:
            initial_radius = self.settings.SEARCH_DEFAULT_RADIUS_MILES

        wanted_roles = resolve_role_ids(criteria.role_filters)
        if criteria.role_filters and not wanted_roles:
            logger.info(
                "creator_search_unresolved_roles",
                role_filters=criteria.role_filters,
                policy=self.settings.ROLE_FILTER_POLICY,
            )
            if self.settings.ROLE_FILTER_POLICY == "strict":
                return self._outcome([], criteria, initial_radius, use_proximity=use_proximity)

        coarse = CandidateFilter(
            budget_min=criteria.budget_min,
            budget_max=criteria.budget_max,
            role_token_hint=wanted_roles,
            text_location_hint=target.address if target and not use_proximity else None,
        )

        with_skills = bool(criteria.skills)
        if not (use_proximity or with_skills or wanted_roles):
            return await self._search_paged(coarse, criteria, initial_radius)

        superset = await self.gateway.find_eligible(coarse)
        candidates = [c for c in superset if c.eligible]
        if wanted_roles:
            candidates = [c for c in candidates if matches_roles(c.role_ids, wanted_roles)]

        matches = await asyncio.to_thread(
            annotate, candidates, target if use_proximity else None, criteria.skills
        )
        if with_skills and criteria.require_skill_match:
            matches = [m for m in matches if m.skill_match_count > 0]

        expansion = None
        if use_proximity:
            expansion = expand_radius(
                matches,
                criteria.required_count,
                initial_radius,
                self.settings.SEARCH_RADIUS_LADDER,
            )
            matches = expansion.matches

        # Skill relevance supersedes distance once skills are requested
        if with_skills:
            matches = rank_by_skills(matches)

        logger.info(
            "creator_search",
            use_proximity=use_proximity,
            superset=len(superset),
            found=len(matches),
            actual_radius=expansion.actual_radius if expansion else None,
            radius_expanded=expansion.expanded if expansion else False,
            radius_unlimited=expansion.unlimited if expansion else False,
        )

        return self._outcome(
            matches,
            criteria,
            initial_radius,
            use_proximity=use_proximity,
            expansion=expansion,
        )

    async def _search_paged(
        self, coarse: CandidateFilter, criteria: SearchCriteria, initial_radius: float | None
    ) -> SearchOutcome:
        total = await self.gateway.count_eligible(coarse)
        page = await self.gateway.find_eligible(
            coarse,
            limit=criteria.page_size,
            offset=page_offset(criteria.page, criteria.page_size),
        )
        items = [
            build_creator_hit(MatchResult(candidate=c), with_distance=False, with_skills=False)
            for c in page
        ]

        logger.info("creator_search", use_proximity=False, found=total, paged_in_store=True)

        return SearchOutcome(
            items=items,
            pagination=paginate(total, criteria.page, criteria.page_size),
            search_meta=SearchMeta(
                requested_count=criteria.required_count,
                found_count=total,
                initial_radius=initial_radius,
                actual_radius=None,
                radius_expanded=False,
                radius_unlimited=False,
            ),
        )

    def _outcome(
        self,
        matches: list[MatchResult],
        criteria: SearchCriteria,
        initial_radius: float | None,
        *,
        use_proximity: bool,
        expansion: RadiusExpansion | None = None,
    ) -> SearchOutcome:
        with_skills = bool(criteria.skills)
        items = [
            build_creator_hit(m, with_distance=use_proximity, with_skills=with_skills)
            for m in page_slice(matches, criteria.page, criteria.page_size)
        ]
        return SearchOutcome(
            items=items,
            pagination=paginate(len(matches), criteria.page, criteria.page_size),
            search_meta=SearchMeta(
                requested_count=criteria.required_count,
                found_count=len(matches),
                initial_radius=initial_radius,
                actual_radius=expansion.actual_radius if expansion else None,
                radius_expanded=expansion.expanded if expansion else False,
                radius_unlimited=expansion.unlimited if expansion else False,
            ),
        )


async def pick_random_creators(gateway: CandidateGateway, limit: int, max_limit: int) -> list[CreatorHit]:
    """Random eligible creators, used by clients when a search comes back empty."""
    limit = max(1, min(limit, max_limit))
    candidates = await gateway.find_random(CandidateFilter(), limit)
    return [
        build_creator_hit(MatchResult(candidate=c), with_distance=False, with_skills=False)
        for c in candidates
        if c.eligible
    ]
