"""Tests for the creator ranking pipeline against an in-memory gateway."""

from decimal import Decimal

import pytest
from conftest import DOWNTOWN_LA, LOS_ANGELES, FakeCandidateGateway, make_candidate

from crewmatch.core.config import Settings
from crewmatch.core.exceptions import DeadlineExceeded, RepositoryUnavailable
from crewmatch.schemas.search import SearchCriteria
from crewmatch.services.location import Location
from crewmatch.services.search import (
    CreatorSearchPipeline,
    MatchResult,
    annotate,
    expand_radius,
    ladder_start_index,
    within_radius,
)

LADDER = [25, 50, 100, 200, 500, 1000, 2000, 5000]
FAR_NORTH = {"lat": 39.8422, "lng": -118.2437, "address": "400 miles north"}
TARGET = '{"lat":34.0522,"lng":-118.2437,"address":"Los Angeles, CA"}'


def three_creators():
    return [
        make_candidate(1, location=LOS_ANGELES, rating=3.0),
        make_candidate(2, location=DOWNTOWN_LA, rating=4.0),
        make_candidate(3, location=FAR_NORTH, rating=5.0),
    ]


def pipeline_for(candidates, **settings_overrides):
    gateway = FakeCandidateGateway(candidates)
    return CreatorSearchPipeline(gateway, Settings(**settings_overrides)), gateway


@pytest.mark.asyncio
async def test_scenario_nearby_creators_within_first_step():
    pipeline, _ = pipeline_for(three_creators())

    outcome = await pipeline.search(
        SearchCriteria(location=TARGET, max_distance_miles=10, required_count=1)
    )

    assert [hit.crew_member_id for hit in outcome.items] == [1, 2]
    assert [hit.distance for hit in outcome.items] == [0.0, 0.8]
    assert outcome.search_meta.actual_radius == 25
    assert outcome.search_meta.radius_expanded is False
    assert outcome.search_meta.radius_unlimited is False
    assert outcome.search_meta.found_count == 2
    assert outcome.search_meta.initial_radius == 10


@pytest.mark.asyncio
async def test_scenario_radius_expands_until_required_count():
    pipeline, _ = pipeline_for(three_creators())

    outcome = await pipeline.search(
        SearchCriteria(location=TARGET, max_distance_miles=10, required_count=3)
    )

    assert [hit.crew_member_id for hit in outcome.items] == [1, 2, 3]
    assert outcome.search_meta.actual_radius == 500
    assert outcome.search_meta.radius_expanded is True
    assert outcome.search_meta.radius_unlimited is False
    assert outcome.search_meta.requested_count == 3


@pytest.mark.asyncio
async def test_scenario_no_coordinates_falls_back_to_unlimited():
    candidates = [
        make_candidate(1, location="Los Angeles, CA"),
        make_candidate(2, location=None),
        make_candidate(3, location='{"broken json}'),
    ]
    pipeline, _ = pipeline_for(candidates)

    outcome = await pipeline.search(SearchCriteria(location=TARGET, required_count=2))

    assert [hit.crew_member_id for hit in outcome.items] == [1, 2, 3]
    assert all(hit.distance is None for hit in outcome.items)
    assert outcome.search_meta.radius_unlimited is True
    assert outcome.search_meta.actual_radius is None
    assert outcome.search_meta.radius_expanded is True


@pytest.mark.asyncio
async def test_scenario_skill_overlap_beats_rating():
    candidates = [
        make_candidate(1, skills=["Editing"], rating=5.0),
        make_candidate(2, skills=["Color Grading, Davinci"], rating=3.0),
    ]
    pipeline, _ = pipeline_for(candidates)

    outcome = await pipeline.search(SearchCriteria(skills=["color grading"]))

    assert [hit.crew_member_id for hit in outcome.items] == [2, 1]
    assert outcome.items[0].match_score == 1
    assert outcome.items[0].matching_skills == ["Color Grading, Davinci"]
    assert outcome.items[1].match_score == 0


@pytest.mark.asyncio
async def test_skills_ties_broken_by_rating():
    candidates = [
        make_candidate(1, skills="Drone", rating=3.0),
        make_candidate(2, skills="Drone Pilot", rating=4.5),
    ]
    pipeline, _ = pipeline_for(candidates)

    outcome = await pipeline.search(SearchCriteria(skills="drone"))

    assert [hit.crew_member_id for hit in outcome.items] == [2, 1]


@pytest.mark.asyncio
async def test_skill_ranking_supersedes_distance():
    candidates = [
        make_candidate(1, location=LOS_ANGELES, skills=["Editing"]),
        make_candidate(2, location=DOWNTOWN_LA, skills=["Drone"]),
    ]
    pipeline, _ = pipeline_for(candidates)

    outcome = await pipeline.search(
        SearchCriteria(location=TARGET, skills=["drone"], required_count=1)
    )

    assert [hit.crew_member_id for hit in outcome.items] == [2, 1]
    assert outcome.items[0].distance == 0.8


@pytest.mark.asyncio
async def test_require_skill_match_filters_zero_scores():
    candidates = [
        make_candidate(1, skills=["Editing"]),
        make_candidate(2, skills=["Drone"]),
    ]
    pipeline, _ = pipeline_for(candidates)

    outcome = await pipeline.search(SearchCriteria(skills=["drone"], require_skill_match=True))

    assert [hit.crew_member_id for hit in outcome.items] == [2]
    assert outcome.pagination.total == 1


@pytest.mark.asyncio
async def test_required_count_never_pads_results():
    pipeline, _ = pipeline_for([make_candidate(1, location=LOS_ANGELES)])

    outcome = await pipeline.search(SearchCriteria(location=TARGET, required_count=5))

    assert len(outcome.items) == 1
    assert outcome.search_meta.radius_unlimited is True


@pytest.mark.asyncio
async def test_max_distance_above_ladder_starts_at_top_step():
    pipeline, _ = pipeline_for(three_creators())

    outcome = await pipeline.search(
        SearchCriteria(location=TARGET, max_distance_miles=10000, required_count=1)
    )

    assert outcome.search_meta.actual_radius == 5000
    assert outcome.search_meta.radius_expanded is False
    assert len(outcome.items) == 3


@pytest.mark.asyncio
async def test_default_radius_when_max_distance_missing():
    pipeline, _ = pipeline_for(three_creators())

    outcome = await pipeline.search(SearchCriteria(location=TARGET))

    assert outcome.search_meta.initial_radius == 50
    assert outcome.search_meta.actual_radius == 50


@pytest.mark.asyncio
async def test_proximity_fetches_superset_once_without_paging():
    pipeline, gateway = pipeline_for(three_creators())

    outcome = await pipeline.search(
        SearchCriteria(location=TARGET, required_count=3, page=2, page_size=2)
    )

    assert [name for name, _ in gateway.calls] == ["find_eligible"]
    assert gateway.calls[0][1]["limit"] is None
    assert gateway.calls[0][1]["offset"] is None
    assert [hit.crew_member_id for hit in outcome.items] == [3]
    assert outcome.pagination.total == 3
    assert outcome.pagination.total_pages == 2
    assert outcome.pagination.has_more is False


@pytest.mark.asyncio
async def test_plain_search_paginates_in_store():
    pipeline, gateway = pipeline_for([make_candidate(i) for i in range(1, 6)])

    outcome = await pipeline.search(SearchCriteria(page=2, page_size=2))

    assert [name for name, _ in gateway.calls] == ["count_eligible", "find_eligible"]
    assert gateway.calls[1][1]["limit"] == 2
    assert gateway.calls[1][1]["offset"] == 2
    assert [hit.crew_member_id for hit in outcome.items] == [3, 4]
    assert outcome.pagination.total == 5
    assert outcome.pagination.has_more is True
    assert outcome.items[0].match_score is None
    assert outcome.items[0].distance is None


@pytest.mark.asyncio
async def test_text_location_becomes_store_filter():
    candidates = [
        make_candidate(1, location="Los Angeles, CA"),
        make_candidate(2, location="Seattle, WA"),
    ]
    pipeline, gateway = pipeline_for(candidates)

    outcome = await pipeline.search(SearchCriteria(location="los angeles", max_distance_miles=25))

    assert [hit.crew_member_id for hit in outcome.items] == [1]
    assert gateway.calls[0][1]["criteria"].text_location_hint == "los angeles"
    assert outcome.search_meta.actual_radius is None
    assert outcome.search_meta.radius_expanded is False


@pytest.mark.asyncio
async def test_role_filter_uses_exact_ids():
    candidates = [
        make_candidate(1, role_ids="10"),
        make_candidate(2, role_ids="1,9"),
        make_candidate(3, role_ids="[19]"),
        make_candidate(4, role_ids=None),
    ]
    pipeline, _ = pipeline_for(candidates)

    outcome = await pipeline.search(SearchCriteria(role_filters=["1"]))
    assert [hit.crew_member_id for hit in outcome.items] == [2]

    outcome = await pipeline.search(SearchCriteria(role_filters=["10"]))
    assert [hit.crew_member_id for hit in outcome.items] == [1]


@pytest.mark.asyncio
async def test_role_alias_filter():
    candidates = [
        make_candidate(1, role_ids="2"),
        make_candidate(2, role_ids="9"),
        make_candidate(3, role_ids="3"),
    ]
    pipeline, _ = pipeline_for(candidates)

    outcome = await pipeline.search(SearchCriteria(role_filters="videographer,Photographer"))

    assert [hit.crew_member_id for hit in outcome.items] == [1, 2]


@pytest.mark.asyncio
async def test_unresolvable_roles_permissive_by_default():
    pipeline, _ = pipeline_for([make_candidate(1), make_candidate(2)])

    outcome = await pipeline.search(SearchCriteria(role_filters=["juggler"]))

    assert len(outcome.items) == 2


@pytest.mark.asyncio
async def test_unresolvable_roles_strict_policy_matches_nothing():
    pipeline, gateway = pipeline_for(
        [make_candidate(1), make_candidate(2)], ROLE_FILTER_POLICY="strict"
    )

    outcome = await pipeline.search(SearchCriteria(role_filters=["juggler"]))

    assert outcome.items == []
    assert outcome.pagination.total == 0
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_budget_range_and_eligibility():
    candidates = [
        make_candidate(1, hourly_rate=Decimal("40")),
        make_candidate(2, hourly_rate=Decimal("75")),
        make_candidate(3, hourly_rate=Decimal("150")),
        make_candidate(4, hourly_rate=Decimal("75"), draft=True),
        make_candidate(5, hourly_rate=Decimal("75"), verified=False),
    ]
    pipeline, _ = pipeline_for(candidates)

    outcome = await pipeline.search(
        SearchCriteria(budget_min=Decimal("50"), budget_max=Decimal("100"), skills=["x"])
    )

    assert [hit.crew_member_id for hit in outcome.items] == [2]


@pytest.mark.asyncio
async def test_repository_failure_propagates():
    pipeline = CreatorSearchPipeline(FakeCandidateGateway(fail=True), Settings())

    with pytest.raises(RepositoryUnavailable):
        await pipeline.search(SearchCriteria(location=TARGET))


@pytest.mark.asyncio
async def test_deadline_exceeded():
    gateway = FakeCandidateGateway(three_creators(), delay=1.0)
    pipeline = CreatorSearchPipeline(gateway, Settings(SEARCH_TIMEOUT_SECONDS=0.05))

    with pytest.raises(DeadlineExceeded):
        await pipeline.search(SearchCriteria(location=TARGET))


def test_ladder_start_index():
    assert ladder_start_index(LADDER, 10) == 0
    assert ladder_start_index(LADDER, 25) == 0
    assert ladder_start_index(LADDER, 26) == 1
    assert ladder_start_index(LADDER, 5000) == 7
    assert ladder_start_index(LADDER, 9000) == 7


def test_radius_expansion_is_monotonic():
    target = Location(latitude=34.0522, longitude=-118.2437)
    candidates = [
        make_candidate(i, location={"lat": 34.0522 + i * 0.35, "lng": -118.2437})
        for i in range(40)
    ] + [make_candidate(99, location="No coordinates")]
    matches = annotate(candidates, target, [])

    counts = [len(within_radius(matches, step)) for step in LADDER]

    assert counts == sorted(counts)
    assert counts[-1] == 40


def test_expand_radius_refilters_full_superset():
    matches = [
        MatchResult(candidate=make_candidate(1), distance_miles=30.0),
        MatchResult(candidate=make_candidate(2), distance_miles=10.0),
        MatchResult(candidate=make_candidate(3), distance_miles=None),
    ]

    expansion = expand_radius(matches, required_count=2, initial_radius=25, ladder=LADDER)

    assert [m.candidate.id for m in expansion.matches] == [2, 1]
    assert expansion.actual_radius == 50
    assert expansion.expanded is True


def test_expand_radius_unlimited_keeps_unknown_distances_last():
    matches = [
        MatchResult(candidate=make_candidate(1), distance_miles=None),
        MatchResult(candidate=make_candidate(2), distance_miles=9000.0),
        MatchResult(candidate=make_candidate(3), distance_miles=None),
    ]

    expansion = expand_radius(matches, required_count=3, initial_radius=50, ladder=LADDER)

    assert [m.candidate.id for m in expansion.matches] == [2, 1, 3]
    assert expansion.unlimited is True
    assert expansion.actual_radius is None


def test_top_step_start_then_unlimited_counts_as_expanded():
    matches = [
        MatchResult(candidate=make_candidate(1), distance_miles=12.0),
        MatchResult(candidate=make_candidate(2), distance_miles=None),
    ]

    expansion = expand_radius(matches, required_count=2, initial_radius=9000, ladder=LADDER)

    assert [m.candidate.id for m in expansion.matches] == [1, 2]
    assert expansion.unlimited is True
    assert expansion.expanded is True
    assert expansion.actual_radius is None


@pytest.mark.asyncio
async def test_search_from_top_step_falling_back_to_unlimited():
    pipeline, _ = pipeline_for([make_candidate(1, location=LOS_ANGELES), make_candidate(2)])

    outcome = await pipeline.search(
        SearchCriteria(location=TARGET, max_distance_miles=10000, required_count=2)
    )

    assert outcome.search_meta.radius_unlimited is True
    assert outcome.search_meta.radius_expanded is True
    assert outcome.search_meta.actual_radius is None
    assert [hit.crew_member_id for hit in outcome.items] == [1, 2]
