import asyncio
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from crewmatch.core.dependencies import get_candidate_gateway, get_equipment_gateway
from crewmatch.core.exceptions import RepositoryUnavailable
from crewmatch.core.rate_limit import limiter
from crewmatch.main import app
from crewmatch.schemas.candidate import Candidate, EquipmentItem
from crewmatch.services.repository import CandidateFilter, EquipmentFilter

LOS_ANGELES = {"lat": 34.0522, "lng": -118.2437, "address": "Los Angeles, CA"}
DOWNTOWN_LA = {"lat": 34.0407, "lng": -118.2468, "address": "Downtown LA"}
SAN_FRANCISCO = {"lat": 37.7749, "lng": -122.4194, "address": "San Francisco, CA"}


def make_candidate(id: int, **overrides) -> Candidate:
    data = {
        "id": id,
        "display_name": f"Creator {id}",
        "role_ids": "1",
        "skills": "[]",
        "hourly_rate": Decimal("100"),
        "rating": 4.0,
        "location": None,
        "verified": True,
        "active": True,
        "draft": False,
    }
    data.update(overrides)
    return Candidate(**data)


def make_equipment(id: int, **overrides) -> EquipmentItem:
    data = {
        "id": id,
        "name": f"Camera {id}",
        "category": "Cameras",
        "category_id": 1,
        "price_per_day": Decimal("50"),
        "location": None,
        "availability": "available",
    }
    data.update(overrides)
    return EquipmentItem(**data)


class FakeCandidateGateway:
    """In-memory stand-in for the SQL gateway, applying the same coarse filter."""

    def __init__(self, candidates=None, *, fail=False, delay=0.0):
        self.candidates = list(candidates or [])
        self.fail = fail
        self.delay = delay
        self.calls = []

    def _filter(self, criteria: CandidateFilter) -> list[Candidate]:
        rows = []
        for c in self.candidates:
            if criteria.verified is not None and c.verified != criteria.verified:
                continue
            if criteria.active is not None and c.active != criteria.active:
                continue
            if criteria.draft is not None and c.draft != criteria.draft:
                continue
            if criteria.budget_min is not None and c.hourly_rate < criteria.budget_min:
                continue
            if criteria.budget_max is not None and c.hourly_rate > criteria.budget_max:
                continue
            if criteria.text_location_hint:
                address = (c.location.address if c.location else "") or ""
                if criteria.text_location_hint.lower() not in address.lower():
                    continue
            rows.append(c)
        return rows

    async def _before(self, name, **kwargs):
        self.calls.append((name, kwargs))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RepositoryUnavailable()

    async def find_eligible(self, criteria, limit=None, offset=None):
        await self._before("find_eligible", criteria=criteria, limit=limit, offset=offset)
        rows = self._filter(criteria)
        start = offset or 0
        return rows[start : start + limit] if limit is not None else rows[start:]

    async def count_eligible(self, criteria):
        await self._before("count_eligible", criteria=criteria)
        return len(self._filter(criteria))

    async def find_random(self, criteria, limit):
        await self._before("find_random", criteria=criteria, limit=limit)
        return self._filter(criteria)[:limit]


class FakeEquipmentGateway:
    def __init__(self, items=None):
        self.items = list(items or [])
        self.calls = []

    def _filter(self, criteria: EquipmentFilter) -> list[EquipmentItem]:
        rows = []
        for item in self.items:
            if criteria.available_only and item.availability != "available":
                continue
            if criteria.category_id is not None and item.category_id != criteria.category_id:
                continue
            if criteria.price_min is not None and item.price_per_day < criteria.price_min:
                continue
            if criteria.price_max is not None and item.price_per_day > criteria.price_max:
                continue
            if criteria.text_location_hint:
                address = (item.location.address if item.location else "") or ""
                if criteria.text_location_hint.lower() not in address.lower():
                    continue
            rows.append(item)
        return sorted(rows, key=lambda i: i.price_per_day)

    async def find(self, criteria, limit=None, offset=None):
        self.calls.append(("find", limit, offset))
        rows = self._filter(criteria)
        start = offset or 0
        return rows[start : start + limit] if limit is not None else rows[start:]

    async def count(self, criteria):
        self.calls.append(("count", None, None))
        return len(self._filter(criteria))


@pytest.fixture()
def candidate_gateway():
    return FakeCandidateGateway()


@pytest.fixture()
def equipment_gateway():
    return FakeEquipmentGateway()


@pytest_asyncio.fixture()
async def client(candidate_gateway, equipment_gateway):
    app.dependency_overrides[get_candidate_gateway] = lambda: candidate_gateway
    app.dependency_overrides[get_equipment_gateway] = lambda: equipment_gateway
    limiter.enabled = False
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    limiter.enabled = True
    app.dependency_overrides.clear()
