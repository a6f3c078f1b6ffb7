"""Tests for the seed script — demo actors and records load idempotently."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from scripts.seed import DEMO_ACTORS, DEMO_SURVEY_ID, demo_responses, seed_demo
from src.models.common import ReviewStatus
from src.models.record import RecordFilter
from src.repositories.actors import ActorRoleRepository
from src.repositories.records import RecordRepository


class TestSeedDemo:
    @pytest.mark.anyio
    async def test_seeds_actors_and_records(self, db_session: AsyncSession) -> None:
        result = await seed_demo(db_session)
        assert result["created"] == len(demo_responses())
        assert result["already_seeded"] is False

        actors = ActorRoleRepository(db_session)
        for actor_id, role, _name in DEMO_ACTORS:
            assert await actors.role_of(actor_id) == role

        records = await RecordRepository(db_session).list(RecordFilter(survey_id=DEMO_SURVEY_ID))
        assert len(records) == 12
        assert all(r.status == ReviewStatus.PENDING_A for r in records)

    @pytest.mark.anyio
    async def test_second_run_adds_nothing(self, db_session: AsyncSession) -> None:
        await seed_demo(db_session)
        again = await seed_demo(db_session)
        assert again["created"] == 0
        assert again["skipped"] == 12
        assert again["already_seeded"] is True

    def test_responses_are_stable(self) -> None:
        assert demo_responses() == demo_responses()
        assert len({r.response_id for r in demo_responses()}) == 12
