"""Tests for WorkflowStats snapshots and per-actor dashboards."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.common import ReviewAction, ReviewRole, ReviewStatus, utc_now
from src.repositories.actors import ActorRoleRepository
from src.repositories.audit import AuditTrailRepository
from src.repositories.records import RecordRepository
from src.workflow.config import WorkflowConfig
from src.workflow.roles import RoleRegistry
from src.workflow.stats import WorkflowStats


def _stats(session: AsyncSession, config: WorkflowConfig | None = None) -> WorkflowStats:
    return WorkflowStats(
        RecordRepository(session),
        AuditTrailRepository(session),
        RoleRegistry(ActorRoleRepository(session), config),
    )


class TestWorkflowStats:
    @pytest.mark.anyio
    async def test_empty_store(self, db_session: AsyncSession) -> None:
        snap = await _stats(db_session).snapshot()
        assert snap.total == 0
        assert snap.completion_rate == 0.0
        assert set(snap.by_status) == set(ReviewStatus)
        assert all(v == 0 for v in snap.by_role.values())

    @pytest.mark.anyio
    async def test_counts_and_completion(self, db_session: AsyncSession) -> None:
        repo = RecordRepository(db_session)
        await repo.create(survey_id="S1", response_id="R1")
        await repo.create(survey_id="S1", response_id="R2")
        await repo.create(
            survey_id="S1", response_id="R3",
            status=ReviewStatus.PENDING_B, assigned_role=ReviewRole.SUPERVISOR_B,
        )
        await repo.create(
            survey_id="S1", response_id="R4",
            status=ReviewStatus.FINALIZED, assigned_role=None,
        )

        snap = await _stats(db_session).snapshot()

        assert snap.total == 4
        assert snap.by_status[ReviewStatus.PENDING_A] == 2
        assert snap.by_status[ReviewStatus.FINALIZED] == 1
        assert snap.by_role == {
            ReviewRole.INTERVIEWER_A: 2,
            ReviewRole.SUPERVISOR_B: 1,
            ReviewRole.EXAMINER_C: 0,
        }
        assert snap.completion_rate == 0.25


class TestActorStats:
    async def _reviewed(self, session: AsyncSession, make_engine) -> None:
        """R1 approved then sent back by B, R2 approved and waiting on B, R3 untouched."""
        engine = make_engine(sampling_rate=1.0)
        repo = RecordRepository(session)
        r1 = await repo.create(survey_id="S1", response_id="R1")
        r2 = await repo.create(survey_id="S1", response_id="R2")
        await repo.create(survey_id="S1", response_id="R3")

        await engine.apply_action(r1.record_id, "enum-01", "approve")
        await engine.apply_action(r1.record_id, "sup-01", "reject", "household size missing")
        await engine.apply_action(r2.record_id, "enum-01", "approve")

    @pytest.mark.anyio
    async def test_interviewer_view(self, db_session: AsyncSession, make_engine) -> None:
        await self._reviewed(db_session, make_engine)

        stats = await _stats(db_session).for_actor("enum-01", days=7)

        assert stats.role == ReviewRole.INTERVIEWER_A
        assert stats.queue_states == [ReviewStatus.PENDING_A]
        assert stats.pending == 2
        assert stats.returned == 1
        assert stats.actions == {
            ReviewAction.APPROVE: 2, ReviewAction.REJECT: 0, ReviewAction.EDIT: 0,
        }
        assert stats.completed_today == 2
        assert len(stats.daily_activity) == 7
        assert stats.daily_activity[-1].day == utc_now().date()
        assert [e.actor_id for e in stats.recent] == ["enum-01", "enum-01"]

    @pytest.mark.anyio
    async def test_supervisor_view(self, db_session: AsyncSession, make_engine) -> None:
        await self._reviewed(db_session, make_engine)

        stats = await _stats(db_session).for_actor("sup-01")

        assert stats.pending == 1
        assert stats.returned == 0
        assert stats.actions[ReviewAction.REJECT] == 1
        assert len(stats.daily_activity) == 30

    @pytest.mark.anyio
    async def test_queue_follows_role_overrides(
        self, db_session: AsyncSession, make_engine,
    ) -> None:
        await self._reviewed(db_session, make_engine)
        config = WorkflowConfig(
            state_role_overrides={ReviewStatus.PENDING_C: ReviewRole.SUPERVISOR_B},
        )

        stats = await _stats(db_session, config).for_actor("sup-01")

        assert stats.queue_states == [ReviewStatus.PENDING_B, ReviewStatus.PENDING_C]
        assert stats.pending == 1

    @pytest.mark.anyio
    async def test_actor_without_role(self, db_session: AsyncSession, seeded_actors) -> None:
        stats = await _stats(db_session).for_actor("visitor", days=3)
        assert stats.role is None
        assert stats.queue_states == []
        assert stats.pending == 0
        assert stats.completed_today == 0
        assert [d.transitions for d in stats.daily_activity] == [0, 0, 0]
        assert stats.recent == []

    @pytest.mark.anyio
    async def test_global_daily_activity(self, db_session: AsyncSession, make_engine) -> None:
        await self._reviewed(db_session, make_engine)
        activity = await _stats(db_session).daily_activity(days=2)
        assert [d.transitions for d in activity] == [0, 3]
