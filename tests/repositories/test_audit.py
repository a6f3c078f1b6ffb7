"""Tests for AuditTrailRepository — append-only, ordered, restartable history."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_extensions import uuid7

from src.models.audit import AuditEntry
from src.models.common import ReviewAction, ReviewRole, ReviewStatus, utc_now
from src.repositories.audit import AuditTrailRepository


def _entry(record_id, *, notes: str = "", timestamp=None, actor_id: str = "enum-01") -> AuditEntry:
    return AuditEntry(
        record_id=record_id,
        actor_id=actor_id,
        actor_role=ReviewRole.INTERVIEWER_A,
        from_status=ReviewStatus.PENDING_A,
        to_status=ReviewStatus.PENDING_B,
        action=ReviewAction.APPROVE,
        notes=notes,
        timestamp=timestamp or utc_now(),
    )


class TestAppend:
    @pytest.mark.anyio
    async def test_append_and_count(self, db_session: AsyncSession) -> None:
        repo = AuditTrailRepository(db_session)
        rid = uuid7()
        await repo.append(_entry(rid))
        await repo.append(_entry(uuid7()))
        assert await repo.count(rid) == 1

    def test_no_mutation_methods(self) -> None:
        for name in ("update", "delete", "remove", "clear"):
            assert not hasattr(AuditTrailRepository, name)


class TestHistory:
    @pytest.mark.anyio
    async def test_timestamp_order_with_insertion_tiebreak(self, db_session: AsyncSession) -> None:
        repo = AuditTrailRepository(db_session)
        rid = uuid7()
        t0 = utc_now()
        await repo.append(_entry(rid, notes="late", timestamp=t0 + timedelta(seconds=5)))
        await repo.append(_entry(rid, notes="tie-1", timestamp=t0))
        await repo.append(_entry(rid, notes="tie-2", timestamp=t0))

        history = await repo.history(rid).all()
        assert [e.notes for e in history] == ["tie-1", "tie-2", "late"]

    @pytest.mark.anyio
    async def test_paged_iteration_is_restartable(self, db_session: AsyncSession) -> None:
        repo = AuditTrailRepository(db_session)
        rid = uuid7()
        t0 = utc_now()
        for i in range(7):
            await repo.append(_entry(rid, notes=str(i), timestamp=t0 + timedelta(seconds=i // 2)))

        history = repo.history(rid, page_size=3)
        first = [e.notes async for e in history]
        second = [e.notes async for e in history]
        assert first == second == [str(i) for i in range(7)]

    @pytest.mark.anyio
    async def test_history_sees_later_appends(self, db_session: AsyncSession) -> None:
        repo = AuditTrailRepository(db_session)
        rid = uuid7()
        history = repo.history(rid)
        assert await history.all() == []
        await repo.append(_entry(rid))
        assert len(await history.all()) == 1

    @pytest.mark.anyio
    async def test_list_by_actor_newest_first(self, db_session: AsyncSession) -> None:
        repo = AuditTrailRepository(db_session)
        t0 = utc_now()
        await repo.append(_entry(uuid7(), notes="old", timestamp=t0))
        await repo.append(_entry(uuid7(), notes="new", timestamp=t0 + timedelta(minutes=1)))
        await repo.append(_entry(uuid7(), actor_id="sup-01"))
        entries = await repo.list_by_actor("enum-01")
        assert [e.notes for e in entries] == ["new", "old"]


class TestActorCounts:
    @pytest.mark.anyio
    async def test_count_by_action(self, db_session: AsyncSession) -> None:
        repo = AuditTrailRepository(db_session)
        await repo.append(_entry(uuid7()))
        await repo.append(_entry(uuid7()))
        await repo.append(_entry(uuid7()).model_copy(update={"action": ReviewAction.EDIT}))
        await repo.append(_entry(uuid7(), actor_id="sup-01"))

        assert await repo.count_by_action("enum-01") == {
            ReviewAction.APPROVE: 2, ReviewAction.EDIT: 1,
        }
        assert await repo.count_by_action("nobody") == {}

    @pytest.mark.anyio
    async def test_daily_counts_bucket_by_utc_day(self, db_session: AsyncSession) -> None:
        repo = AuditTrailRepository(db_session)
        now = utc_now()
        await repo.append(_entry(uuid7(), timestamp=now))
        await repo.append(_entry(uuid7(), timestamp=now))
        await repo.append(_entry(uuid7(), timestamp=now - timedelta(days=1)))
        await repo.append(_entry(uuid7(), timestamp=now - timedelta(days=10)))
        await repo.append(_entry(uuid7(), timestamp=now, actor_id="sup-01"))

        since = now - timedelta(days=2)
        counts = await repo.daily_counts(since, actor_id="enum-01")
        assert counts == {now.date(): 2, (now - timedelta(days=1)).date(): 1}
        assert (await repo.daily_counts(since))[now.date()] == 3
