"""Survey record repository — the Record Store.

Repos take AsyncSession, call add()/flush()/execute() only — never commit().
The session dependency handles commit/rollback (Unit-of-Work).

Reads return detached ``SurveyRecord`` snapshots rather than ORM rows, so a
caller's view cannot change underneath it. Writes go through ``update()``,
a compare-and-swap on the ``version`` column: it succeeds only if the
version the caller read is still current.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import AuditEntryRow, SurveyRecordRow
from src.models.common import (
    ReviewAction,
    ReviewRole,
    ReviewStatus,
    as_utc,
    new_uuid7,
    utc_now,
)
from src.models.record import RecordFilter, SurveyRecord

# Columns update() may change. Identity and source keys are fixed at import.
_MUTABLE_FIELDS = frozenset({
    "status", "assigned_role", "assigned_actor", "payload", "sampled", "modified_at",
})


def _new_row_values(
    survey_id: str,
    response_id: str,
    payload: dict[str, Any] | None,
    record_id: UUID | None,
    status: ReviewStatus,
    assigned_role: ReviewRole | None,
) -> dict[str, Any]:
    now = utc_now()
    return {
        "record_id": record_id or new_uuid7(),
        "survey_id": survey_id,
        "response_id": response_id,
        "status": status,
        "assigned_role": assigned_role,
        "assigned_actor": None,
        "payload": payload or {},
        "sampled": None,
        "version": 1,
        "created_at": now,
        "modified_at": now,
    }


def _to_record(row: SurveyRecordRow) -> SurveyRecord:
    return SurveyRecord(
        record_id=row.record_id,
        survey_id=row.survey_id,
        response_id=row.response_id,
        status=ReviewStatus(row.status),
        assigned_role=ReviewRole(row.assigned_role) if row.assigned_role else None,
        assigned_actor=row.assigned_actor,
        payload=dict(row.payload or {}),
        sampled=row.sampled,
        version=row.version,
        created_at=as_utc(row.created_at),
        modified_at=as_utc(row.modified_at),
    )


class RecordRepository:
    """Durable store of survey records and their current review state."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        survey_id: str,
        response_id: str,
        payload: dict[str, Any] | None = None,
        record_id: UUID | None = None,
        status: ReviewStatus = ReviewStatus.PENDING_A,
        assigned_role: ReviewRole | None = ReviewRole.INTERVIEWER_A,
    ) -> SurveyRecord:
        row = SurveyRecordRow(**_new_row_values(
            survey_id, response_id, payload, record_id, status, assigned_role,
        ))
        self._session.add(row)
        await self._session.flush()
        return _to_record(row)

    async def create_if_absent(
        self,
        *,
        survey_id: str,
        response_id: str,
        payload: dict[str, Any] | None = None,
        status: ReviewStatus = ReviewStatus.PENDING_A,
        assigned_role: ReviewRole | None = ReviewRole.INTERVIEWER_A,
    ) -> SurveyRecord | None:
        """Insert a record unless its (survey_id, response_id) already exists.

        Returns None when the key is taken, including by a concurrent
        transaction that inserted it after the caller last looked. The
        session stays usable either way.
        """
        values = _new_row_values(survey_id, response_id, payload, None, status, assigned_role)
        dialect = self._session.get_bind().dialect.name
        insert = postgresql_insert if dialect == "postgresql" else sqlite_insert
        result = await self._session.execute(
            insert(SurveyRecordRow.__table__)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["survey_id", "response_id"])
        )
        if result.rowcount != 1:
            return None
        return await self.get(values["record_id"])

    async def _get_row(self, record_id: UUID) -> SurveyRecordRow | None:
        result = await self._session.execute(
            select(SurveyRecordRow)
            .where(SurveyRecordRow.record_id == record_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, record_id: UUID) -> SurveyRecord | None:
        row = await self._get_row(record_id)
        return _to_record(row) if row is not None else None

    async def get_by_source(self, survey_id: str, response_id: str) -> SurveyRecord | None:
        """Find a record by its import dedup key."""
        result = await self._session.execute(
            select(SurveyRecordRow)
            .where(
                SurveyRecordRow.survey_id == survey_id,
                SurveyRecordRow.response_id == response_id,
            )
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_record(row) if row is not None else None

    async def update(
        self,
        record_id: UUID,
        *,
        expected_version: int,
        **changes: Any,
    ) -> SurveyRecord | None:
        """Apply ``changes`` only if the stored version is ``expected_version``.

        Bumps the version by one. Returns the updated record, or None when
        the record is missing or another writer got there first.
        """
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            msg = f"Cannot update fields: {sorted(unknown)}."
            raise ValueError(msg)

        result = await self._session.execute(
            update(SurveyRecordRow)
            .where(
                SurveyRecordRow.record_id == record_id,
                SurveyRecordRow.version == expected_version,
            )
            .values(**changes, version=SurveyRecordRow.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        return await self.get(record_id)

    async def list(self, filters: RecordFilter | None = None) -> list[SurveyRecord]:
        """Read-side query, newest records first."""
        filters = filters or RecordFilter()
        stmt = select(SurveyRecordRow)
        if filters.status is not None:
            stmt = stmt.where(SurveyRecordRow.status == filters.status)
        if filters.role is not None:
            stmt = stmt.where(SurveyRecordRow.assigned_role == filters.role)
        if filters.survey_id is not None:
            stmt = stmt.where(SurveyRecordRow.survey_id == filters.survey_id)
        if filters.created_from is not None:
            stmt = stmt.where(SurveyRecordRow.created_at >= as_utc(filters.created_from))
        if filters.created_to is not None:
            stmt = stmt.where(SurveyRecordRow.created_at <= as_utc(filters.created_to))
        stmt = (
            stmt.order_by(SurveyRecordRow.created_at.desc(), SurveyRecordRow.record_id.desc())
            .limit(filters.limit)
            .offset(filters.offset)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [_to_record(row) for row in result.scalars().all()]

    async def count_by_status(self) -> dict[ReviewStatus, int]:
        result = await self._session.execute(
            select(SurveyRecordRow.status, func.count())
            .group_by(SurveyRecordRow.status)
        )
        return {ReviewStatus(status): count for status, count in result.all()}

    async def count_by_role(self) -> dict[ReviewRole, int]:
        """Open records per assigned role; terminal records are not counted."""
        result = await self._session.execute(
            select(SurveyRecordRow.assigned_role, func.count())
            .where(SurveyRecordRow.assigned_role.is_not(None))
            .group_by(SurveyRecordRow.assigned_role)
        )
        return {ReviewRole(role): count for role, count in result.all()}

    def _queue_query(self, statuses: Iterable[ReviewStatus], actor_id: str | None):
        stmt = (
            select(func.count(func.distinct(SurveyRecordRow.record_id)))
            .select_from(SurveyRecordRow)
            .where(SurveyRecordRow.status.in_(list(statuses)))
        )
        if actor_id is not None:
            stmt = stmt.where(or_(
                SurveyRecordRow.assigned_actor.is_(None),
                SurveyRecordRow.assigned_actor == actor_id,
            ))
        return stmt

    async def count_queue(
        self, statuses: Iterable[ReviewStatus], *, actor_id: str | None = None,
    ) -> int:
        """Records in ``statuses``; with ``actor_id``, only those unassigned or assigned to them."""
        result = await self._session.execute(self._queue_query(statuses, actor_id))
        return result.scalar_one()

    async def count_returned(
        self, statuses: Iterable[ReviewStatus], *, actor_id: str | None = None,
    ) -> int:
        """Queue records that a reject sent back into their current state."""
        stmt = (
            self._queue_query(statuses, actor_id)
            .join(AuditEntryRow, AuditEntryRow.record_id == SurveyRecordRow.record_id)
            .where(
                AuditEntryRow.action == ReviewAction.REJECT,
                AuditEntryRow.to_status == SurveyRecordRow.status,
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()
