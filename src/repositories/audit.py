"""Audit trail repository — append-only.

``append`` is the only write; no update or delete method exists. Entries
are flushed in the caller's transaction, so an entry and the record change
it describes commit or roll back together.
"""

from collections import Counter
from collections.abc import AsyncIterator
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import AuditEntryRow
from src.models.audit import AuditEntry
from src.models.common import ReviewAction, ReviewRole, ReviewStatus, as_utc


def _to_entry(row: AuditEntryRow) -> AuditEntry:
    return AuditEntry(
        entry_id=row.entry_id,
        record_id=row.record_id,
        actor_id=row.actor_id,
        actor_role=ReviewRole(row.actor_role),
        from_status=ReviewStatus(row.from_status),
        to_status=ReviewStatus(row.to_status),
        action=ReviewAction(row.action),
        notes=row.notes,
        timestamp=as_utc(row.timestamp),
    )


class AuditHistory:
    """Lazy, restartable history of one record.

    Each ``async for`` runs the query again from the start and reads it in
    keyset pages ordered by (timestamp, insertion order).
    """

    def __init__(self, session: AsyncSession, record_id: UUID, *, page_size: int = 100) -> None:
        self._session = session
        self._record_id = record_id
        self._page_size = page_size

    @property
    def record_id(self) -> UUID:
        return self._record_id

    def __aiter__(self) -> AsyncIterator[AuditEntry]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[AuditEntry]:
        last: tuple[datetime, int] | None = None
        while True:
            stmt = select(AuditEntryRow).where(AuditEntryRow.record_id == self._record_id)
            if last is not None:
                last_ts, last_row_id = last
                stmt = stmt.where(
                    or_(
                        AuditEntryRow.timestamp > last_ts,
                        and_(
                            AuditEntryRow.timestamp == last_ts,
                            AuditEntryRow.row_id > last_row_id,
                        ),
                    )
                )
            stmt = stmt.order_by(AuditEntryRow.timestamp, AuditEntryRow.row_id).limit(
                self._page_size,
            )
            rows = list((await self._session.execute(stmt)).scalars().all())
            for row in rows:
                yield _to_entry(row)
            if len(rows) < self._page_size:
                return
            last = (rows[-1].timestamp, rows[-1].row_id)

    async def all(self) -> list[AuditEntry]:
        return [entry async for entry in self]


class AuditTrailRepository:
    """Append-only store of workflow transitions."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, entry: AuditEntry) -> AuditEntry:
        row = AuditEntryRow(
            entry_id=entry.entry_id,
            record_id=entry.record_id,
            actor_id=entry.actor_id,
            actor_role=entry.actor_role,
            from_status=entry.from_status,
            to_status=entry.to_status,
            action=entry.action,
            notes=entry.notes,
            timestamp=entry.timestamp,
        )
        self._session.add(row)
        await self._session.flush()
        return entry

    def history(self, record_id: UUID, *, page_size: int = 100) -> AuditHistory:
        return AuditHistory(self._session, record_id, page_size=page_size)

    async def count(self, record_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(AuditEntryRow)
            .where(AuditEntryRow.record_id == record_id)
        )
        return result.scalar_one()

    async def list_by_actor(self, actor_id: str, *, limit: int = 50) -> list[AuditEntry]:
        """Most recent transitions performed by one actor."""
        result = await self._session.execute(
            select(AuditEntryRow)
            .where(AuditEntryRow.actor_id == actor_id)
            .order_by(AuditEntryRow.timestamp.desc(), AuditEntryRow.row_id.desc())
            .limit(limit)
        )
        return [_to_entry(row) for row in result.scalars().all()]

    async def count_by_action(self, actor_id: str) -> dict[ReviewAction, int]:
        result = await self._session.execute(
            select(AuditEntryRow.action, func.count())
            .where(AuditEntryRow.actor_id == actor_id)
            .group_by(AuditEntryRow.action)
        )
        return {ReviewAction(action): count for action, count in result.all()}

    async def daily_counts(
        self, since: datetime, *, actor_id: str | None = None,
    ) -> dict[date, int]:
        """Entries per UTC calendar day, from ``since`` onwards."""
        stmt = select(AuditEntryRow.timestamp).where(AuditEntryRow.timestamp >= since)
        if actor_id is not None:
            stmt = stmt.where(AuditEntryRow.actor_id == actor_id)
        result = await self._session.execute(stmt)
        return dict(Counter(as_utc(ts).date() for ts in result.scalars()))
