"""Operational log repository — level/category filtered log store.

Rows are only ever inserted or bulk-deleted (``clear`` / ``prune``).
Repos never commit; ``DatabaseLogSink`` owns its own session and commits.
"""

from datetime import timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import OperationalLogRow
from src.models.common import LogCategory, LogLevel, as_utc, utc_now
from src.models.oplog import LogEntry, LogQuery, LogStats

_ERROR_LEVELS = (LogLevel.ERROR, LogLevel.CRITICAL)


def _to_entry(row: OperationalLogRow) -> LogEntry:
    return LogEntry(
        log_id=row.log_id,
        level=LogLevel(row.level),
        category=LogCategory(row.category),
        message=row.message,
        context=dict(row.context or {}),
        actor_id=row.actor_id,
        timestamp=as_utc(row.timestamp),
    )


class OperationalLogRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def write(self, entry: LogEntry) -> LogEntry:
        self._session.add(OperationalLogRow(
            log_id=entry.log_id,
            level=entry.level,
            category=entry.category,
            message=entry.message,
            context=entry.context,
            actor_id=entry.actor_id,
            timestamp=entry.timestamp,
        ))
        await self._session.flush()
        return entry

    async def query(self, query: LogQuery | None = None) -> list[LogEntry]:
        """Filtered, paginated read. Newest first unless ``order`` is ASC."""
        query = query or LogQuery()
        stmt = select(OperationalLogRow)
        if query.level is not None:
            stmt = stmt.where(OperationalLogRow.level == query.level)
        if query.category is not None:
            stmt = stmt.where(OperationalLogRow.category == query.category)
        if query.actor_id is not None:
            stmt = stmt.where(OperationalLogRow.actor_id == query.actor_id)
        if query.date_from is not None:
            stmt = stmt.where(OperationalLogRow.timestamp >= as_utc(query.date_from))
        if query.date_to is not None:
            stmt = stmt.where(OperationalLogRow.timestamp <= as_utc(query.date_to))

        if query.order == "ASC":
            stmt = stmt.order_by(OperationalLogRow.timestamp, OperationalLogRow.row_id)
        else:
            stmt = stmt.order_by(
                OperationalLogRow.timestamp.desc(), OperationalLogRow.row_id.desc(),
            )
        result = await self._session.execute(stmt.limit(query.limit).offset(query.offset))
        return [_to_entry(row) for row in result.scalars().all()]

    async def stats(self) -> LogStats:
        by_level = await self._session.execute(
            select(OperationalLogRow.level, func.count()).group_by(OperationalLogRow.level)
        )
        by_category = await self._session.execute(
            select(OperationalLogRow.category, func.count())
            .group_by(OperationalLogRow.category)
        )
        recent_errors = await self._session.execute(
            select(func.count()).select_from(OperationalLogRow).where(
                OperationalLogRow.level.in_(_ERROR_LEVELS),
                OperationalLogRow.timestamp >= utc_now() - timedelta(hours=24),
            )
        )
        level_counts = dict(by_level.all())
        return LogStats(
            total_logs=sum(level_counts.values()),
            recent_errors=recent_errors.scalar_one(),
            by_level=level_counts,
            by_category=dict(by_category.all()),
        )

    async def clear(
        self,
        *,
        level: LogLevel | None = None,
        category: LogCategory | None = None,
        older_than_days: int = 0,
    ) -> int:
        """Delete matching rows; with no filters, delete everything."""
        stmt = delete(OperationalLogRow)
        if level is not None:
            stmt = stmt.where(OperationalLogRow.level == level)
        if category is not None:
            stmt = stmt.where(OperationalLogRow.category == category)
        if older_than_days > 0:
            cutoff = utc_now() - timedelta(days=older_than_days)
            stmt = stmt.where(OperationalLogRow.timestamp < cutoff)
        result = await self._session.execute(
            stmt.execution_options(synchronize_session=False),
        )
        await self._session.flush()
        return result.rowcount

    async def prune(self, *, retention_days: int, max_entries: int) -> int:
        """Drop rows past retention, then the oldest rows beyond ``max_entries``."""
        removed = await self.clear(older_than_days=retention_days)

        overflow = (
            select(OperationalLogRow.row_id)
            .order_by(OperationalLogRow.timestamp.desc(), OperationalLogRow.row_id.desc())
            .offset(max_entries)
        )
        result = await self._session.execute(
            delete(OperationalLogRow)
            .where(OperationalLogRow.row_id.in_(overflow))
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
        return removed + result.rowcount
