"""Operational log sink — where the engine reports transitions and errors.

The engine depends only on ``OperationalLogSink``. ``DatabaseLogSink``
persists through its own session and commits immediately, so error entries
survive when the request that produced them rolls back.

Inside a request the sink is wrapped in ``DeferredLogSink``: entries are held
until the request transaction has committed or rolled back, then written.
SQLite allows one writer, so a second connection writing while the request
still holds the lock would wait out the busy timeout and lose the entry.
"""

import logging
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.models.common import LogCategory, LogLevel
from src.models.oplog import LogEntry
from src.repositories.oplog import OperationalLogRepository

logger = logging.getLogger(__name__)


class OperationalLogSink(Protocol):
    async def emit(self, entry: LogEntry) -> None:
        ...


def make_entry(
    level: LogLevel,
    message: str,
    *,
    category: LogCategory = LogCategory.WORKFLOW,
    actor_id: str | None = None,
    **context: Any,
) -> LogEntry:
    """Build a log entry, stringifying context values for JSON storage."""
    return LogEntry(
        level=level,
        category=category,
        message=message,
        actor_id=actor_id,
        context={key: str(value) if value is not None else None for key, value in context.items()},
    )


class DatabaseLogSink:
    """Writes entries at or above ``min_level`` to the operational_logs table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        min_level: LogLevel = LogLevel.WARNING,
    ) -> None:
        self._session_factory = session_factory
        self._min_level = min_level

    def should_log(self, level: LogLevel) -> bool:
        return level.severity >= self._min_level.severity

    async def emit(self, entry: LogEntry) -> None:
        if not self.should_log(entry.level):
            return
        try:
            async with self._session_factory() as session:
                await OperationalLogRepository(session).write(entry)
                await session.commit()
        except Exception:
            # A broken log store must not fail the workflow call that reported it.
            logger.exception("Failed to persist operational log entry %s", entry.log_id)


class DeferredLogSink:
    """Holds entries in memory until ``flush`` hands them to ``target``."""

    def __init__(self, target: OperationalLogSink) -> None:
        self._target = target
        self._pending: list[LogEntry] = []

    @property
    def pending(self) -> list[LogEntry]:
        return list(self._pending)

    async def emit(self, entry: LogEntry) -> None:
        self._pending.append(entry)

    async def flush(self) -> int:
        """Write held entries in emit order. Returns how many were handed over."""
        pending, self._pending = self._pending, []
        for entry in pending:
            await self._target.emit(entry)
        return len(pending)
