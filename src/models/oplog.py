"""Operational log models — level/category filtered log store."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from src.models.common import (
    LogCategory,
    LogLevel,
    ReviewBase,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)


class LogEntry(ReviewBase):
    """A single operational log line with optional structured context."""

    log_id: UUIDv7 = Field(default_factory=new_uuid7)
    level: LogLevel
    category: LogCategory = LogCategory.SYSTEM
    message: str = Field(..., min_length=1)
    context: dict[str, Any] = Field(default_factory=dict)
    actor_id: str | None = None
    timestamp: UTCTimestamp = Field(default_factory=utc_now)


class LogQuery(ReviewBase):
    level: LogLevel | None = None
    category: LogCategory | None = None
    actor_id: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int = Field(default=50, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)
    order: Literal["ASC", "DESC"] = "DESC"


class LogStats(ReviewBase):
    total_logs: int
    recent_errors: int
    by_level: dict[str, int]
    by_category: dict[str, int]
