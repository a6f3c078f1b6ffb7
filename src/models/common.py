"""Shared types, enums, and base models used across the review workflow."""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_extensions import uuid7


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_uuid7() -> UUID:
    """Generate a new time-sortable UUID v7."""
    return uuid7()


# --- Reusable annotated types ---

UUIDv7 = Annotated[UUID, Field(description="Time-sortable UUID v7.")]
UTCTimestamp = Annotated[
    datetime, Field(description="UTC timezone-aware timestamp.")
]
ActorId = Annotated[
    str, Field(min_length=1, max_length=255, description="Opaque actor identity."),
]


# --- Workflow enums ---


class ReviewStatus(StrEnum):
    """Workflow states of a survey record."""

    PENDING_A = "PENDING_A"
    PENDING_B = "PENDING_B"
    PENDING_C = "PENDING_C"
    FINALIZED = "FINALIZED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[ReviewStatus] = frozenset({
    ReviewStatus.FINALIZED,
    ReviewStatus.REJECTED,
})


class ReviewRole(StrEnum):
    """Closed set of reviewer roles. An actor holds at most one."""

    INTERVIEWER_A = "INTERVIEWER_A"
    SUPERVISOR_B = "SUPERVISOR_B"
    EXAMINER_C = "EXAMINER_C"


class ReviewAction(StrEnum):
    """Actions an actor can submit, plus the audit-only payload edit."""

    APPROVE = "approve"
    REJECT = "reject"
    EDIT = "edit"


# --- Operational log enums ---


class LogLevel(StrEnum):
    """Operational log levels, lowest first."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        return _LEVEL_SEVERITY[self]


_LEVEL_SEVERITY: dict[LogLevel, int] = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 4,
}


class LogCategory(StrEnum):
    """Operational log categories."""

    API = "api"
    VALIDATION = "validation"
    WORKFLOW = "workflow"
    CRON = "cron"
    NOTIFICATION = "notification"
    SECURITY = "security"
    SYSTEM = "system"


# --- Base model ---


class ReviewBase(BaseModel):
    """Base model with common configuration for all workflow Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "ser_json_timedelta": "iso8601",
        "protected_namespaces": (),
    }
