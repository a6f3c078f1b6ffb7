"""Audit trail entry — one immutable fact per workflow transition."""

from pydantic import Field

from src.models.common import (
    ActorId,
    ReviewAction,
    ReviewBase,
    ReviewRole,
    ReviewStatus,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)


class AuditEntry(ReviewBase, frozen=True):
    """Frozen record of who moved a record from one status to another."""

    entry_id: UUIDv7 = Field(default_factory=new_uuid7)
    record_id: UUIDv7
    actor_id: ActorId
    actor_role: ReviewRole
    from_status: ReviewStatus
    to_status: ReviewStatus
    action: ReviewAction
    notes: str = Field(default="", max_length=5000)
    timestamp: UTCTimestamp = Field(default_factory=utc_now)
