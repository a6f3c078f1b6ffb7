"""Survey record models — the unit of work flowing through review."""

from datetime import datetime
from typing import Any

from pydantic import Field, model_validator

from src.models.common import (
    ReviewBase,
    ReviewRole,
    ReviewStatus,
    UTCTimestamp,
    UUIDv7,
)


class SurveyRecord(ReviewBase):
    """One imported survey response under review.

    ``assigned_role`` is None exactly when ``status`` is terminal.
    ``sampled`` is None until the first approve out of PENDING_A.
    """

    record_id: UUIDv7
    survey_id: str = Field(..., min_length=1, max_length=100)
    response_id: str = Field(..., min_length=1, max_length=100)
    status: ReviewStatus = ReviewStatus.PENDING_A
    assigned_role: ReviewRole | None = ReviewRole.INTERVIEWER_A
    assigned_actor: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    sampled: bool | None = None
    version: int = Field(default=1, ge=1)
    created_at: UTCTimestamp
    modified_at: UTCTimestamp

    @model_validator(mode="after")
    def _terminal_has_no_role(self) -> "SurveyRecord":
        if self.status.is_terminal and self.assigned_role is not None:
            msg = f"Terminal record {self.record_id} cannot be assigned to {self.assigned_role}."
            raise ValueError(msg)
        if not self.status.is_terminal and self.assigned_role is None:
            msg = f"Record {self.record_id} in {self.status} must have an assigned role."
            raise ValueError(msg)
        return self


class RecordFilter(ReviewBase):
    """Read-side query for the record list."""

    status: ReviewStatus | None = None
    role: ReviewRole | None = None
    survey_id: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    limit: int = Field(default=50, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _range_ordered(self) -> "RecordFilter":
        if (
            self.created_from is not None
            and self.created_to is not None
            and self.created_to < self.created_from
        ):
            msg = "created_to must be >= created_from"
            raise ValueError(msg)
        return self


class ImportedResponse(ReviewBase):
    """A raw response handed over by the survey import source."""

    response_id: str = Field(..., min_length=1, max_length=100)
    payload: dict[str, Any] = Field(default_factory=dict)


class ImportSummary(ReviewBase):
    """Outcome of importing a batch of responses for one survey."""

    survey_id: str
    created: int = 0
    skipped: int = 0
    record_ids: list[UUIDv7] = Field(default_factory=list)
