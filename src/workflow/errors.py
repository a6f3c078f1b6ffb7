"""Workflow error kinds.

Every error is recoverable by the caller: refetch and retry on CONFLICT,
correct the input otherwise. None of them is fatal to the process.
"""

from enum import StrEnum
from uuid import UUID


class WorkflowErrorKind(StrEnum):
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    MISSING_NOTES = "MISSING_NOTES"
    CONFLICT = "CONFLICT"


class WorkflowError(Exception):
    """Base class for rejected workflow operations."""

    kind: WorkflowErrorKind

    def __init__(self, message: str, *, record_id: UUID | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.record_id = record_id


class NotFoundError(WorkflowError):
    kind = WorkflowErrorKind.NOT_FOUND


class UnauthorizedError(WorkflowError):
    kind = WorkflowErrorKind.UNAUTHORIZED


class InvalidTransitionError(WorkflowError):
    kind = WorkflowErrorKind.INVALID_TRANSITION


class MissingNotesError(WorkflowError):
    kind = WorkflowErrorKind.MISSING_NOTES


class ConflictError(WorkflowError):
    kind = WorkflowErrorKind.CONFLICT
