"""Review workflow engine.

Validates an actor's action against the transition table and the role
registry, decides sampling once per record, and applies the result as a
compare-and-swap on the record plus exactly one audit append, both in the
caller's transaction.

Check order for ``apply_action``:
1. record exists                          → NotFoundError
2. action defined for the current status  → InvalidTransitionError
3. actor's role owns the current status   → UnauthorizedError
4. notes present where required           → MissingNotesError
5. record unchanged since it was read     → ConflictError

Nothing is written unless every check passes, so a failed call leaves no
trace except the operational log entry.
"""

import logging
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from src.models.audit import AuditEntry
from src.models.common import (
    LogLevel,
    ReviewAction,
    ReviewBase,
    ReviewRole,
    ReviewStatus,
    utc_now,
)
from src.models.oplog import LogEntry
from src.models.record import RecordFilter, SurveyRecord
from src.oplog.sink import OperationalLogSink, make_entry
from src.repositories.audit import AuditHistory, AuditTrailRepository
from src.repositories.records import RecordRepository
from src.workflow.config import WorkflowConfig
from src.workflow.errors import (
    ConflictError,
    InvalidTransitionError,
    MissingNotesError,
    NotFoundError,
    UnauthorizedError,
    WorkflowError,
    WorkflowErrorKind,
)
from src.workflow.roles import RoleRegistry
from src.workflow.sampling import SamplingPolicy
from src.workflow.transitions import find_transition

logger = logging.getLogger(__name__)


class ActionResult(ReviewBase):
    """Per-record outcome of a bulk action."""

    record_id: UUID
    ok: bool
    status: ReviewStatus | None = None
    error: WorkflowErrorKind | None = None
    message: str | None = None

    @classmethod
    def success(cls, record_id: UUID, status: ReviewStatus) -> "ActionResult":
        return cls(record_id=record_id, ok=True, status=status)

    @classmethod
    def failure(cls, record_id: UUID, exc: WorkflowError) -> "ActionResult":
        return cls(record_id=record_id, ok=False, error=exc.kind, message=exc.message)


class WorkflowEngine:
    """The review state machine. The only writer of record status."""

    def __init__(
        self,
        *,
        records: RecordRepository,
        audit: AuditTrailRepository,
        roles: RoleRegistry,
        sampling: SamplingPolicy,
        config: WorkflowConfig | None = None,
        sink: OperationalLogSink | None = None,
    ) -> None:
        self._records = records
        self._audit = audit
        self._roles = roles
        self._sampling = sampling
        self._config = config or WorkflowConfig()
        self._sink = sink

    # ----- Commands -----

    async def apply_action(
        self,
        record_id: UUID,
        actor_id: str,
        action: ReviewAction | str,
        notes: str | None = None,
    ) -> ReviewStatus:
        """Apply one review action and return the record's new status."""
        try:
            return await self._apply(record_id, actor_id, action, notes)
        except WorkflowError as exc:
            await self._report_failure(exc, actor_id=actor_id, operation=str(action))
            raise

    async def apply_bulk(
        self,
        record_ids: Iterable[UUID],
        actor_id: str,
        action: ReviewAction | str,
        notes: str | None = None,
    ) -> list[ActionResult]:
        """Apply the same action to each record in turn.

        Failures are reported per record and never undo earlier successes.
        """
        results: list[ActionResult] = []
        for record_id in record_ids:
            try:
                status = await self.apply_action(record_id, actor_id, action, notes)
            except WorkflowError as exc:
                results.append(ActionResult.failure(record_id, exc))
            else:
                results.append(ActionResult.success(record_id, status))
        return results

    async def edit_payload(
        self,
        record_id: UUID,
        actor_id: str,
        payload: dict[str, Any],
        notes: str | None = None,
    ) -> SurveyRecord:
        """Replace the answer data of a record that is still under review."""
        try:
            return await self._edit(record_id, actor_id, payload, notes)
        except WorkflowError as exc:
            await self._report_failure(exc, actor_id=actor_id, operation=ReviewAction.EDIT)
            raise

    # ----- Queries -----

    async def get_record(self, record_id: UUID) -> SurveyRecord:
        record = await self._records.get(record_id)
        if record is None:
            msg = f"Record {record_id} not found."
            raise NotFoundError(msg, record_id=record_id)
        return record

    async def list_records(self, filters: RecordFilter | None = None) -> list[SurveyRecord]:
        return await self._records.list(filters)

    async def get_history(self, record_id: UUID) -> AuditHistory:
        await self.get_record(record_id)
        return self._audit.history(record_id)

    # ----- Internals -----

    async def _apply(
        self,
        record_id: UUID,
        actor_id: str,
        action: ReviewAction | str,
        notes: str | None,
    ) -> ReviewStatus:
        record = await self.get_record(record_id)
        review_action = _parse_action(action, record_id)

        transition = find_transition(record.status, review_action)
        if transition is None:
            msg = f"Cannot {review_action} a record in {record.status}."
            raise InvalidTransitionError(msg, record_id=record_id)

        role = await self._authorize(record, actor_id)

        notes = (notes or "").strip()
        notes_required = transition.notes_required or (
            review_action == ReviewAction.APPROVE and self._config.require_notes_on_approve
        )
        if notes_required and not notes:
            msg = f"{review_action} from {record.status} requires notes."
            raise MissingNotesError(msg, record_id=record_id)

        sampled = record.sampled
        if transition.needs_sampling and sampled is None:
            sampled = self._sampling.decide(record)
            logger.info(
                "Sampling decided for record %s: sampled=%s (rate=%.3f)",
                record_id, sampled, self._sampling.rate,
            )

        new_status = transition.resolve(sampled=sampled)
        timestamp = max(utc_now(), record.modified_at)
        updated = await self._records.update(
            record_id,
            expected_version=record.version,
            status=new_status,
            assigned_role=self._roles.authorized_role(new_status),
            assigned_actor=None,
            sampled=sampled,
            modified_at=timestamp,
        )
        if updated is None:
            msg = f"Record {record_id} was modified concurrently; refresh and retry."
            raise ConflictError(msg, record_id=record_id)

        await self._audit.append(AuditEntry(
            record_id=record_id,
            actor_id=actor_id,
            actor_role=role,
            from_status=record.status,
            to_status=new_status,
            action=review_action,
            notes=notes,
            timestamp=timestamp,
        ))

        logger.info(
            "Record %s: %s -> %s by %s (%s)",
            record_id, record.status, new_status, actor_id, review_action,
        )
        await self._emit(make_entry(
            LogLevel.INFO,
            f"{review_action} moved record from {record.status} to {new_status}",
            actor_id=actor_id,
            record_id=record_id,
            from_status=record.status,
            to_status=new_status,
            sampled=sampled,
        ))
        return new_status

    async def _edit(
        self,
        record_id: UUID,
        actor_id: str,
        payload: dict[str, Any],
        notes: str | None,
    ) -> SurveyRecord:
        record = await self.get_record(record_id)
        if record.status.is_terminal:
            msg = f"Record {record_id} is {record.status}; its payload is read-only."
            raise InvalidTransitionError(msg, record_id=record_id)

        role = await self._authorize(record, actor_id)

        timestamp = max(utc_now(), record.modified_at)
        updated = await self._records.update(
            record_id,
            expected_version=record.version,
            payload=payload,
            modified_at=timestamp,
        )
        if updated is None:
            msg = f"Record {record_id} was modified concurrently; refresh and retry."
            raise ConflictError(msg, record_id=record_id)

        await self._audit.append(AuditEntry(
            record_id=record_id,
            actor_id=actor_id,
            actor_role=role,
            from_status=record.status,
            to_status=record.status,
            action=ReviewAction.EDIT,
            notes=(notes or "").strip(),
            timestamp=timestamp,
        ))
        logger.info("Record %s: payload edited by %s", record_id, actor_id)
        await self._emit(make_entry(
            LogLevel.INFO,
            "Survey payload edited",
            actor_id=actor_id,
            record_id=record_id,
            status=record.status,
        ))
        return updated

    async def _authorize(self, record: SurveyRecord, actor_id: str) -> ReviewRole:
        role = await self._roles.role_of(actor_id)
        if role is None or not self._roles.can_act(role, record.status):
            msg = (
                f"Actor {actor_id} ({role or 'no role'}) cannot act on a record "
                f"in {record.status}."
            )
            raise UnauthorizedError(msg, record_id=record.record_id)
        if record.assigned_actor is not None and record.assigned_actor != actor_id:
            msg = f"Record {record.record_id} is assigned to another actor."
            raise UnauthorizedError(msg, record_id=record.record_id)
        return role

    async def _report_failure(
        self, exc: WorkflowError, *, actor_id: str, operation: str,
    ) -> None:
        level = LogLevel.WARNING if exc.kind == WorkflowErrorKind.CONFLICT else LogLevel.ERROR
        logger.warning("Workflow %s rejected (%s): %s", operation, exc.kind, exc.message)
        await self._emit(make_entry(
            level,
            exc.message,
            actor_id=actor_id,
            record_id=exc.record_id,
            operation=operation,
            error=exc.kind,
        ))

    async def _emit(self, entry: LogEntry) -> None:
        if self._sink is not None:
            await self._sink.emit(entry)


def _parse_action(action: ReviewAction | str, record_id: UUID) -> ReviewAction:
    try:
        parsed = ReviewAction(action)
    except ValueError:
        msg = f"Unknown action {action!r}."
        raise InvalidTransitionError(msg, record_id=record_id) from None
    if parsed == ReviewAction.EDIT:
        msg = "Payload edits go through edit_payload, not apply_action."
        raise InvalidTransitionError(msg, record_id=record_id)
    return parsed
