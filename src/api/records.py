"""FastAPI survey record endpoints.

POST /v1/records/import                 — import responses (dedup by survey/response id)
GET  /v1/records                        — list records (status, role, survey, date range)
GET  /v1/records/stats                  — counts per status and per role queue
GET  /v1/records/stats/activity         — transitions per day, last N days
POST /v1/records/bulk-actions           — approve/reject many records
GET  /v1/records/{record_id}            — get one record and the actions open on it
GET  /v1/records/{record_id}/history    — audit trail, oldest first
POST /v1/records/{record_id}/actions    — approve/reject one record
PUT  /v1/records/{record_id}/payload    — edit answers while under review

Error mapping: NOT_FOUND 404, UNAUTHORIZED 403, INVALID_TRANSITION 409,
CONFLICT 409 (client should refresh and retry), MISSING_NOTES 422.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError

from src.api.dependencies import (
    get_record_importer,
    get_workflow_engine,
    get_workflow_stats,
)
from src.models.audit import AuditEntry
from src.models.common import ReviewAction, ReviewRole, ReviewStatus
from src.models.record import ImportedResponse, ImportSummary, RecordFilter, SurveyRecord
from src.workflow.engine import ActionResult, WorkflowEngine
from src.workflow.errors import WorkflowError, WorkflowErrorKind
from src.workflow.importer import RecordImporter
from src.workflow.stats import DailyActivity, WorkflowSnapshot, WorkflowStats
from src.workflow.transitions import allowed_actions

router = APIRouter(prefix="/v1/records", tags=["records"])

_STATUS_CODES: dict[WorkflowErrorKind, int] = {
    WorkflowErrorKind.NOT_FOUND: 404,
    WorkflowErrorKind.UNAUTHORIZED: 403,
    WorkflowErrorKind.INVALID_TRANSITION: 409,
    WorkflowErrorKind.CONFLICT: 409,
    WorkflowErrorKind.MISSING_NOTES: 422,
}


def _http_error(exc: WorkflowError) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_CODES[exc.kind],
        detail={"error": exc.kind.value, "message": exc.message},
    )


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class ImportRequest(BaseModel):
    survey_id: str = Field(..., min_length=1, max_length=100)
    responses: list[ImportedResponse]


class ActionRequest(BaseModel):
    actor_id: str = Field(..., min_length=1)
    action: ReviewAction
    notes: str | None = None


class ActionResponse(BaseModel):
    record_id: str
    status: str


class BulkActionRequest(ActionRequest):
    record_ids: list[UUID] = Field(..., min_length=1)


class BulkActionResponse(BaseModel):
    results: list[ActionResult]
    succeeded: int
    failed: int


class RecordDetail(SurveyRecord):
    allowed_actions: list[ReviewAction] = Field(default_factory=list)


class EditPayloadRequest(BaseModel):
    actor_id: str = Field(..., min_length=1)
    payload: dict[str, Any]
    notes: str | None = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/import", status_code=201, response_model=ImportSummary)
async def import_records(
    body: ImportRequest,
    importer: RecordImporter = Depends(get_record_importer),
) -> ImportSummary:
    """Import survey responses into PENDING_A. Duplicates are skipped."""
    return await importer.import_batch(body.survey_id, body.responses)


@router.get("", response_model=list[SurveyRecord])
async def list_records(
    status: ReviewStatus | None = None,
    role: ReviewRole | None = None,
    survey_id: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    limit: int = Query(default=50, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    engine: WorkflowEngine = Depends(get_workflow_engine),
) -> list[SurveyRecord]:
    """List records, newest first."""
    try:
        filters = RecordFilter(
            status=status, role=role, survey_id=survey_id,
            created_from=created_from, created_to=created_to,
            limit=limit, offset=offset,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return await engine.list_records(filters)


@router.get("/stats", response_model=WorkflowSnapshot)
async def get_stats(
    stats: WorkflowStats = Depends(get_workflow_stats),
) -> WorkflowSnapshot:
    return await stats.snapshot()


@router.get("/stats/activity", response_model=list[DailyActivity])
async def get_activity(
    days: int = Query(default=30, ge=1, le=90),
    stats: WorkflowStats = Depends(get_workflow_stats),
) -> list[DailyActivity]:
    return await stats.daily_activity(days=days)


@router.post("/bulk-actions", response_model=BulkActionResponse)
async def bulk_action(
    body: BulkActionRequest,
    engine: WorkflowEngine = Depends(get_workflow_engine),
) -> BulkActionResponse:
    """Apply one action to many records. Partial failure is normal."""
    results = await engine.apply_bulk(body.record_ids, body.actor_id, body.action, body.notes)
    succeeded = sum(1 for r in results if r.ok)
    return BulkActionResponse(
        results=results,
        succeeded=succeeded,
        failed=len(results) - succeeded,
    )


@router.get("/{record_id}", response_model=RecordDetail)
async def get_record(
    record_id: UUID,
    engine: WorkflowEngine = Depends(get_workflow_engine),
) -> RecordDetail:
    """One record; ``allowed_actions`` is empty once it is finalized or rejected."""
    try:
        record = await engine.get_record(record_id)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return RecordDetail(**record.model_dump(), allowed_actions=allowed_actions(record.status))


@router.get("/{record_id}/history", response_model=list[AuditEntry])
async def get_history(
    record_id: UUID,
    engine: WorkflowEngine = Depends(get_workflow_engine),
) -> list[AuditEntry]:
    """Full audit trail of a record, oldest transition first."""
    try:
        history = await engine.get_history(record_id)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return await history.all()


@router.post("/{record_id}/actions", response_model=ActionResponse)
async def apply_action(
    record_id: UUID,
    body: ActionRequest,
    engine: WorkflowEngine = Depends(get_workflow_engine),
) -> ActionResponse:
    """Approve or reject a record on behalf of an actor."""
    try:
        status = await engine.apply_action(record_id, body.actor_id, body.action, body.notes)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return ActionResponse(record_id=str(record_id), status=status.value)


@router.put("/{record_id}/payload", response_model=SurveyRecord)
async def edit_payload(
    record_id: UUID,
    body: EditPayloadRequest,
    engine: WorkflowEngine = Depends(get_workflow_engine),
) -> SurveyRecord:
    try:
        return await engine.edit_payload(record_id, body.actor_id, body.payload, body.notes)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
