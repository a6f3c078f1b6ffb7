"""FastAPI operational log endpoints.

GET    /v1/logs        — filtered, paginated log entries
GET    /v1/logs/stats  — totals per level and category, errors in the last 24h
DELETE /v1/logs        — clear by level/category/age
POST   /v1/logs/prune  — apply the configured retention and size cap
"""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ValidationError

from src.api.dependencies import get_oplog_repo
from src.models.common import LogCategory, LogLevel
from src.models.oplog import LogEntry, LogQuery, LogStats
from src.repositories.oplog import OperationalLogRepository
from src.workflow.config import WorkflowConfig, get_workflow_config

router = APIRouter(prefix="/v1/logs", tags=["logs"])


class DeletedResponse(BaseModel):
    deleted: int


@router.get("", response_model=list[LogEntry])
async def query_logs(
    level: LogLevel | None = None,
    category: LogCategory | None = None,
    actor_id: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = Query(default=50, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    order: Literal["ASC", "DESC"] = "DESC",
    repo: OperationalLogRepository = Depends(get_oplog_repo),
) -> list[LogEntry]:
    try:
        query = LogQuery(
            level=level, category=category, actor_id=actor_id,
            date_from=date_from, date_to=date_to,
            limit=limit, offset=offset, order=order,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return await repo.query(query)


@router.get("/stats", response_model=LogStats)
async def log_stats(
    repo: OperationalLogRepository = Depends(get_oplog_repo),
) -> LogStats:
    return await repo.stats()


@router.delete("", response_model=DeletedResponse)
async def clear_logs(
    level: LogLevel | None = None,
    category: LogCategory | None = None,
    older_than_days: int = Query(default=0, ge=0),
    repo: OperationalLogRepository = Depends(get_oplog_repo),
) -> DeletedResponse:
    """Delete matching entries. With no filters every entry is removed."""
    deleted = await repo.clear(level=level, category=category, older_than_days=older_than_days)
    return DeletedResponse(deleted=deleted)


@router.post("/prune", response_model=DeletedResponse)
async def prune_logs(
    repo: OperationalLogRepository = Depends(get_oplog_repo),
    config: WorkflowConfig = Depends(get_workflow_config),
) -> DeletedResponse:
    deleted = await repo.prune(
        retention_days=config.oplog_retention_days,
        max_entries=config.oplog_max_entries,
    )
    return DeletedResponse(deleted=deleted)
