"""FastAPI dependency injection factories for repositories and the engine.

Each repository factory takes AsyncSession via Depends(get_async_session);
FastAPI caches the session per request, so the engine's record update and
audit append share one Unit-of-Work. API endpoints use these via Depends().
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import async_session_factory, get_async_session, on_request_end
from src.oplog.sink import DatabaseLogSink, DeferredLogSink, OperationalLogSink
from src.repositories.actors import ActorRoleRepository
from src.repositories.audit import AuditTrailRepository
from src.repositories.oplog import OperationalLogRepository
from src.repositories.records import RecordRepository
from src.workflow.config import WorkflowConfig, get_workflow_config
from src.workflow.engine import WorkflowEngine
from src.workflow.importer import RecordImporter
from src.workflow.roles import RoleRegistry
from src.workflow.sampling import SamplingPolicy
from src.workflow.stats import WorkflowStats

# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


async def get_record_repo(
    session: AsyncSession = Depends(get_async_session),
) -> RecordRepository:
    return RecordRepository(session)


async def get_audit_repo(
    session: AsyncSession = Depends(get_async_session),
) -> AuditTrailRepository:
    return AuditTrailRepository(session)


async def get_actor_role_repo(
    session: AsyncSession = Depends(get_async_session),
) -> ActorRoleRepository:
    return ActorRoleRepository(session)


async def get_oplog_repo(
    session: AsyncSession = Depends(get_async_session),
) -> OperationalLogRepository:
    return OperationalLogRepository(session)


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


async def get_log_sink(
    session: AsyncSession = Depends(get_async_session),
    config: WorkflowConfig = Depends(get_workflow_config),
) -> OperationalLogSink:
    """Entries reach the table only after the request transaction ends."""
    sink = DeferredLogSink(DatabaseLogSink(async_session_factory, min_level=config.oplog_level))
    on_request_end(session, sink.flush)
    return sink


async def get_role_registry(
    actors: ActorRoleRepository = Depends(get_actor_role_repo),
    config: WorkflowConfig = Depends(get_workflow_config),
) -> RoleRegistry:
    return RoleRegistry(actors, config)


async def get_workflow_engine(
    records: RecordRepository = Depends(get_record_repo),
    audit: AuditTrailRepository = Depends(get_audit_repo),
    roles: RoleRegistry = Depends(get_role_registry),
    config: WorkflowConfig = Depends(get_workflow_config),
    sink: OperationalLogSink = Depends(get_log_sink),
) -> WorkflowEngine:
    return WorkflowEngine(
        records=records,
        audit=audit,
        roles=roles,
        sampling=SamplingPolicy.from_config(config),
        config=config,
        sink=sink,
    )


async def get_record_importer(
    records: RecordRepository = Depends(get_record_repo),
    roles: RoleRegistry = Depends(get_role_registry),
    sink: OperationalLogSink = Depends(get_log_sink),
) -> RecordImporter:
    return RecordImporter(records=records, roles=roles, sink=sink)


async def get_workflow_stats(
    records: RecordRepository = Depends(get_record_repo),
    audit: AuditTrailRepository = Depends(get_audit_repo),
    roles: RoleRegistry = Depends(get_role_registry),
) -> WorkflowStats:
    return WorkflowStats(records, audit, roles)
