"""Shared pytest fixtures for the survey review test suite.

Provides:
- db_engine: in-memory SQLite async engine with all tables
- db_session: SAVEPOINT-isolated async session (app commits don't leak)
- log_sink: in-memory operational log sink capturing every entry
- seeded_actors: one actor per workflow role, plus an actor with no role
- make_engine: WorkflowEngine factory over db_session with a chosen sampling rate
- client: AsyncClient with dependency overrides for DB-backed testing
- file_session_factory: sessions over a SQLite file, for tests that need
  separate connections and real commits
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.api.dependencies import get_log_sink
from src.db.session import Base, get_async_session
import src.db.tables  # noqa: F401 — register ORM models on Base.metadata
from src.models.common import ReviewRole
from src.models.oplog import LogEntry
from src.repositories.actors import ActorRoleRepository
from src.repositories.audit import AuditTrailRepository
from src.repositories.records import RecordRepository
from src.workflow.config import WorkflowConfig, get_workflow_config
from src.workflow.engine import WorkflowEngine
from src.workflow.roles import RoleRegistry
from src.workflow.sampling import SamplingPolicy

ACTORS: dict[str, ReviewRole] = {
    "enum-01": ReviewRole.INTERVIEWER_A,
    "sup-01": ReviewRole.SUPERVISOR_B,
    "exam-01": ReviewRole.EXAMINER_C,
}


class CollectingSink:
    """Operational log sink that keeps entries in memory."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    async def emit(self, entry: LogEntry) -> None:
        self.entries.append(entry)


@pytest.fixture
def anyio_backend() -> str:
    """The async stack (SQLAlchemy asyncio, aiosqlite) is asyncio-only."""
    return "asyncio"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with all tables."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Provide a SAVEPOINT-isolated session.

    The outer transaction is never committed — it rolls back at teardown.
    Application code calling session.commit() triggers a SAVEPOINT release,
    which is then restarted so subsequent operations stay in the same
    outer transaction.
    """
    async with db_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)

        nested = await conn.begin_nested()

        @event.listens_for(session.sync_session, "after_transaction_end")
        def restart_savepoint(sync_session, transaction):  # noqa: ARG001
            nonlocal nested
            if transaction.nested and not transaction._parent.nested:
                nested = conn.sync_connection.begin_nested()

        yield session

        await session.close()
        await trans.rollback()


@pytest.fixture
def log_sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
async def seeded_actors(db_session: AsyncSession) -> dict[str, ReviewRole]:
    repo = ActorRoleRepository(db_session)
    for actor_id, role in ACTORS.items():
        await repo.assign(actor_id, role)
    return dict(ACTORS)


@pytest.fixture
def make_engine(db_session: AsyncSession, seeded_actors, log_sink: CollectingSink):
    """Build a WorkflowEngine over the test session.

    ``sampling_rate`` 1.0 sends every record to Supervisor-B, 0.0 none.
    """

    def _make(
        sampling_rate: float = 0.0,
        config: WorkflowConfig | None = None,
    ) -> WorkflowEngine:
        config = config or WorkflowConfig(sampling_rate=sampling_rate)
        return WorkflowEngine(
            records=RecordRepository(db_session),
            audit=AuditTrailRepository(db_session),
            roles=RoleRegistry(ActorRoleRepository(db_session), config),
            sampling=SamplingPolicy(sampling_rate, salt=config.sampling_salt),
            config=config,
            sink=log_sink,
        )

    return _make


@pytest.fixture
def api_config() -> WorkflowConfig:
    """Config used by the API client; every approved record is sampled."""
    return WorkflowConfig(sampling_rate=1.0)


@pytest.fixture
async def client(db_session, seeded_actors, log_sink, api_config):
    """AsyncClient with the session, config and log sink overridden."""
    from src.api.main import app

    async def _override_session():
        yield db_session

    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[get_workflow_config] = lambda: api_config
    app.dependency_overrides[get_log_sink] = lambda: log_sink

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def file_session_factory(tmp_path):
    """Session maker over a SQLite file with tables and ``ACTORS`` committed.

    Every session gets its own connection, so writers contend for the
    database lock the way concurrent requests do.
    """
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'review.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(bind=eng, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        repo = ActorRoleRepository(session)
        for actor_id, role in ACTORS.items():
            await repo.assign(actor_id, role)
        await session.commit()
    yield factory
    await eng.dispose()
