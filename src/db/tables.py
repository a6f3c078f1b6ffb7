"""SQLAlchemy ORM table models for the survey review service.

Uses FlexJSON (JSONB on Postgres, JSON on SQLite) for survey payloads and
log context.

Categories:
- OPERATIONAL: SurveyRecord (status/payload updates through the engine only,
               guarded by the ``version`` column), ActorRole
- APPEND-ONLY: AuditEntry (never updated or deleted; surrogate PK keeps
               insertion order), OperationalLog (pruned by retention only)
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from src.db.session import Base

# JSONB on PostgreSQL, plain JSON on SQLite (for tests)
FlexJSON = JSONB().with_variant(JSON(), "sqlite")


# ---------------------------------------------------------------------------
# Records — OPERATIONAL (optimistic version column)
# ---------------------------------------------------------------------------


class SurveyRecordRow(Base):
    """One imported survey response and its current review state."""

    __tablename__ = "survey_records"
    __table_args__ = (
        UniqueConstraint("survey_id", "response_id", name="uq_survey_record_source"),
    )

    record_id: Mapped[UUID] = mapped_column(primary_key=True)
    survey_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    response_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    assigned_role: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    assigned_actor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payload = mapped_column(FlexJSON, nullable=False)
    sampled: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    modified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Audit — APPEND-ONLY (surrogate PK)
# ---------------------------------------------------------------------------


class AuditEntryRow(Base):
    """One workflow transition. No code path updates or deletes these rows."""

    __tablename__ = "audit_entries"

    row_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[UUID] = mapped_column(unique=True, nullable=False)
    record_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_role: Mapped[str] = mapped_column(String(20), nullable=False)
    from_status: Mapped[str] = mapped_column(String(20), nullable=False)
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class ActorRoleRow(Base):
    """Workflow role held by an actor. At most one row per actor."""

    __tablename__ = "actor_roles"

    actor_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Operational log
# ---------------------------------------------------------------------------


class OperationalLogRow(Base):
    __tablename__ = "operational_logs"

    row_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    log_id: Mapped[UUID] = mapped_column(unique=True, nullable=False)
    level: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    context = mapped_column(FlexJSON, nullable=False)
    actor_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True,
    )
