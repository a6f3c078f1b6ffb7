"""Initial schema — survey records, audit trail, actor roles, operational logs.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- Records (optimistic version column) --
    op.create_table(
        "survey_records",
        sa.Column("record_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("survey_id", sa.String(100), nullable=False),
        sa.Column("response_id", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("assigned_role", sa.String(20), nullable=True),
        sa.Column("assigned_actor", sa.String(255), nullable=True),
        sa.Column("payload", JSONB, nullable=False),
        sa.Column("sampled", sa.Boolean, nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("modified_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("survey_id", "response_id", name="uq_survey_record_source"),
    )
    op.create_index("ix_survey_records_survey_id", "survey_records", ["survey_id"])
    op.create_index("ix_survey_records_status", "survey_records", ["status"])
    op.create_index("ix_survey_records_assigned_role", "survey_records", ["assigned_role"])

    # -- Audit (APPEND-ONLY) --
    op.create_table(
        "audit_entries",
        sa.Column("row_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("entry_id", UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("record_id", UUID(as_uuid=True), nullable=False),
        sa.Column("actor_id", sa.String(255), nullable=False),
        sa.Column("actor_role", sa.String(20), nullable=False),
        sa.Column("from_status", sa.String(20), nullable=False),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_entries_record_id", "audit_entries", ["record_id"])

    # -- Identity --
    op.create_table(
        "actor_roles",
        sa.Column("actor_id", sa.String(255), primary_key=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_actor_roles_role", "actor_roles", ["role"])

    # -- Operational log --
    op.create_table(
        "operational_logs",
        sa.Column("row_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("log_id", UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("level", sa.String(20), nullable=False),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("context", JSONB, nullable=False),
        sa.Column("actor_id", sa.String(255), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_operational_logs_level", "operational_logs", ["level"])
    op.create_index("ix_operational_logs_category", "operational_logs", ["category"])
    op.create_index("ix_operational_logs_timestamp", "operational_logs", ["timestamp"])


def downgrade() -> None:
    op.drop_table("operational_logs")
    op.drop_table("actor_roles")
    op.drop_table("audit_entries")
    op.drop_table("survey_records")
