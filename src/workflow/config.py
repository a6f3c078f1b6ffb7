"""Workflow configuration injected into the engine and its policies.

Built from Settings on every call to get_workflow_config(), so a changed
environment or .env file takes effect on the next request without a
restart. Components never read settings themselves.
"""

from __future__ import annotations

from pydantic import Field, model_validator

from src.config.settings import Settings, get_settings
from src.models.common import LogLevel, ReviewBase, ReviewRole, ReviewStatus


class WorkflowConfig(ReviewBase, frozen=True):
    """Immutable knobs for sampling, authorization and the log sink."""

    sampling_rate: float = Field(default=0.3, ge=0.0, le=1.0)
    sampling_salt: str = ""
    state_role_overrides: dict[ReviewStatus, ReviewRole] = Field(default_factory=dict)
    require_notes_on_approve: bool = False
    oplog_level: LogLevel = LogLevel.WARNING
    oplog_retention_days: int = Field(default=30, ge=1)
    oplog_max_entries: int = Field(default=1000, ge=1)

    @model_validator(mode="after")
    def _overrides_target_open_states(self) -> WorkflowConfig:
        terminal = sorted(s.value for s in self.state_role_overrides if s.is_terminal)
        if terminal:
            msg = f"Terminal states cannot be assigned a role: {terminal}."
            raise ValueError(msg)
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> WorkflowConfig:
        return cls(
            sampling_rate=settings.SAMPLING_RATE,
            sampling_salt=settings.SAMPLING_SALT,
            state_role_overrides=dict(settings.STATE_ROLE_OVERRIDES),
            require_notes_on_approve=settings.REQUIRE_NOTES_ON_APPROVE,
            oplog_level=settings.OPLOG_LEVEL,
            oplog_retention_days=settings.OPLOG_RETENTION_DAYS,
            oplog_max_entries=settings.OPLOG_MAX_ENTRIES,
        )


def get_workflow_config() -> WorkflowConfig:
    """Re-read settings and derive a fresh workflow config."""
    return WorkflowConfig.from_settings(get_settings())
