"""Tests for WorkflowConfig and its construction from settings."""

import pytest
from pydantic import ValidationError

from src.config.settings import Settings
from src.models.common import LogLevel, ReviewRole, ReviewStatus
from src.workflow.config import WorkflowConfig, get_workflow_config


class TestWorkflowConfig:
    def test_defaults(self) -> None:
        config = WorkflowConfig()
        assert config.sampling_rate == 0.3
        assert config.state_role_overrides == {}
        assert config.require_notes_on_approve is False
        assert config.oplog_level == LogLevel.WARNING

    def test_frozen(self) -> None:
        config = WorkflowConfig()
        with pytest.raises(ValidationError):
            config.sampling_rate = 0.5  # type: ignore[misc]

    @pytest.mark.parametrize("rate", [-0.01, 1.01])
    def test_rate_bounds(self, rate: float) -> None:
        with pytest.raises(ValidationError):
            WorkflowConfig(sampling_rate=rate)

    def test_from_settings(self) -> None:
        settings = Settings(
            SAMPLING_RATE=0.5,
            SAMPLING_SALT="wave-2",
            STATE_ROLE_OVERRIDES={"PENDING_C": "SUPERVISOR_B"},
            REQUIRE_NOTES_ON_APPROVE=True,
            OPLOG_LEVEL="INFO",
            OPLOG_RETENTION_DAYS=7,
            OPLOG_MAX_ENTRIES=50,
        )
        config = WorkflowConfig.from_settings(settings)
        assert config.sampling_rate == 0.5
        assert config.sampling_salt == "wave-2"
        assert config.state_role_overrides == {ReviewStatus.PENDING_C: ReviewRole.SUPERVISOR_B}
        assert config.require_notes_on_approve is True
        assert config.oplog_level == LogLevel.INFO
        assert config.oplog_retention_days == 7
        assert config.oplog_max_entries == 50


class TestSettingsValidation:
    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(STATE_ROLE_OVERRIDES={"PENDING_Z": "SUPERVISOR_B"})

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(STATE_ROLE_OVERRIDES={"PENDING_B": "MANAGER"})

    def test_terminal_override_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Terminal states"):
            Settings(STATE_ROLE_OVERRIDES={"FINALIZED": "EXAMINER_C"})

    def test_unknown_oplog_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(OPLOG_LEVEL="loud")

    @pytest.mark.parametrize("raw", ["error", "ERROR", "Error"])
    def test_oplog_level_case_insensitive(self, raw: str) -> None:
        assert Settings(OPLOG_LEVEL=raw).OPLOG_LEVEL == LogLevel.ERROR

    def test_bad_environment_value_fails_at_load(self, monkeypatch) -> None:
        monkeypatch.setenv("STATE_ROLE_OVERRIDES", '{"PENDING_B": "NOBODY"}')
        with pytest.raises(ValidationError):
            get_workflow_config()


class TestReload:
    def test_environment_change_takes_effect(self, monkeypatch) -> None:
        monkeypatch.setenv("SAMPLING_RATE", "0.1")
        assert get_workflow_config().sampling_rate == 0.1
        monkeypatch.setenv("SAMPLING_RATE", "0.9")
        assert get_workflow_config().sampling_rate == 0.9

    def test_overrides_parsed_from_json(self, monkeypatch) -> None:
        monkeypatch.setenv("STATE_ROLE_OVERRIDES", '{"PENDING_B": "EXAMINER_C"}')
        config = get_workflow_config()
        assert config.state_role_overrides == {ReviewStatus.PENDING_B: ReviewRole.EXAMINER_C}
