"""Tests for the deterministic sampling policy."""

from datetime import timezone, datetime

import pytest
from uuid_extensions import uuid7

from src.models.record import SurveyRecord
from src.workflow.config import WorkflowConfig
from src.workflow.sampling import SamplingPolicy


def _record(record_id=None) -> SurveyRecord:
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return SurveyRecord(
        record_id=record_id or uuid7(),
        survey_id="S1",
        response_id="r1",
        created_at=now,
        modified_at=now,
    )


class TestSamplingPolicy:
    def test_same_record_same_decision(self) -> None:
        policy = SamplingPolicy(0.3)
        record = _record()
        first = policy.decide(record)
        assert all(policy.decide(record) is first for _ in range(10))

    def test_decision_independent_of_evaluation_order(self) -> None:
        policy = SamplingPolicy(0.5)
        ids = [uuid7() for _ in range(200)]
        forward = {i: policy.decide(_record(i)) for i in ids}
        backward = {i: policy.decide(_record(i)) for i in reversed(ids)}
        assert forward == backward

    def test_long_run_frequency_near_rate(self) -> None:
        policy = SamplingPolicy(0.3)
        n = 100_000
        hits = sum(policy.score(uuid7()) < 0.3 for _ in range(n))
        assert abs(hits / n - 0.3) <= 0.02

    def test_rate_zero_never_samples(self) -> None:
        policy = SamplingPolicy(0.0)
        assert not any(policy.decide(_record()) for _ in range(500))

    def test_rate_one_always_samples(self) -> None:
        policy = SamplingPolicy(1.0)
        assert all(policy.decide(_record()) for _ in range(500))

    def test_score_in_unit_interval(self) -> None:
        policy = SamplingPolicy(0.3)
        for _ in range(1000):
            assert 0.0 <= policy.score(uuid7()) < 1.0

    def test_salt_changes_scores(self) -> None:
        rid = uuid7()
        assert SamplingPolicy(0.3).score(rid) != SamplingPolicy(0.3, salt="wave-2").score(rid)

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_rate_out_of_range(self, rate: float) -> None:
        with pytest.raises(ValueError, match="within"):
            SamplingPolicy(rate)

    def test_from_config(self) -> None:
        policy = SamplingPolicy.from_config(WorkflowConfig(sampling_rate=0.7, sampling_salt="x"))
        assert policy.rate == 0.7
        assert policy.score(_record().record_id) >= 0.0
