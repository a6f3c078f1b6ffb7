"""Sampling policy — does a record need review beyond Interviewer-A?

A record's identifier (plus an optional salt) is hashed with SHA-256; the
first 8 bytes, read as an unsigned integer and divided by 2**64, give a
uniform value in [0, 1). The record is sampled when that value falls
below the configured rate. No random state: the same record and rate
always give the same answer, whatever order records are evaluated in.
"""

import hashlib
from uuid import UUID

from src.models.record import SurveyRecord
from src.workflow.config import WorkflowConfig

_HASH_SPACE = float(2**64)


class SamplingPolicy:
    """Deterministic hash-based selector with long-run frequency ≈ rate."""

    def __init__(self, rate: float, *, salt: str = "") -> None:
        if not 0.0 <= rate <= 1.0:
            msg = f"Sampling rate must be within [0, 1], got {rate}."
            raise ValueError(msg)
        self._rate = rate
        self._salt = salt

    @classmethod
    def from_config(cls, config: WorkflowConfig) -> "SamplingPolicy":
        return cls(config.sampling_rate, salt=config.sampling_salt)

    @property
    def rate(self) -> float:
        return self._rate

    def score(self, record_id: UUID) -> float:
        """Stable pseudo-random value in [0, 1) for ``record_id``."""
        digest = hashlib.sha256(f"{self._salt}{record_id}".encode()).digest()
        return int.from_bytes(digest[:8], "big") / _HASH_SPACE

    def decide(self, record: SurveyRecord) -> bool:
        """True when the record must go on to Supervisor-B."""
        return self.score(record.record_id) < self._rate
