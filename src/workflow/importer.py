"""Import source contract — how new survey responses enter review.

Every imported response becomes a record in PENDING_A, owned by whichever
role the registry authorizes for that state. (survey_id, response_id) is the
dedup key: importing the same response twice returns the existing record
untouched, whatever state it has reached.
"""

import logging
from collections.abc import Iterable
from typing import Any

from src.models.common import LogCategory, LogLevel, ReviewStatus
from src.models.record import ImportedResponse, ImportSummary, SurveyRecord
from src.oplog.sink import OperationalLogSink, make_entry
from src.repositories.records import RecordRepository
from src.workflow.roles import RoleRegistry

logger = logging.getLogger(__name__)


class RecordImporter:
    def __init__(
        self,
        *,
        records: RecordRepository,
        roles: RoleRegistry,
        sink: OperationalLogSink | None = None,
    ) -> None:
        self._records = records
        self._roles = roles
        self._sink = sink

    async def import_response(
        self,
        survey_id: str,
        response_id: str,
        payload: dict[str, Any] | None = None,
    ) -> tuple[SurveyRecord, bool]:
        """Create a record for one response. Returns (record, created)."""
        existing = await self._records.get_by_source(survey_id, response_id)
        if existing is not None:
            logger.debug("Skipping duplicate response %s/%s", survey_id, response_id)
            return existing, False

        record = await self._records.create_if_absent(
            survey_id=survey_id,
            response_id=response_id,
            payload=payload,
            status=ReviewStatus.PENDING_A,
            assigned_role=self._roles.authorized_role(ReviewStatus.PENDING_A),
        )
        if record is None:
            # A concurrent import of the same response committed first.
            logger.debug("Lost import race for response %s/%s", survey_id, response_id)
            existing = await self._records.get_by_source(survey_id, response_id)
            return existing, False
        return record, True

    async def import_batch(
        self,
        survey_id: str,
        responses: Iterable[ImportedResponse],
    ) -> ImportSummary:
        summary = ImportSummary(survey_id=survey_id)
        for response in responses:
            record, created = await self.import_response(
                survey_id, response.response_id, response.payload,
            )
            if created:
                summary.created += 1
                summary.record_ids.append(record.record_id)
            else:
                summary.skipped += 1

        logger.info(
            "Imported survey %s: %d created, %d skipped",
            survey_id, summary.created, summary.skipped,
        )
        if self._sink is not None:
            await self._sink.emit(make_entry(
                LogLevel.INFO,
                f"Imported {summary.created} responses for survey {survey_id}",
                category=LogCategory.API,
                survey_id=survey_id,
                created=summary.created,
                skipped=summary.skipped,
            ))
        return summary
