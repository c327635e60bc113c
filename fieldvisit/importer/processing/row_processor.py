"""RowProcessor - Turns one spreadsheet row into a submission or a row-level outcome."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.constants import (
    COLUMN_APPROVED,
    COLUMN_CREATED_AT,
    COLUMN_CYCLE,
    COLUMN_ENTITY_CODE,
    COLUMN_LATITUDE,
    COLUMN_LONGITUDE,
    COLUMN_SUBMITTED_ON,
    COLUMN_SUPERVISOR_CODE,
    DEFAULT_CYCLE,
    STATUS_APPROVED,
    STATUS_PENDING,
)
from ..core.models import (
    DuplicateRecord,
    EntityCache,
    Geolocation,
    MappedSubmission,
    PreviewRow,
    RawRow,
    RowError,
)
from ..parsing.field_normalizer import FieldNormalizer
from ..parsing.value_transforms import is_affirmative_flag, parse_coordinate, parse_cycle, parse_timestamp
from .duplicate_detector import DuplicateDetector

logger = logging.getLogger(__name__)

MISSING_CODES_MESSAGE = "Missing Terminal ID or Emp. code"


def row_number_for(index: int) -> int:
    """File line number of the data row at a 0-based index (header is line 1)."""
    return index + 2


def status_for(row: RawRow) -> str:
    return STATUS_APPROVED if is_affirmative_flag(row.get(COLUMN_APPROVED)) else STATUS_PENDING


def geolocation_for(row: RawRow) -> Geolocation | None:
    """Both coordinates must parse; a lone latitude or longitude is dropped."""
    latitude = parse_coordinate(row.get(COLUMN_LATITUDE))
    longitude = parse_coordinate(row.get(COLUMN_LONGITUDE))
    if latitude is None or longitude is None:
        return None
    return Geolocation(latitude=latitude, longitude=longitude)


@dataclass
class RowOutcome:
    """Exactly one of submission, error or duplicate is set"""

    submission: MappedSubmission | None = None
    error: RowError | None = None
    duplicate: DuplicateRecord | None = None


class RowProcessor:
    """Maps rows against the run's entity cache and duplicate set.

    Rows must be processed in input order: the first row for a visit claims
    its duplicate key and later rows for the same visit are skipped.
    """

    def __init__(
        self,
        entities: EntityCache,
        duplicates: DuplicateDetector,
        normalizer: FieldNormalizer | None = None,
        fallback_time: datetime | None = None,
    ):
        """Initialize the processor.

        Args:
            entities: Resolved code -> id maps for this run
            duplicates: Live duplicate set, already seeded from the store
            normalizer: Field normalizer (defaults to the supervision visit form)
            fallback_time: Submission time for rows with no usable timestamp
        """
        self.entities = entities
        self.duplicates = duplicates
        self.normalizer = normalizer or FieldNormalizer()
        self.fallback_time = fallback_time

    def process(self, row: RawRow, row_number: int) -> RowOutcome:
        """Process one row; never raises for row-level problems."""
        try:
            return self._process(row, row_number)
        except Exception as e:
            logger.warning(f"Row {row_number} failed: {e}")
            return RowOutcome(error=RowError(row=row_number, error=str(e) or e.__class__.__name__, data=dict(row)))

    def _process(self, row: RawRow, row_number: int) -> RowOutcome:
        agent_code = row.get(COLUMN_ENTITY_CODE, "")
        supervisor_code = row.get(COLUMN_SUPERVISOR_CODE, "")

        if not agent_code or not supervisor_code:
            data: dict[str, Any] = {"agentCode": agent_code, "supervisorCode": supervisor_code}
            return RowOutcome(error=RowError(row=row_number, error=MISSING_CODES_MESSAGE, data=data))

        agent_id = self.entities.agent_id(agent_code)
        if not agent_id:
            message = f"Agent not found for code: {agent_code}"
            return RowOutcome(error=RowError(row=row_number, error=message, data={"agentCode": agent_code}))

        review_notes = []
        supervisor_id = self.entities.supervisor_id(supervisor_code)
        if not supervisor_id:
            review_notes.append(f"Missing mapping for supervisor code: {supervisor_code}")

        cycle_number = parse_cycle(row.get(COLUMN_CYCLE), DEFAULT_CYCLE)
        submitted_at = self._submitted_at(row)

        submission = MappedSubmission(
            row_number=row_number,
            entity_code=agent_code,
            entity_id=agent_id,
            cycle_number=cycle_number,
            supervisor_code=supervisor_code,
            supervisor_id=supervisor_id,
            submitted_at=submitted_at,
            submission_data=self.normalizer.build_submission_data(row),
            status=status_for(row),
            geolocation=geolocation_for(row),
            review_notes=review_notes,
        )

        if self.duplicates.check_and_add(submission.duplicate_key):
            return RowOutcome(duplicate=DuplicateRecord(row=row_number, agent_code=agent_code, cycle=cycle_number))
        return RowOutcome(submission=submission)

    def _submitted_at(self, row: RawRow) -> datetime:
        parsed = parse_timestamp(row.get(COLUMN_SUBMITTED_ON)) or parse_timestamp(row.get(COLUMN_CREATED_AT))
        if parsed is not None:
            return parsed
        if self.fallback_time is None:
            raise ValueError(f"Unparseable submission date: {row.get(COLUMN_SUBMITTED_ON)!r}")
        return self.fallback_time


def build_preview_row(row: RawRow, normalizer: FieldNormalizer) -> PreviewRow:
    """Mapped view of a row without any store lookups."""
    return PreviewRow(
        agent_code=row.get(COLUMN_ENTITY_CODE, ""),
        cycle_number=parse_cycle(row.get(COLUMN_CYCLE), DEFAULT_CYCLE),
        supervisor_code=row.get(COLUMN_SUPERVISOR_CODE, ""),
        submission_data=normalizer.build_submission_data(row),
        status=status_for(row),
    )
