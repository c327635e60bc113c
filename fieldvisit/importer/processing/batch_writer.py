"""BatchWriter - Persists one batch of submissions and attributes failures.

A failed batch never aborts the run. By default the whole batch is recorded
as a single error entry at the batch's first row, counting every record in
it; with per-row retry enabled the records are re-sent one at a time so each
failure lands on its own row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fieldvisit.logging_config import log_context

from ..core.errors import CollaboratorError
from ..core.interfaces import SubmissionWriter
from ..core.models import ImportResult, MappedSubmission, RowError
from ..data.store_calls import call_store

logger = logging.getLogger(__name__)


@dataclass
class BatchOutcome:
    """What happened to the submissions of one batch"""

    inserted: int = 0
    failed: int = 0
    errors: list[RowError] = field(default_factory=list)

    def apply_to(self, result: ImportResult) -> None:
        result.success_count += self.inserted
        result.errors.extend(self.errors)
        result.error_count += self.failed


class BatchWriter:
    """Writes batches through a SubmissionWriter"""

    def __init__(
        self,
        writer: SubmissionWriter,
        form_id: str,
        timeout: float = 30.0,
        retry_per_row: bool = False,
    ):
        """Initialize the batch writer.

        Args:
            writer: Store writer for form submissions
            form_id: Form the submissions belong to
            timeout: Seconds allowed per insert call
            retry_per_row: Re-send a failed batch one record at a time
        """
        self.writer = writer
        self.form_id = form_id
        self.timeout = timeout
        self.retry_per_row = retry_per_row

    async def write(self, submissions: list[MappedSubmission], start_row: int) -> BatchOutcome:
        """Insert a batch, converting failures into error entries.

        Args:
            submissions: Accepted submissions of this batch, in row order
            start_row: File row number of the batch's first input row

        Returns:
            BatchOutcome; never raises for store failures
        """
        if not submissions:
            return BatchOutcome()

        with log_context(batch=f"row{start_row}"):
            try:
                await self._insert(submissions)
                logger.debug(f"Inserted {len(submissions)} records")
                return BatchOutcome(inserted=len(submissions))
            except CollaboratorError as e:
                logger.error(f"Batch failed ({len(submissions)} records): {e}")
                if self.retry_per_row:
                    return await self._retry_individually(submissions)
                return BatchOutcome(
                    failed=len(submissions),
                    errors=[RowError(row=start_row, error=f"Batch insert failed: {e}")],
                )

    async def _insert(self, submissions: list[MappedSubmission]) -> None:
        await call_store(
            self.writer.insert_batch, self.form_id, submissions, timeout=self.timeout, operation="Batch insert"
        )

    async def _retry_individually(self, submissions: list[MappedSubmission]) -> BatchOutcome:
        outcome = BatchOutcome()
        for submission in submissions:
            try:
                await self._insert([submission])
                outcome.inserted += 1
            except CollaboratorError as e:
                outcome.failed += 1
                outcome.errors.append(
                    RowError(
                        row=submission.row_number,
                        error=f"Insert failed: {e}",
                        data={"agentCode": submission.entity_code, "cycle": submission.cycle_number},
                    )
                )
        logger.info(f"Per-row retry recovered {outcome.inserted}/{len(submissions)} records")
        return outcome
