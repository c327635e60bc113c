"""Import Orchestrator - Runs the submission import pipeline end to end.

Stages:
1. Parse the text into rows and check the required columns
2. Resolve every agent and supervisor code once, in chunks
3. Seed the duplicate set from submissions already stored for the form
4. Process rows batch by batch in input order and write each batch
5. Report progress after every batch and return the ImportResult

Row and batch problems are recorded on the result. Only pre-flight
validation, a failed lookup or cancellation end a run early, and even those
come back as a result rather than an exception.
"""

from __future__ import annotations

import asyncio
import csv
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..core.cancellation import CancellationToken
from ..core.constants import (
    COLUMN_CREATED_AT,
    COLUMN_LATITUDE,
    COLUMN_LONGITUDE,
    MESSAGE_CANCELLED,
    REQUIRED_COLUMNS,
)
from ..core.errors import CollaboratorError, ImportCancelledError, ImportValidationError
from ..core.interfaces import CodeLookup, ExistingKeyLookup, SubmissionWriter
from ..core.models import DuplicateRecord, ImportResult, MappedSubmission, PreviewData, RawRow, RowError
from ..core.options import ImportOptions
from ..core.run_context import RunContext, RunState
from ..parsing.field_normalizer import FieldNormalizer
from ..parsing.tabular_parser import parse_table
from ..processing.batch_writer import BatchOutcome, BatchWriter
from ..processing.duplicate_detector import DuplicateDetector
from ..processing.row_processor import RowProcessor, build_preview_row, row_number_for
from ..reporting.progress_reporter import ProgressCallback, ProgressReporter
from ..resolution.entity_resolver import EntityResolver

if TYPE_CHECKING:
    from pocketbase import PocketBase

logger = logging.getLogger(__name__)

EMPTY_FILE_MESSAGE = "CSV file is empty"

# Columns the pipeline reads directly rather than through the field mapping
_KNOWN_COLUMNS = REQUIRED_COLUMNS + (COLUMN_LATITUDE, COLUMN_LONGITUDE, COLUMN_CREATED_AT)


def validate_rows(rows: list[RawRow]) -> list[str]:
    """Pre-flight checks; returns every problem found (empty when valid)."""
    if not rows:
        return [EMPTY_FILE_MESSAGE]
    headers = rows[0].keys()
    return [f"Missing required column: {column}" for column in REQUIRED_COLUMNS if column not in headers]


def build_preview(
    text: str,
    options: ImportOptions | None = None,
    normalizer: FieldNormalizer | None = None,
) -> PreviewData:
    """Headers, the first few raw rows and their mapped form; no store access."""
    options = options or ImportOptions()
    normalizer = normalizer or FieldNormalizer()
    rows = parse_table(text, options.delimiter)
    preview_rows = rows[: options.preview_rows]
    headers = list(rows[0].keys()) if rows else []
    return PreviewData(
        headers=headers,
        rows=preview_rows,
        mapped_rows=[build_preview_row(row, normalizer) for row in preview_rows],
        unmapped_columns=normalizer.unmapped_columns(headers, known=_KNOWN_COLUMNS),
    )


@dataclass
class PreparedBatch:
    """Row outcomes of one batch, held until the batch's write is applied"""

    number: int
    row_count: int
    start_row: int
    submissions: list[MappedSubmission] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    duplicates: list[DuplicateRecord] = field(default_factory=list)

    def apply_row_outcomes(self, result: ImportResult) -> None:
        for error in self.errors:
            result.add_error(error.row, error.error, error.data)
        for duplicate in self.duplicates:
            result.add_duplicate(duplicate.row, duplicate.agent_code, duplicate.cycle)


class ImportOrchestrator:
    """Single entry point for previewing and importing a submission file"""

    def __init__(
        self,
        agent_lookup: CodeLookup,
        supervisor_lookup: CodeLookup,
        existing_lookup: ExistingKeyLookup,
        submission_writer: SubmissionWriter,
        options: ImportOptions | None = None,
        normalizer: FieldNormalizer | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            agent_lookup: Resolves agent/terminal codes
            supervisor_lookup: Resolves supervisor codes
            existing_lookup: Reports stored submissions for duplicate seeding
            submission_writer: Batch-inserts submissions
            options: Run tunables (defaults to schema defaults)
            normalizer: Column mapping and transforms
        """
        self.agent_lookup = agent_lookup
        self.supervisor_lookup = supervisor_lookup
        self.existing_lookup = existing_lookup
        self.submission_writer = submission_writer
        self.options = options or ImportOptions()
        self.normalizer = normalizer or FieldNormalizer()

    @classmethod
    def from_pocketbase(cls, pb: PocketBase, options: ImportOptions | None = None) -> ImportOrchestrator:
        """Build an orchestrator backed by the PocketBase repositories."""
        from ..data.repositories import CustomerRepository, SubmissionRepository, SupervisorRepository

        submissions = SubmissionRepository(pb)
        return cls(
            agent_lookup=CustomerRepository(pb),
            supervisor_lookup=SupervisorRepository(pb),
            existing_lookup=submissions,
            submission_writer=submissions,
            options=options,
        )

    def preview(self, text: str) -> PreviewData:
        """Parse and map the first few rows without touching the store."""
        return build_preview(text, self.options, self.normalizer)

    async def run(
        self,
        text: str,
        org_id: str,
        on_progress: ProgressCallback | None = None,
        cancellation: CancellationToken | None = None,
        form_id: str | None = None,
    ) -> ImportResult:
        """Import every row of the file.

        Args:
            text: Raw delimited file contents
            org_id: Tenant owning the agents and supervisors
            on_progress: Optional callback for progress updates
            cancellation: Token a caller can set to stop between batches
            form_id: Overrides the configured form for this run

        Returns:
            ImportResult; no pipeline exception escapes
        """
        options = self.options.with_overrides(form_id=form_id or None)
        context = RunContext(org_id=org_id, options=options, cancellation=cancellation or CancellationToken())

        context.advance(RunState.PARSING)
        try:
            rows = parse_table(text, options.delimiter)
            errors = validate_rows(rows)
            if errors:
                raise ImportValidationError(errors)
        except ImportValidationError as e:
            logger.warning(f"Import rejected: {e}")
            for message in e.errors:
                context.result.fail(message)
            context.advance(RunState.FAILED)
            return context.result
        except csv.Error as e:
            logger.warning(f"Import rejected, file could not be parsed: {e}")
            context.result.fail(f"Import failed: {e}")
            context.advance(RunState.FAILED)
            return context.result

        context.result.total_rows = len(rows)
        total_batches = -(-len(rows) // options.batch_size)
        reporter = ProgressReporter(on_progress, len(rows), total_batches)
        logger.info(f"Importing {len(rows)} rows in {total_batches} batches for form {options.form_id}")

        context.advance(RunState.VALIDATING)
        try:
            reporter.loading_identities(context.result)
            resolver = EntityResolver(
                self.agent_lookup,
                self.supervisor_lookup,
                chunk_size=options.lookup_chunk_size,
                timeout=options.request_timeout_seconds,
            )
            context.entities = await resolver.resolve(rows, org_id)

            reporter.checking_duplicates(context.result)
            duplicates = DuplicateDetector(
                self.existing_lookup,
                chunk_size=options.lookup_chunk_size,
                timeout=options.request_timeout_seconds,
            )
            await duplicates.seed(options.form_id, list(context.entities.agents.values()))
        except CollaboratorError as e:
            logger.error(f"Import aborted during lookups: {e}")
            context.result.fail(f"Import failed: {e}")
            context.advance(RunState.FAILED)
            return context.result

        context.advance(RunState.WRITING)
        processor = RowProcessor(context.entities, duplicates, self.normalizer, fallback_time=context.started_at)
        writer = BatchWriter(
            self.submission_writer,
            options.form_id,
            timeout=options.request_timeout_seconds,
            retry_per_row=options.retry_failed_batches_per_row,
        )

        try:
            await self._write_batches(rows, processor, writer, context, reporter)
        except ImportCancelledError as e:
            logger.info(f"Import cancelled after {reporter.processed_rows}/{len(rows)} rows: {e}")
            context.result.cancelled = True
            context.result.success = False
            context.advance(RunState.CANCELLED)
            reporter.stopped(MESSAGE_CANCELLED, context.result)
            return context.result

        context.advance(RunState.COMPLETE)
        reporter.complete(context.result)
        result = context.result
        logger.info(
            f"Import complete: {result.success_count} imported, {result.error_count} errors, "
            f"{result.skipped_count} skipped of {result.total_rows} rows"
        )
        return result

    async def _write_batches(
        self,
        rows: list[RawRow],
        processor: RowProcessor,
        writer: BatchWriter,
        context: RunContext,
        reporter: ProgressReporter,
    ) -> None:
        """Process and write batches, applying outcomes strictly in batch order.

        Rows are mapped sequentially so duplicate detection follows input
        order. Up to max_concurrent_batches writes run at once; the oldest is
        always awaited first.
        """
        batch_size = context.options.batch_size
        in_flight: deque[tuple[PreparedBatch, asyncio.Task[BatchOutcome]]] = deque()

        async def drain_oldest() -> None:
            prepared, task = in_flight.popleft()
            outcome = await task
            prepared.apply_row_outcomes(context.result)
            outcome.apply_to(context.result)
            reporter.batch_complete(prepared.number, prepared.row_count, context.result)

        try:
            for number, start in enumerate(range(0, len(rows), batch_size), start=1):
                context.cancellation.raise_if_cancelled()

                prepared = self._prepare_batch(rows[start : start + batch_size], start, number, processor)
                task = asyncio.create_task(writer.write(prepared.submissions, prepared.start_row))
                in_flight.append((prepared, task))

                while len(in_flight) >= context.options.max_concurrent_batches:
                    await drain_oldest()
        finally:
            while in_flight:
                await drain_oldest()

    def _prepare_batch(
        self, batch_rows: list[RawRow], start: int, number: int, processor: RowProcessor
    ) -> PreparedBatch:
        prepared = PreparedBatch(number=number, row_count=len(batch_rows), start_row=row_number_for(start))
        for offset, row in enumerate(batch_rows):
            outcome = processor.process(row, row_number_for(start + offset))
            if outcome.submission is not None:
                prepared.submissions.append(outcome.submission)
            elif outcome.duplicate is not None:
                prepared.duplicates.append(outcome.duplicate)
            elif outcome.error is not None:
                prepared.errors.append(outcome.error)
        return prepared
