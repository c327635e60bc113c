"""ProgressReporter - Pushes progress snapshots to an optional callback."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from ..core.constants import (
    MESSAGE_CHECKING_DUPLICATES,
    MESSAGE_COMPLETE,
    MESSAGE_LOADING_IDENTITIES,
    PROGRESS_CHECKING_DUPLICATES,
    PROGRESS_COMPLETE,
    PROGRESS_LOADING_IDENTITIES,
    PROGRESS_WRITE_CEILING,
)
from ..core.models import ImportResult, ProgressUpdate

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressUpdate], None]

# Share of the bar covered by the batch phase (10% -> 95%)
_WRITE_SPAN = 85


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def batch_progress(processed_rows: int, total_rows: int) -> int:
    """Percentage after a batch: 10 + processed share of 85, capped at 95."""
    if total_rows <= 0:
        return PROGRESS_WRITE_CEILING
    share = processed_rows / total_rows * _WRITE_SPAN
    return min(PROGRESS_WRITE_CEILING, round_half_up(PROGRESS_CHECKING_DUPLICATES + share))


class ProgressReporter:
    """Emits non-decreasing progress updates for one run.

    A callback that raises is logged and ignored; reporting never changes
    the outcome of a run.
    """

    def __init__(self, callback: ProgressCallback | None, total_rows: int, total_batches: int):
        self.callback = callback
        self.total_rows = total_rows
        self.total_batches = total_batches
        self.current_batch = 0
        self.processed_rows = 0
        self.last_progress = 0

    def loading_identities(self, result: ImportResult) -> None:
        self._emit(PROGRESS_LOADING_IDENTITIES, MESSAGE_LOADING_IDENTITIES, result)

    def checking_duplicates(self, result: ImportResult) -> None:
        self._emit(PROGRESS_CHECKING_DUPLICATES, MESSAGE_CHECKING_DUPLICATES, result)

    def batch_complete(self, batch_number: int, rows_in_batch: int, result: ImportResult) -> None:
        """Report a batch whose outcome has been applied to the result."""
        self.current_batch = batch_number
        self.processed_rows += rows_in_batch
        message = (
            f"Processing batch {batch_number}/{self.total_batches} - "
            f"{self.processed_rows}/{self.total_rows} rows "
            f"({result.success_count} imported, {result.error_count} errors, {result.skipped_count} skipped)"
        )
        self._emit(batch_progress(self.processed_rows, self.total_rows), message, result)

    def complete(self, result: ImportResult) -> None:
        self._emit(PROGRESS_COMPLETE, MESSAGE_COMPLETE, result)

    def stopped(self, message: str, result: ImportResult) -> None:
        """Final update for a run that ended early; progress stays where it was."""
        self._emit(self.last_progress, message, result)

    def _emit(self, progress: int, message: str, result: ImportResult) -> None:
        self.last_progress = max(self.last_progress, progress)
        if self.callback is None:
            return

        update = ProgressUpdate(
            progress=self.last_progress,
            current_batch=self.current_batch,
            total_batches=self.total_batches,
            processed_rows=self.processed_rows,
            total_rows=self.total_rows,
            current_success=result.success_count,
            current_errors=result.error_count,
            current_skipped=result.skipped_count,
            message=message,
        )
        try:
            self.callback(update)
        except Exception as e:
            logger.warning(f"Progress callback raised, ignoring: {e}")
