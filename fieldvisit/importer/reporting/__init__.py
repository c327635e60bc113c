"""Progress reporting and error-log export."""

from __future__ import annotations

from .error_export import ERROR_EXPORT_HEADER, errors_to_csv
from .progress_reporter import ProgressCallback, ProgressReporter, batch_progress, round_half_up

__all__ = [
    "ERROR_EXPORT_HEADER",
    "ProgressCallback",
    "ProgressReporter",
    "batch_progress",
    "errors_to_csv",
    "round_half_up",
]
