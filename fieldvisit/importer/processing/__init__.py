"""Row-level processing, duplicate detection and batch writes."""

from __future__ import annotations

from .batch_writer import BatchOutcome, BatchWriter
from .duplicate_detector import DuplicateDetector
from .row_processor import RowOutcome, RowProcessor, build_preview_row, row_number_for

__all__ = [
    "BatchOutcome",
    "BatchWriter",
    "DuplicateDetector",
    "RowOutcome",
    "RowProcessor",
    "build_preview_row",
    "row_number_for",
]
