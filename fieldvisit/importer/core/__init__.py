"""Core models, options and run state for the import pipeline."""

from __future__ import annotations

from .cancellation import CancellationToken
from .errors import (
    CollaboratorError,
    CollaboratorTimeoutError,
    ImportCancelledError,
    ImportPipelineError,
    ImportValidationError,
)
from .models import (
    DuplicateKey,
    DuplicateRecord,
    EntityCache,
    Geolocation,
    ImportResult,
    MappedSubmission,
    PreviewData,
    PreviewRow,
    ProgressUpdate,
    RawRow,
    RowError,
)
from .options import ImportOptions
from .run_context import RunContext, RunState

__all__ = [
    "CancellationToken",
    "CollaboratorError",
    "CollaboratorTimeoutError",
    "DuplicateKey",
    "DuplicateRecord",
    "EntityCache",
    "Geolocation",
    "ImportCancelledError",
    "ImportOptions",
    "ImportPipelineError",
    "ImportResult",
    "ImportValidationError",
    "MappedSubmission",
    "PreviewData",
    "PreviewRow",
    "ProgressUpdate",
    "RawRow",
    "RowError",
    "RunContext",
    "RunState",
]
