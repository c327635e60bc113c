"""Bulk import of supervision visit spreadsheets into form submissions.

Usage:
    orchestrator = ImportOrchestrator.from_pocketbase(pb, ImportOptions.from_config(ConfigLoader(pb)))
    preview = orchestrator.preview(csv_text)
    result = await orchestrator.run(csv_text, org_id, on_progress=print)
"""

from __future__ import annotations

from .core import (
    CancellationToken,
    CollaboratorError,
    CollaboratorTimeoutError,
    ImportCancelledError,
    ImportOptions,
    ImportPipelineError,
    ImportResult,
    ImportValidationError,
    PreviewData,
    ProgressUpdate,
)
from .orchestrator import ImportOrchestrator, build_preview
from .reporting import errors_to_csv

__all__ = [
    "CancellationToken",
    "CollaboratorError",
    "CollaboratorTimeoutError",
    "ImportCancelledError",
    "ImportOptions",
    "ImportOrchestrator",
    "ImportPipelineError",
    "ImportResult",
    "ImportValidationError",
    "PreviewData",
    "ProgressUpdate",
    "build_preview",
    "errors_to_csv",
]
