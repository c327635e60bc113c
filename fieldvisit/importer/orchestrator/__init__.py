"""Import pipeline orchestration."""

from __future__ import annotations

from .import_orchestrator import EMPTY_FILE_MESSAGE, ImportOrchestrator, build_preview, validate_rows

__all__ = ["EMPTY_FILE_MESSAGE", "ImportOrchestrator", "build_preview", "validate_rows"]
