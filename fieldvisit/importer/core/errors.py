"""Importer exception hierarchy.

Row-level and batch-level problems are recorded on the ImportResult and never
raised out of the orchestrator. These exceptions mark the conditions that end
a run early, plus the failures repositories report for the orchestrator to
record.
"""

from __future__ import annotations


class ImportPipelineError(Exception):
    """Base exception for import pipeline failures."""


class ImportValidationError(ImportPipelineError):
    """Raised when the input fails pre-flight validation (empty file, missing columns)."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class CollaboratorError(ImportPipelineError):
    """Raised when the backing store rejects or fails a lookup or write."""


class CollaboratorTimeoutError(CollaboratorError):
    """Raised when a store round trip exceeds the configured timeout."""


class ImportCancelledError(ImportPipelineError):
    """Raised between batches once cancellation has been requested."""
