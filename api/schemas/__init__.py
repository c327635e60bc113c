"""
Pydantic schemas for the import API.

Re-exports all schemas for convenient importing.
"""

from __future__ import annotations

from .imports import (
    DuplicateResponse,
    ImportPreviewRequest,
    ImportPreviewResponse,
    ImportResultResponse,
    ImportRunRequest,
    ImportRunResponse,
    ImportRunStatusResponse,
    MappedPreviewRow,
    ProgressResponse,
    RowErrorResponse,
)

__all__ = [
    "DuplicateResponse",
    "ImportPreviewRequest",
    "ImportPreviewResponse",
    "ImportResultResponse",
    "ImportRunRequest",
    "ImportRunResponse",
    "ImportRunStatusResponse",
    "MappedPreviewRow",
    "ProgressResponse",
    "RowErrorResponse",
]
