"""
Pydantic schemas for submission import endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ImportPreviewRequest(BaseModel):
    """Request to preview the first rows of an import file."""

    csv_text: str = Field(min_length=1, description="Raw delimited file contents")
    org_id: str = Field(min_length=1)


class ImportRunRequest(BaseModel):
    """Request to start a background import."""

    csv_text: str = Field(min_length=1, description="Raw delimited file contents")
    org_id: str = Field(min_length=1)
    form_id: str | None = None  # Defaults to the configured import.form_id
    batch_size: int | None = Field(default=None, ge=1, le=1000, description="Override config batch size")


class ImportRunResponse(BaseModel):
    """Response from starting an import."""

    run_id: str
    status: str
    message: str


class MappedPreviewRow(BaseModel):
    """One row as it would be imported."""

    agent_code: str
    cycle_number: int
    supervisor_code: str
    submission_data: dict[str, str]
    status: str


class ImportPreviewResponse(BaseModel):
    """Headers plus raw and mapped preview rows."""

    headers: list[str]
    rows: list[dict[str, str]]
    mapped_rows: list[MappedPreviewRow]
    unmapped_columns: list[str] = []


class ProgressResponse(BaseModel):
    """Latest progress snapshot of a run."""

    progress: int
    current_batch: int
    total_batches: int
    processed_rows: int
    total_rows: int
    current_success: int
    current_errors: int
    current_skipped: int
    message: str


class RowErrorResponse(BaseModel):
    row: int
    error: str
    data: Any = None


class DuplicateResponse(BaseModel):
    row: int
    agent_code: str
    cycle: int


class ImportResultResponse(BaseModel):
    """Final outcome of an import."""

    success: bool
    total_rows: int
    success_count: int
    error_count: int
    skipped_count: int
    errors: list[RowErrorResponse]
    duplicates: list[DuplicateResponse]
    cancelled: bool = False


class ImportRunStatusResponse(BaseModel):
    """Status of a background import."""

    id: str
    org_id: str
    form_id: str | None = None  # Resolved from config once the run starts
    status: str
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    progress: ProgressResponse | None = None
    result: ImportResultResponse | None = None
    error_message: str | None = None
