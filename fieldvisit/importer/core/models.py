"""Core domain models for the submission import pipeline.

These models carry no PocketBase or HTTP dependencies; repositories and API
schemas convert to and from them at the edges."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .constants import UNKNOWN_MONTH

# One parsed input line keyed by header name. Built once by the parser and
# only ever read afterwards.
RawRow = dict[str, str]


@dataclass(frozen=True)
class Geolocation:
    """Latitude/longitude pair captured with a visit"""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class DuplicateKey:
    """Identity of a visit within a monthly tracking window.

    Two submissions for the same entity, cycle and calendar month are the
    same visit, regardless of day or supervisor.
    """

    entity_id: str
    cycle_number: int
    month: str

    @classmethod
    def for_submission(cls, entity_id: str, cycle_number: int, submitted_at: datetime) -> DuplicateKey:
        """Build the key for a row about to be imported."""
        return cls(entity_id, cycle_number, submitted_at.astimezone(UTC).strftime("%Y-%m"))

    @classmethod
    def for_stored(cls, entity_id: str, cycle_number: int, submitted_at: str | None) -> DuplicateKey:
        """Build the key for a record already in the store.

        Stored timestamps are UTC strings ("2024-03-01 00:00:00.000Z" or ISO),
        so the month is their first seven characters.
        """
        month = submitted_at[:7] if submitted_at else UNKNOWN_MONTH
        return cls(entity_id, int(cycle_number), month)


@dataclass(frozen=True)
class EntityCache:
    """Code -> id maps resolved once per run.

    Read-only after construction; a missing code is a per-row error, not a
    resolver failure.
    """

    agents: Mapping[str, str] = field(default_factory=dict)
    supervisors: Mapping[str, str] = field(default_factory=dict)

    def agent_id(self, code: str) -> str | None:
        return self.agents.get(code)

    def supervisor_id(self, code: str) -> str | None:
        return self.supervisors.get(code)


@dataclass
class MappedSubmission:
    """A validated row ready to be written as a form submission"""

    row_number: int
    entity_code: str
    entity_id: str
    cycle_number: int
    supervisor_code: str
    supervisor_id: str | None
    submitted_at: datetime
    submission_data: dict[str, str]
    status: str
    geolocation: Geolocation | None = None
    review_notes: list[str] = field(default_factory=list)

    @property
    def duplicate_key(self) -> DuplicateKey:
        return DuplicateKey.for_submission(self.entity_id, self.cycle_number, self.submitted_at)


@dataclass
class RowError:
    """One entry in the import error log"""

    row: int
    error: str
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "error": self.error, "data": self.data}


@dataclass
class DuplicateRecord:
    """A row skipped because its visit was already on record"""

    row: int
    agent_code: str
    cycle: int

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "agent_code": self.agent_code, "cycle": self.cycle}


@dataclass
class ImportResult:
    """Outcome of one import run.

    Row numbers are 1-based file line numbers, so the first data row is 2.
    For a completed run success_count + error_count + skipped_count equals
    total_rows.
    """

    success: bool = True
    total_rows: int = 0
    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    errors: list[RowError] = field(default_factory=list)
    duplicates: list[DuplicateRecord] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed_count(self) -> int:
        return self.success_count + self.error_count + self.skipped_count

    @property
    def is_balanced(self) -> bool:
        """True when every row has been accounted for exactly once."""
        return self.processed_count == self.total_rows

    def add_error(self, row: int, error: str, data: Any = None, count: int = 1) -> None:
        """Record an error entry; count is the number of rows it covers."""
        self.errors.append(RowError(row=row, error=error, data=data))
        self.error_count += count

    def add_duplicate(self, row: int, agent_code: str, cycle: int) -> None:
        self.duplicates.append(DuplicateRecord(row=row, agent_code=agent_code, cycle=cycle))
        self.skipped_count += 1

    def fail(self, message: str) -> None:
        """Mark the whole run as failed with a run-level error at row 0."""
        self.success = False
        self.errors.append(RowError(row=0, error=message))

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total_rows": self.total_rows,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "skipped_count": self.skipped_count,
            "errors": [e.to_dict() for e in self.errors],
            "duplicates": [d.to_dict() for d in self.duplicates],
            "cancelled": self.cancelled,
        }


@dataclass(frozen=True)
class ProgressUpdate:
    """Snapshot pushed to the progress callback; never stored"""

    progress: int
    current_batch: int
    total_batches: int
    processed_rows: int
    total_rows: int
    current_success: int
    current_errors: int
    current_skipped: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "progress": self.progress,
            "current_batch": self.current_batch,
            "total_batches": self.total_batches,
            "processed_rows": self.processed_rows,
            "total_rows": self.total_rows,
            "current_success": self.current_success,
            "current_errors": self.current_errors,
            "current_skipped": self.current_skipped,
            "message": self.message,
        }


@dataclass
class PreviewRow:
    """Mapped view of one row for the dry-run preview"""

    agent_code: str
    cycle_number: int
    supervisor_code: str
    submission_data: dict[str, str]
    status: str


@dataclass
class PreviewData:
    """Headers plus the first few raw and mapped rows"""

    headers: list[str]
    rows: list[RawRow]
    mapped_rows: list[PreviewRow]
    unmapped_columns: list[str] = field(default_factory=list)
