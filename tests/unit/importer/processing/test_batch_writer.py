"""Tests for BatchWriter failure attribution and per-row retry."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from fieldvisit.importer.core import CollaboratorError, ImportResult, MappedSubmission
from fieldvisit.importer.processing import BatchWriter


def make_submission(row_number: int, entity_id: str = "E1") -> MappedSubmission:
    return MappedSubmission(
        row_number=row_number,
        entity_code=f"T{row_number:03d}",
        entity_id=entity_id,
        cycle_number=1,
        supervisor_code="SUP9",
        supervisor_id="U1",
        submitted_at=datetime(2024, 3, 1, tzinfo=UTC),
        submission_data={},
        status="pending",
    )


class FlakyWriter:
    """Rejects any insert that contains one of the given entity ids."""

    def __init__(self, bad_entity_ids: set[str]):
        self.bad_entity_ids = bad_entity_ids
        self.calls: list[list[int]] = []

    def insert_batch(self, form_id, submissions):
        self.calls.append([s.row_number for s in submissions])
        if any(s.entity_id in self.bad_entity_ids for s in submissions):
            raise CollaboratorError("agent_id: invalid relation")


class TestBatchWriter:
    @pytest.mark.asyncio
    async def test_successful_batch(self):
        writer = FlakyWriter(set())
        outcome = await BatchWriter(writer, "form1").write([make_submission(2), make_submission(3)], start_row=2)

        assert outcome.inserted == 2
        assert outcome.failed == 0
        assert writer.calls == [[2, 3]]

    @pytest.mark.asyncio
    async def test_failed_batch_is_one_entry_at_start_row(self):
        writer = FlakyWriter({"BAD"})
        batch = [make_submission(4), make_submission(5, "BAD"), make_submission(6)]

        outcome = await BatchWriter(writer, "form1").write(batch, start_row=3)

        result = ImportResult(total_rows=3)
        outcome.apply_to(result)
        assert result.error_count == 3
        assert [e.to_dict() for e in result.errors] == [
            {"row": 3, "error": "Batch insert failed: agent_id: invalid relation", "data": None}
        ]
        assert writer.calls == [[4, 5, 6]]

    @pytest.mark.asyncio
    async def test_per_row_retry_attributes_each_failure(self):
        writer = FlakyWriter({"BAD"})
        batch = [make_submission(4), make_submission(5, "BAD"), make_submission(6)]

        outcome = await BatchWriter(writer, "form1", retry_per_row=True).write(batch, start_row=3)

        assert outcome.inserted == 2
        assert outcome.failed == 1
        assert outcome.errors[0].row == 5
        assert outcome.errors[0].data == {"agentCode": "T005", "cycle": 1}
        assert writer.calls == [[4, 5, 6], [4], [5], [6]]

    @pytest.mark.asyncio
    async def test_empty_batch_writes_nothing(self):
        writer = FlakyWriter(set())

        outcome = await BatchWriter(writer, "form1").write([], start_row=2)

        assert outcome.inserted == 0
        assert writer.calls == []
