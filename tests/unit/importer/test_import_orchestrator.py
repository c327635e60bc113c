"""End-to-end pipeline tests over in-memory store fakes."""

from __future__ import annotations

import asyncio
import time

import pytest

from fieldvisit.importer import CancellationToken, CollaboratorError, CollaboratorTimeoutError

SINGLE_ROW = "T001,01/03/2024,1,SUP9,true"


class TestRunHappyPath:
    @pytest.mark.asyncio
    async def test_single_row_is_imported(self, make_orchestrator, fake_store, build_csv):
        result = await make_orchestrator().run(build_csv(SINGLE_ROW), "org1")

        assert result.success is True
        assert (result.total_rows, result.success_count, result.error_count, result.skipped_count) == (1, 1, 0, 0)
        record = fake_store.records[0]
        assert record["agent_id"] == "E1"
        assert record["submitted_by"] == "U1"
        assert record["cycle_number"] == 1
        assert record["status"] == "approved"
        assert record["submitted_at"].startswith("2024-03-01")

    @pytest.mark.asyncio
    async def test_reimport_skips_everything(self, make_orchestrator, build_csv):
        orchestrator = make_orchestrator()
        text = build_csv(SINGLE_ROW)

        await orchestrator.run(text, "org1")
        second = await orchestrator.run(text, "org1")

        assert second.success_count == 0
        assert second.skipped_count == second.total_rows == 1
        assert [d.to_dict() for d in second.duplicates] == [{"row": 2, "agent_code": "T001", "cycle": 1}]

    @pytest.mark.asyncio
    async def test_identical_rows_first_wins(self, make_orchestrator, build_csv):
        result = await make_orchestrator().run(build_csv(SINGLE_ROW, SINGLE_ROW), "org1")

        assert result.success_count == 1
        assert result.skipped_count == 1
        assert result.duplicates[0].row == 3

    @pytest.mark.asyncio
    async def test_mixed_file_accounts_for_every_row(self, make_orchestrator, build_csv):
        text = build_csv(
            SINGLE_ROW,
            "T404,01/03/2024,1,SUP9,true",
            ",01/03/2024,1,SUP9,true",
            "T002,01/03/2024,2,SUP404,false",
            SINGLE_ROW,
            "T003,,3,SUP7,TRUE",
        )

        result = await make_orchestrator(batch_size=2).run(text, "org1")

        assert result.is_balanced
        assert (result.success_count, result.error_count, result.skipped_count) == (3, 2, 1)
        assert [(e.row, e.error) for e in result.errors] == [
            (3, "Agent not found for code: T404"),
            (4, "Missing Terminal ID or Emp. code"),
        ]

    @pytest.mark.asyncio
    async def test_unknown_agent_is_error_not_duplicate(self, make_orchestrator, build_csv):
        result = await make_orchestrator().run(build_csv("T404,01/03/2024,1,SUP9,true"), "org1")

        assert result.error_count == 1
        assert result.skipped_count == 0
        assert result.errors[0].error == "Agent not found for code: T404"

    @pytest.mark.asyncio
    async def test_lookups_run_once_and_in_chunks(self, make_orchestrator, agent_lookup, fake_store, build_csv):
        rows = [f"T00{i},01/03/2024,1,SUP9,true" for i in (1, 2, 3)]

        await make_orchestrator(lookup_chunk_size=2, batch_size=1).run(build_csv(*rows), "org1")

        assert [codes for codes, _ in agent_lookup.calls] == [["T001", "T002"], ["T003"]]
        assert [ids for _, ids in fake_store.seed_calls] == [["E1", "E2"], ["E3"]]

    @pytest.mark.asyncio
    async def test_form_id_override(self, make_orchestrator, fake_store, build_csv):
        await make_orchestrator().run(build_csv(SINGLE_ROW), "org1", form_id="other-form")

        assert fake_store.records[0]["form_id"] == "other-form"


class TestProgress:
    @pytest.mark.asyncio
    async def test_progress_is_monotonic_and_ends_at_100(self, make_orchestrator, build_csv):
        updates = []
        rows = [f"T00{i},01/0{i}/2024,1,SUP9,true" for i in (1, 2, 3)] * 3

        await make_orchestrator(batch_size=2).run(build_csv(*rows), "org1", on_progress=updates.append)

        progress = [u.progress for u in updates]
        assert progress == sorted(progress)
        assert progress[:2] == [5, 10]
        assert updates[-1].progress == 100
        assert updates[-1].message == "Import complete!"
        assert updates[-2].message == "Processing batch 5/5 - 9/9 rows (3 imported, 0 errors, 6 skipped)"

    @pytest.mark.asyncio
    async def test_callback_does_not_change_result(self, make_orchestrator, build_csv):
        def broken(update):
            raise RuntimeError("socket closed")

        result = await make_orchestrator().run(build_csv(SINGLE_ROW), "org1", on_progress=broken)

        assert result.success_count == 1


class TestFatalPaths:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "Terminal ID,Submitted On,Visit,Emp. code,approved\n"])
    async def test_empty_file(self, make_orchestrator, text):
        result = await make_orchestrator().run(text, "org1")

        assert result.success is False
        assert result.processed_count == 0
        assert [e.to_dict() for e in result.errors] == [{"row": 0, "error": "CSV file is empty", "data": None}]

    @pytest.mark.asyncio
    async def test_missing_required_columns(self, make_orchestrator, agent_lookup, build_csv):
        text = build_csv("T001,1", header="Terminal ID,Visit")

        result = await make_orchestrator().run(text, "org1")

        assert result.success is False
        assert [e.error for e in result.errors] == [
            "Missing required column: Submitted On",
            "Missing required column: Emp. code",
            "Missing required column: approved",
        ]
        assert all(e.row == 0 for e in result.errors)
        assert agent_lookup.calls == []

    @pytest.mark.asyncio
    async def test_lookup_failure_aborts_with_result(self, make_orchestrator, agent_lookup, fake_store, build_csv):
        agent_lookup.error = CollaboratorError("Lookup in customers failed: 502")

        result = await make_orchestrator().run(build_csv(SINGLE_ROW), "org1")

        assert result.success is False
        assert result.errors[0].to_dict() == {
            "row": 0,
            "error": "Import failed: Lookup in customers failed: 502",
            "data": None,
        }
        assert fake_store.insert_calls == []

    @pytest.mark.asyncio
    async def test_seed_timeout_aborts(self, make_orchestrator, fake_store, build_csv):
        fake_store.seed_error = CollaboratorTimeoutError("Existing submission lookup timed out after 30s")

        result = await make_orchestrator().run(build_csv(SINGLE_ROW), "org1")

        assert result.success is False
        assert "timed out" in result.errors[0].error


class TestBatchFailures:
    @pytest.mark.asyncio
    async def test_failed_batch_does_not_stop_later_batches(self, orchestrator_for, store_factory, build_csv):
        orchestrator = orchestrator_for(store_factory(fail_batches={1}), batch_size=2)
        text = build_csv(
            "T001,01/03/2024,1,SUP9,true",
            "T002,01/03/2024,1,SUP9,true",
            "T003,01/03/2024,1,SUP9,true",
        )

        result = await orchestrator.run(text, "org1")

        assert result.success is True
        assert (result.success_count, result.error_count) == (1, 2)
        assert result.errors[0].to_dict() == {"row": 2, "error": "Batch insert failed: store unavailable", "data": None}
        assert result.is_balanced

    @pytest.mark.asyncio
    async def test_batch_error_attributed_to_batch_start_row(self, orchestrator_for, store_factory, build_csv):
        orchestrator = orchestrator_for(store_factory(fail_batches={2}), batch_size=2)
        # Row 4 is an error, so batch 2 starts at row 4 but its only record is row 5
        text = build_csv(
            "T001,01/03/2024,1,SUP9,true",
            "T002,01/03/2024,1,SUP9,true",
            "T404,01/03/2024,1,SUP9,true",
            "T003,01/03/2024,1,SUP9,true",
        )

        result = await orchestrator.run(text, "org1")

        assert [(e.row, e.error) for e in result.errors] == [
            (4, "Agent not found for code: T404"),
            (4, "Batch insert failed: store unavailable"),
        ]
        assert result.error_count == 2

    @pytest.mark.asyncio
    async def test_per_row_retry(self, orchestrator_for, store_factory, build_csv):
        store = store_factory(reject_agent_ids={"E2"})
        orchestrator = orchestrator_for(store, batch_size=3, retry_failed_batches_per_row=True)
        text = build_csv(
            "T001,01/03/2024,1,SUP9,true",
            "T002,01/03/2024,1,SUP9,true",
            "T003,01/03/2024,1,SUP9,true",
        )

        result = await orchestrator.run(text, "org1")

        assert (result.success_count, result.error_count) == (2, 1)
        assert result.errors[0].row == 3


class TestConcurrencyAndCancellation:
    @pytest.mark.asyncio
    async def test_concurrent_batches_report_in_order(self, orchestrator_for, build_csv):
        class SlowFirstStore:
            def __init__(self):
                self.inserted_rows = []

            def find_existing_keys(self, form_id, entity_ids):
                return []

            def insert_batch(self, form_id, submissions):
                if submissions[0].row_number == 2:
                    time.sleep(0.05)
                self.inserted_rows.extend(s.row_number for s in submissions)

        store = SlowFirstStore()
        orchestrator = orchestrator_for(store, batch_size=1, max_concurrent_batches=3)
        updates = []
        text = build_csv(
            "T001,01/03/2024,1,SUP9,true",
            "T002,01/03/2024,1,SUP9,true",
            "T003,01/03/2024,1,SUP9,true",
        )

        result = await orchestrator.run(text, "org1", on_progress=updates.append)

        assert result.success_count == 3
        assert sorted(store.inserted_rows) == [2, 3, 4]
        batch_updates = [u for u in updates if u.message.startswith("Processing batch")]
        assert [u.current_batch for u in batch_updates] == [1, 2, 3]
        assert [u.current_success for u in batch_updates] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_cancel_between_batches(self, make_orchestrator, fake_store, build_csv):
        token = CancellationToken()
        updates = []

        def cancel_after_first_batch(update):
            updates.append(update)
            if update.current_batch == 1:
                token.cancel("Stopped by operator")

        rows = [f"T00{i},01/03/2024,1,SUP9,true" for i in (1, 2, 3)]
        result = await make_orchestrator(batch_size=1).run(
            build_csv(*rows), "org1", on_progress=cancel_after_first_batch, cancellation=token
        )

        assert result.cancelled is True
        assert result.success is False
        assert result.success_count == 1
        assert len(fake_store.insert_calls) == 1
        assert updates[-1].message == "Import cancelled"
        assert all(u.progress < 100 for u in updates)

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, make_orchestrator, fake_store, build_csv):
        token = CancellationToken()
        token.cancel()

        result = await make_orchestrator().run(build_csv(SINGLE_ROW), "org1", cancellation=token)

        assert result.cancelled is True
        assert result.processed_count == 0
        assert fake_store.insert_calls == []


class TestPreview:
    def test_preview_first_five_rows(self, make_orchestrator, agent_lookup, build_csv):
        rows = [f"T00{i},01/03/2024,{i},SUP9,false" for i in range(1, 8)]
        text = build_csv(*rows, header="Terminal ID,Submitted On,Visit,Emp. code,approved,Agent Active?,Mystery")

        preview = make_orchestrator().preview(text)

        assert preview.headers[:2] == ["Terminal ID", "Submitted On"]
        assert len(preview.rows) == len(preview.mapped_rows) == 5
        assert preview.mapped_rows[4].cycle_number == 5
        assert preview.mapped_rows[0].status == "pending"
        assert preview.unmapped_columns == ["Mystery"]
        assert agent_lookup.calls == []

    def test_preview_of_empty_file(self, make_orchestrator):
        preview = make_orchestrator().preview("")

        assert preview.headers == []
        assert preview.mapped_rows == []


def test_run_from_asyncio_run(make_orchestrator, build_csv):
    result = asyncio.run(make_orchestrator().run(build_csv(SINGLE_ROW), "org1"))

    assert result.success_count == 1
