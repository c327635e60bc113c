"""
Background execution of import runs started through the API.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from fieldvisit.config import ConfigLoader
from fieldvisit.importer import ImportOptions, ImportOrchestrator, ProgressUpdate
from fieldvisit.importer.data import fit_to_batch_api, read_batch_settings
from fieldvisit.logging_config import run_logging_context

from ..dependencies import authenticate_task_pb, create_task_pb_client, import_runs
from ..settings import get_settings

logger = logging.getLogger(__name__)


def run_status_for(success: bool, cancelled: bool) -> str:
    if cancelled:
        return "cancelled"
    return "completed" if success else "failed"


async def run_import_task(run_id: str, csv_text: str, batch_size: int | None = None) -> None:
    """Background task that runs one import and records its progress and result."""
    with run_logging_context(run_id):
        await _run_import(run_id, csv_text, batch_size)


async def _run_import(run_id: str, csv_text: str, batch_size: int | None) -> None:
    run = import_runs[run_id]
    task_pb = create_task_pb_client()
    settings = get_settings()

    def on_progress(update: ProgressUpdate) -> None:
        run.progress = update

    try:
        if not settings.skip_pb_auth:
            logger.info("Authenticating task-specific PocketBase client...")
            await authenticate_task_pb(task_pb)

        run.started_at = datetime.now(UTC)
        run.status = "running"

        options = await asyncio.to_thread(
            ImportOptions.from_config, ConfigLoader(task_pb), form_id=run.form_id, batch_size=batch_size
        )
        options = fit_to_batch_api(options, await asyncio.to_thread(read_batch_settings, task_pb))
        run.form_id = options.form_id
        orchestrator = ImportOrchestrator.from_pocketbase(task_pb, options)

        logger.info(f"Starting import run {run_id} for org {run.org_id}, form {run.form_id}")
        result = await orchestrator.run(
            csv_text,
            run.org_id,
            on_progress=on_progress,
            cancellation=run.cancellation,
        )

        run.result = result
        run.status = run_status_for(result.success, result.cancelled)
        if not result.success and result.errors and not result.cancelled:
            run.error_message = result.errors[0].error
        logger.info(f"Import run {run_id} finished with status {run.status}")
    except Exception as e:
        logger.error(f"Import run {run_id} failed: {e}", exc_info=True)
        run.status = "failed"
        run.error_message = str(e)
    finally:
        run.completed_at = datetime.now(UTC)
