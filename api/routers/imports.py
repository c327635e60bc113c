"""
Imports Router - Endpoints for bulk submission imports.

This router handles:
- Previewing how the first rows of a file will be mapped
- Starting background imports and polling their progress
- Cancelling a running import
- Downloading the error log of a finished import
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from uuid import uuid4

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from pocketbase import PocketBase

from fieldvisit.config import ConfigError, ConfigLoader
from fieldvisit.importer import ImportOptions, build_preview, errors_to_csv

from ..dependencies import ImportRun, get_pb_client, import_runs, prune_finished_runs
from ..schemas import (
    ImportPreviewRequest,
    ImportPreviewResponse,
    ImportRunRequest,
    ImportRunResponse,
    ImportRunStatusResponse,
)
from ..services.import_runner import run_import_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["imports"])

_FINISHED_STATUSES = {"completed", "failed", "cancelled"}


def _get_run(run_id: str) -> ImportRun:
    run = import_runs.get(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Import run not found")
    return run


@router.post("/imports/preview")
async def preview_import(
    request: ImportPreviewRequest, pb: PocketBase = Depends(get_pb_client)
) -> ImportPreviewResponse:
    """Map the first rows of a file without writing anything."""
    try:
        options = await asyncio.to_thread(ImportOptions.from_config, ConfigLoader(pb))
    except ConfigError as e:
        logger.error(f"Invalid import configuration: {e}")
        raise HTTPException(status_code=500, detail=f"Invalid import configuration: {e}") from e

    preview = build_preview(request.csv_text, options)
    if not preview.headers:
        raise HTTPException(status_code=400, detail="CSV file is empty")

    return ImportPreviewResponse(
        headers=preview.headers,
        rows=preview.rows,
        mapped_rows=[asdict(r) for r in preview.mapped_rows],
        unmapped_columns=preview.unmapped_columns,
    )


@router.post("/imports/run")
async def start_import(request: ImportRunRequest, background_tasks: BackgroundTasks) -> ImportRunResponse:
    """Start an import in the background."""
    prune_finished_runs()
    run_id = str(uuid4())
    form_id = request.form_id or None

    import_runs[run_id] = ImportRun(id=run_id, org_id=request.org_id, form_id=form_id)
    background_tasks.add_task(run_import_task, run_id, request.csv_text, request.batch_size)

    logger.info(f"Queued import run {run_id} for org {request.org_id}, form {form_id or 'from config'}")
    return ImportRunResponse(run_id=run_id, status="started", message="Import started in background")


@router.get("/imports/run/{run_id}")
async def get_import_run(run_id: str) -> ImportRunStatusResponse:
    """Get status, latest progress and result of an import."""
    return ImportRunStatusResponse.model_validate(_get_run(run_id).to_dict())


@router.post("/imports/run/{run_id}/cancel")
async def cancel_import_run(run_id: str) -> dict[str, str]:
    """Ask a running import to stop after its current batch."""
    run = _get_run(run_id)
    if run.status in _FINISHED_STATUSES:
        raise HTTPException(status_code=409, detail=f"Import run already {run.status}")

    run.cancellation.cancel("Cancelled via API")
    logger.info(f"Cancellation requested for import run {run_id}")
    return {"run_id": run_id, "status": "cancelling"}


@router.get("/imports/run/{run_id}/errors.csv", response_class=PlainTextResponse)
async def download_import_errors(run_id: str) -> PlainTextResponse:
    """Download the error log of a finished import as CSV."""
    run = _get_run(run_id)
    if run.result is None:
        raise HTTPException(status_code=400, detail="Import run not finished")

    return PlainTextResponse(
        errors_to_csv(run.result.errors),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="import-errors-{run_id}.csv"'},
    )
