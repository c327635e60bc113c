"""
Shared dependencies for the import API.

This module provides:
- PocketBase client management (global instance, background task isolation)
- Authentication helpers
- Shared state for import runs
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from pocketbase import PocketBase

from fieldvisit.importer import CancellationToken, ImportResult, ProgressUpdate

from .settings import get_settings

logger = logging.getLogger(__name__)

# ========================================
# PocketBase Client
# ========================================

# - pb: Global instance used by request handlers (authenticated as admin on startup)
# - task clients: Fresh instance per background import for isolation
_settings = get_settings()
pb_url = _settings.pocketbase_url
pb = PocketBase(pb_url)


async def authenticate_pb() -> None:
    """Authenticate with PocketBase as admin."""
    settings = get_settings()
    try:
        await asyncio.to_thread(
            pb.collection("_superusers").auth_with_password,
            settings.pocketbase_admin_email,
            settings.pocketbase_admin_password,
        )
        logger.info("Successfully authenticated with PocketBase")
    except Exception as e:
        logger.error(f"Failed to authenticate with PocketBase: {e}")
        raise


async def get_pb_client() -> PocketBase:
    """FastAPI dependency to get authenticated PocketBase client."""
    return pb


def create_task_pb_client() -> PocketBase:
    """Create a fresh PocketBase client for background tasks."""
    return PocketBase(pb_url)


async def authenticate_task_pb(task_pb: PocketBase) -> None:
    """Authenticate a task-specific PocketBase client."""
    settings = get_settings()
    await asyncio.to_thread(
        task_pb.collection("_superusers").auth_with_password,
        settings.pocketbase_admin_email,
        settings.pocketbase_admin_password,
    )


# ========================================
# Import Runs Storage
# ========================================


@dataclass
class ImportRun:
    """In-memory record of one background import"""

    id: str
    org_id: str
    form_id: str | None = None  # None until resolved from config, unless the request names one
    status: str = "pending"
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    completed_at: datetime | None = None
    progress: ProgressUpdate | None = None
    result: ImportResult | None = None
    error_message: str | None = None
    cancellation: CancellationToken = field(default_factory=CancellationToken)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "form_id": self.form_id,
            "status": self.status,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "progress": self.progress.to_dict() if self.progress else None,
            "result": self.result.to_dict() if self.result else None,
            "error_message": self.error_message,
        }


# In-memory storage for import runs (lost on restart; imports are not resumable)
import_runs: dict[str, ImportRun] = {}

# Finished runs stay pollable this long, then are dropped
FINISHED_RUN_TTL = timedelta(hours=1)


def prune_finished_runs(now: datetime | None = None) -> int:
    """Drop runs that finished more than FINISHED_RUN_TTL ago; returns how many."""
    now = now or datetime.now(UTC)
    expired = [
        run_id
        for run_id, run in import_runs.items()
        if run.completed_at is not None and now - run.completed_at > FINISHED_RUN_TTL
    ]
    for run_id in expired:
        del import_runs[run_id]
    if expired:
        logger.info(f"Pruned {len(expired)} finished import runs")
    return len(expired)


__all__ = [
    "pb",
    "pb_url",
    "authenticate_pb",
    "get_pb_client",
    "create_task_pb_client",
    "authenticate_task_pb",
    "ImportRun",
    "import_runs",
    "FINISHED_RUN_TTL",
    "prune_finished_runs",
]
