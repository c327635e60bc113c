"""PocketBase batch API limits.

Submissions are written through ``/api/batch``, which PocketBase ships
disabled and capped at ``maxRequests`` (50) requests per call. Both live in
the server's application settings, readable by a superuser.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from ..core.errors import CollaboratorError
from ..core.options import ImportOptions

if TYPE_CHECKING:
    from pocketbase import PocketBase

logger = logging.getLogger(__name__)

SETTINGS_PATH = "/api/settings"

BATCH_API_DISABLED_MESSAGE = (
    "PocketBase batch API is disabled; enable it under Settings > Application > Batch API before importing"
)


@dataclass(frozen=True)
class BatchApiSettings:
    """Batch section of the PocketBase application settings"""

    enabled: bool
    max_requests: int

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "max_requests": self.max_requests}


def read_batch_settings(pb: PocketBase) -> BatchApiSettings | None:
    """Read the server's batch settings; None when they cannot be read."""
    try:
        settings = pb.send(SETTINGS_PATH, {"method": "GET", "params": {"fields": "batch"}})
    except Exception as e:
        logger.warning(f"Could not read PocketBase batch settings: {e}")
        return None

    batch = settings.get("batch") if isinstance(settings, dict) else None
    if not isinstance(batch, dict):
        logger.warning("PocketBase settings carry no batch section; skipping batch limit check")
        return None
    return BatchApiSettings(enabled=bool(batch.get("enabled")), max_requests=int(batch.get("maxRequests") or 0))


def fit_to_batch_api(options: ImportOptions, settings: BatchApiSettings | None) -> ImportOptions:
    """Shrink the batch size to the server limit.

    Unknown settings leave the options unchanged.

    Raises:
        CollaboratorError: If the batch API is disabled
    """
    if settings is None:
        return options
    if not settings.enabled:
        raise CollaboratorError(BATCH_API_DISABLED_MESSAGE)
    if 0 < settings.max_requests < options.batch_size:
        logger.warning(
            f"Batch size {options.batch_size} exceeds the server limit of {settings.max_requests} "
            f"requests per batch; using {settings.max_requests}"
        )
        return replace(options, batch_size=settings.max_requests)
    return options
