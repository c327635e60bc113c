"""Open an authenticated PocketBase client for a standalone import."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from pocketbase import PocketBase

from ..core.errors import CollaboratorError
from .repositories.errors import as_collaborator_error

logger = logging.getLogger(__name__)

DEFAULT_POCKETBASE_URL = "http://127.0.0.1:8090"


@dataclass(frozen=True)
class ConnectionConfig:
    """Where the store lives and the superuser that imports into it"""

    url: str = DEFAULT_POCKETBASE_URL
    admin_email: str | None = None
    admin_password: str | None = None

    @classmethod
    def from_env(cls) -> ConnectionConfig:
        """Read POCKETBASE_URL, POCKETBASE_ADMIN_EMAIL and POCKETBASE_ADMIN_PASSWORD."""
        return cls(
            url=os.environ.get("POCKETBASE_URL", DEFAULT_POCKETBASE_URL),
            admin_email=os.environ.get("POCKETBASE_ADMIN_EMAIL") or None,
            admin_password=os.environ.get("POCKETBASE_ADMIN_PASSWORD") or None,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.admin_email and self.admin_password)


def connect(config: ConnectionConfig) -> PocketBase:
    """Log in as a superuser.

    Imports write to collections and read application settings, so an
    anonymous client is never returned.

    Raises:
        CollaboratorError: If credentials are missing or rejected
    """
    if not config.has_credentials:
        raise CollaboratorError("POCKETBASE_ADMIN_EMAIL and POCKETBASE_ADMIN_PASSWORD must be set")

    pb = PocketBase(config.url)
    try:
        pb.collection("_superusers").auth_with_password(config.admin_email, config.admin_password)
    except Exception as e:
        raise as_collaborator_error(e, f"PocketBase login at {config.url} failed") from e

    logger.info(f"Connected to PocketBase at {config.url} as {config.admin_email}")
    return pb
