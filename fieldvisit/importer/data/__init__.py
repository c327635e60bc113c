"""Backing-store access for the importer."""

from __future__ import annotations

from .batch_api import BatchApiSettings, fit_to_batch_api, read_batch_settings
from .connection import ConnectionConfig, connect
from .store_calls import call_store

__all__ = [
    "BatchApiSettings",
    "ConnectionConfig",
    "call_store",
    "connect",
    "fit_to_batch_api",
    "read_batch_settings",
]
