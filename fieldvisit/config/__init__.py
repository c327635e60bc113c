"""
Configuration management for the importer.

Tunables are resolved from environment overrides, then the PocketBase
``config`` collection, then schema defaults.

Usage:
    from fieldvisit.config import ConfigLoader

    config = ConfigLoader(pb_client)
    batch_size = config.get_int("import.batch_size")
"""

from __future__ import annotations

from .errors import (
    ConfigError,
    UnknownKeyError,
    ValidationError,
)
from .loader import ConfigLoader
from .schema import CONFIG_SCHEMA, get_schema_key, validate_key
from .types import ConfigKey, ConfigType

__all__ = [
    "ConfigLoader",
    "ConfigError",
    "ValidationError",
    "UnknownKeyError",
    "CONFIG_SCHEMA",
    "ConfigKey",
    "ConfigType",
    "get_schema_key",
    "validate_key",
]
