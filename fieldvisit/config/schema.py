"""Configuration schema registry.

Defines all valid import configuration keys with their types, defaults and
validation rules. This is the single source of truth for tunables.
"""

from __future__ import annotations

from typing import Any

from .types import ConfigKey, ConfigType

CONFIG_SCHEMA: dict[str, ConfigKey] = {
    # =========================================================================
    # TARGET FORM
    # =========================================================================
    "import.form_id": ConfigKey(
        key="import.form_id",
        config_type=ConfigType.STRING,
        default="d27d1417-92fe-4fca-aa9f-94fabc879688",
        description="Form that imported submissions are attached to",
    ),
    # =========================================================================
    # BATCHING
    # =========================================================================
    "import.batch_size": ConfigKey(
        key="import.batch_size",
        config_type=ConfigType.INT,
        default=50,
        description="Records per PocketBase batch request; the server caps this (Batch API maxRequests, 50 by default)",
        min_value=1,
        max_value=1000,
    ),
    "import.lookup_chunk_size": ConfigKey(
        key="import.lookup_chunk_size",
        config_type=ConfigType.INT,
        default=50,
        description="Codes or ids per lookup filter; PocketBase rejects filters over 3500 chars or 200 expressions",
        min_value=1,
        max_value=100,
    ),
    "import.max_concurrent_batches": ConfigKey(
        key="import.max_concurrent_batches",
        config_type=ConfigType.INT,
        default=1,
        description="Batch inserts allowed in flight at once",
        min_value=1,
        max_value=8,
    ),
    "import.retry_failed_batches_per_row": ConfigKey(
        key="import.retry_failed_batches_per_row",
        config_type=ConfigType.BOOL,
        default=False,
        description="Retry a failed batch one row at a time for per-row error attribution",
    ),
    # =========================================================================
    # NETWORK
    # =========================================================================
    "import.request_timeout_seconds": ConfigKey(
        key="import.request_timeout_seconds",
        config_type=ConfigType.FLOAT,
        default=30.0,
        description="Timeout applied to each lookup or insert round trip",
        min_value=1.0,
        max_value=600.0,
    ),
    # =========================================================================
    # PREVIEW
    # =========================================================================
    "import.preview_rows": ConfigKey(
        key="import.preview_rows",
        config_type=ConfigType.INT,
        default=5,
        description="Rows mapped by a dry-run preview",
        min_value=1,
        max_value=50,
    ),
}


def get_schema_key(key: str) -> ConfigKey | None:
    """
    Get the schema definition for a config key.

    Args:
        key: The dot-notation config key

    Returns:
        ConfigKey if found, None if unknown
    """
    return CONFIG_SCHEMA.get(key)


def validate_key(key: str, value: Any) -> str | None:
    """
    Validate a value against its schema.

    Args:
        key: The config key
        value: The value to validate

    Returns:
        None if valid, error message if invalid
    """
    schema = CONFIG_SCHEMA.get(key)
    if schema is None:
        return f"Unknown config key: {key}"
    return schema.validate(value)
