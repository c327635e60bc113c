"""
ConfigLoader - Layered configuration for import tunables.

Resolution order for each key:
1. Environment override (``import.batch_size`` -> ``CONFIG_IMPORT_BATCH_SIZE``)
2. PocketBase ``config`` collection (category / subcategory / config_key)
3. Schema default

Every resolved value is type-converted and validated against the schema;
invalid values fail fast instead of silently falling back.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, cast

from pocketbase import PocketBase

from .errors import UnknownKeyError, ValidationError
from .schema import CONFIG_SCHEMA
from .types import ConfigType

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Layered configuration loader with schema validation.

    Usage:
        loader = ConfigLoader(pb_client)
        batch_size = loader.get_int("import.batch_size")

        # Without a client only environment overrides and defaults apply
        loader = ConfigLoader()
    """

    def __init__(
        self,
        pb_client: PocketBase | None = None,
        cache_ttl_seconds: int = 300,
    ):
        """
        Initialize the config loader.

        Args:
            pb_client: PocketBase client. If None, the database layer is skipped.
            cache_ttl_seconds: Cache TTL in seconds (default 5 minutes).
        """
        self._pb = pb_client
        self._cache_ttl = cache_ttl_seconds
        self._cache: dict[str, tuple[Any, float]] = {}

    def _get_env_key(self, key: str) -> str:
        """Convert dot notation to environment variable name."""
        # import.batch_size -> CONFIG_IMPORT_BATCH_SIZE
        return "CONFIG_" + key.upper().replace(".", "_")

    def get(self, key: str) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (e.g., "import.batch_size")

        Returns:
            The typed configuration value

        Raises:
            UnknownKeyError: If key is not in schema
            ValidationError: If value fails type conversion or validation
        """
        if key not in CONFIG_SCHEMA:
            raise UnknownKeyError(f"Unknown config key: '{key}'")

        schema = CONFIG_SCHEMA[key]

        # Environment wins over everything
        env_key = self._get_env_key(key)
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return self._typed_and_validated(key, env_value, source=env_key)

        if key in self._cache:
            value, timestamp = self._cache[key]
            if time.time() - timestamp < self._cache_ttl:
                return value

        raw_value = self._query_database_raw(key)
        if raw_value is None:
            typed_value = schema.default
        else:
            typed_value = self._typed_and_validated(key, raw_value, source="config collection")

        self._cache[key] = (typed_value, time.time())
        return typed_value

    def get_int(self, key: str) -> int:
        """Get an integer config value."""
        return cast(int, self.get(key))

    def get_float(self, key: str) -> float:
        """Get a float config value."""
        return cast(float, self.get(key))

    def get_bool(self, key: str) -> bool:
        """Get a boolean config value."""
        return cast(bool, self.get(key))

    def get_str(self, key: str) -> str:
        """Get a string config value."""
        return cast(str, self.get(key))

    def _typed_and_validated(self, key: str, raw_value: Any, source: str) -> Any:
        schema = CONFIG_SCHEMA[key]
        try:
            typed_value = self._convert_type(raw_value, schema.config_type)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Config key '{key}' from {source} has invalid type: {e}") from e

        error = schema.validate(typed_value)
        if error:
            raise ValidationError(f"Config key '{key}' from {source}: {error}")
        return typed_value

    def _query_database_raw(self, key: str) -> Any | None:
        """
        Query PocketBase for a config value.

        Args:
            key: The dot-notation config key

        Returns:
            The raw value from database, or None if not found or no client
        """
        if self._pb is None:
            return None

        parts = key.split(".")
        if len(parts) == 2:
            category, subcategory, config_key = parts[0], None, parts[1]
        else:
            category = parts[0]
            subcategory = "_".join(parts[1:-1])
            config_key = parts[-1]

        filter_str = f'category = "{category}" && config_key = "{config_key}"'
        if subcategory:
            filter_str += f' && subcategory = "{subcategory}"'
        else:
            filter_str += ' && (subcategory = null || subcategory = "")'

        try:
            record = self._pb.collection("config").get_first_list_item(filter_str)
        except Exception as e:
            # Record not found, or the config collection is unreachable
            logger.debug(f"No config record for {key}: {e}")
            return None
        return getattr(record, "value", None)

    def _convert_type(self, value: Any, config_type: ConfigType) -> Any:
        """Convert a raw value to the specified type."""
        if config_type == ConfigType.INT:
            return int(value)
        elif config_type == ConfigType.FLOAT:
            return float(value)
        elif config_type == ConfigType.BOOL:
            if isinstance(value, bool):
                return value
            if isinstance(value, str):
                return value.strip().lower() in ("true", "1", "yes", "on")
            return bool(value)
        elif config_type == ConfigType.STRING:
            return str(value).strip()
        return value

    def invalidate_cache(self, key: str | None = None) -> None:
        """
        Invalidate cached values.

        Args:
            key: Specific key to invalidate, or None for all
        """
        if key is None:
            self._cache.clear()
        elif key in self._cache:
            del self._cache[key]

    def health_check(self) -> dict[str, Any]:
        """
        Perform a health check on the configuration source.

        Returns:
            Dict with status, connectivity and any issues
        """
        result: dict[str, Any] = {
            "status": "healthy",
            "database_connected": False,
            "cached_keys": len(self._cache),
            "issues": [],
        }

        if self._pb is None:
            result["issues"].append("No PocketBase client; using environment and defaults only")
            return result

        try:
            self._pb.collection("config").get_list(1, 1)
            result["database_connected"] = True
        except Exception as e:
            result["status"] = "unhealthy"
            result["issues"].append(f"Database connection failed: {e}")

        return result
