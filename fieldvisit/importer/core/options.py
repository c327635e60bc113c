"""Per-run import options resolved from configuration."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from fieldvisit.config import CONFIG_SCHEMA, ConfigLoader, ValidationError


def _default(key: str) -> Any:
    return CONFIG_SCHEMA[key].default


@dataclass(frozen=True)
class ImportOptions:
    """Tunables for one import run.

    Attributes:
        form_id: Form that imported submissions belong to
        batch_size: Rows per batched insert
        lookup_chunk_size: Codes or ids per lookup query
        preview_rows: Rows mapped by preview
        max_concurrent_batches: Batch inserts allowed in flight at once
        request_timeout_seconds: Timeout for each store round trip
        retry_failed_batches_per_row: Retry failed batches row by row
        delimiter: Field delimiter of the input text
    """

    form_id: str = _default("import.form_id")
    batch_size: int = _default("import.batch_size")
    lookup_chunk_size: int = _default("import.lookup_chunk_size")
    preview_rows: int = _default("import.preview_rows")
    max_concurrent_batches: int = _default("import.max_concurrent_batches")
    request_timeout_seconds: float = _default("import.request_timeout_seconds")
    retry_failed_batches_per_row: bool = _default("import.retry_failed_batches_per_row")
    delimiter: str = ","

    @classmethod
    def from_config(cls, loader: ConfigLoader, **overrides: Any) -> ImportOptions:
        """Build options from the config loader, then apply explicit overrides.

        Overrides set to None are ignored so callers can pass optional
        arguments straight through.

        Raises:
            ValidationError: If an override fails schema validation
        """
        options = cls(
            form_id=loader.get_str("import.form_id"),
            batch_size=loader.get_int("import.batch_size"),
            lookup_chunk_size=loader.get_int("import.lookup_chunk_size"),
            preview_rows=loader.get_int("import.preview_rows"),
            max_concurrent_batches=loader.get_int("import.max_concurrent_batches"),
            request_timeout_seconds=loader.get_float("import.request_timeout_seconds"),
            retry_failed_batches_per_row=loader.get_bool("import.retry_failed_batches_per_row"),
        )
        return options.with_overrides(**overrides)

    def with_overrides(self, **overrides: Any) -> ImportOptions:
        """Return a copy with the non-None overrides applied and validated."""
        changes = {name: value for name, value in overrides.items() if value is not None}
        for name, value in changes.items():
            schema = CONFIG_SCHEMA.get(f"import.{name}")
            if schema is None:
                continue
            error = schema.validate(value)
            if error:
                raise ValidationError(f"Invalid {name}: {error}")
        return replace(self, **changes)
