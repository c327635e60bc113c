"""Code -> id resolution for import runs."""

from __future__ import annotations

from .entity_resolver import EntityResolver, chunked, distinct_codes

__all__ = ["EntityResolver", "chunked", "distinct_codes"]
