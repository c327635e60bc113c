"""PocketBase filter helpers."""

from __future__ import annotations

from collections.abc import Iterable


def escape_filter_value(value: str) -> str:
    """Escape a string value for use in single-quoted PocketBase filter literals.

    Backslashes and single quotes are backslash-escaped (O'Brien -> O\\'Brien)
    so a code cannot break out of its literal.
    """
    return value.replace("\\", "\\\\").replace("'", "\\'")


def any_of(field: str, values: Iterable[str]) -> str:
    """Build "(field = 'a' || field = 'b')" for a chunk of values."""
    clauses = [f"{field} = '{escape_filter_value(v)}'" for v in values]
    if not clauses:
        raise ValueError(f"any_of({field!r}) needs at least one value")
    return "(" + " || ".join(clauses) + ")"


def equals(field: str, value: str) -> str:
    return f"{field} = '{escape_filter_value(value)}'"
