"""Value transforms applied to spreadsheet cells.

Each transform is soft: input it does not recognise is returned unchanged so
the problem stays visible in the stored answer instead of dropping the row.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, datetime

_DAY_FIRST_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DAY_FIRST_DATETIME = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})[ T](\d{1,2}):(\d{2})(?::(\d{2}))?$")
_LEADING_INT = re.compile(r"^[+-]?\d+")

# Lower-cased answer -> canonical radio option
_RADIO_VALUES = {
    "yes": "Yes",
    "y": "Yes",
    "true": "Yes",
    "1": "Yes",
    "no": "No",
    "n": "No",
    "false": "No",
    "0": "No",
    "unable to determine": "Unable to Determine",
    "unknown": "Unable to Determine",
    "n/a": "Unable to Determine",
}


def normalize_radio_value(value: str) -> str:
    """Map yes/no style answers onto the form's radio options.

    Args:
        value: Raw cell value

    Returns:
        "Yes", "No", "Unable to Determine", or the value unchanged
    """
    return _RADIO_VALUES.get(value.strip().lower(), value)


def convert_date_format(value: str) -> str:
    """Rewrite a DD/MM/YYYY date as YYYY-MM-DD.

    Day and month are zero-padded. Anything else is returned unchanged.
    """
    match = _DAY_FIRST_DATE.match(value.strip())
    if not match:
        return value
    day, month, year = match.groups()
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def normalize_numeric(value: str) -> str:
    """Re-serialize a number in canonical form ("5.0" -> "5", "2.50" -> "2.5").

    Non-numeric and non-finite input is returned unchanged.
    """
    try:
        number = float(value.strip())
    except ValueError:
        return value
    if not math.isfinite(number):
        return value
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    return repr(number)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a submission timestamp into an aware UTC datetime.

    Handles:
    - Day-first dates: "01/03/2024"
    - Day-first with time: "01/03/2024 14:30" or "01/03/2024 14:30:05"
    - ISO dates and datetimes: "2024-03-01", "2024-03-01T14:30:00Z"

    Naive values are taken as UTC.

    Returns:
        Parsed datetime or None if the value is blank or unparseable
    """
    if not value or not value.strip():
        return None
    text = value.strip()

    match = _DAY_FIRST_DATETIME.match(text) or _DAY_FIRST_DATE.match(text)
    if match:
        parts = [int(p) if p else 0 for p in match.groups()]
        day, month, year = parts[:3]
        hour, minute, second = (parts[3:] + [0, 0, 0])[:3]
        try:
            return datetime(year, month, day, hour, minute, second, tzinfo=UTC)
        except ValueError:
            return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_cycle(value: str | None, default: int) -> int:
    """Read a visit/cycle number from its leading digits ("2", "2.0", "3rd").

    Blank, non-numeric and non-positive values fall back to the default.
    """
    if not value:
        return default
    match = _LEADING_INT.match(value.strip())
    if not match:
        return default
    cycle = int(match.group(0))
    return cycle if cycle > 0 else default


def parse_coordinate(value: str | None) -> float | None:
    """Parse a latitude or longitude cell; blank or invalid gives None."""
    if not value or not value.strip():
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def is_affirmative_flag(value: str | None) -> bool:
    """True only for an approval flag cell reading "true" (any case)."""
    return value is not None and value.strip().lower() == "true"
