"""Parse delimited spreadsheet exports into rows keyed by header name."""

from __future__ import annotations

import csv
import io
import logging

from ..core.models import RawRow

logger = logging.getLogger(__name__)

_BYTE_ORDER_MARK = "\ufeff"


def _is_blank(values: list[str]) -> bool:
    return not values or (len(values) == 1 and not values[0].strip())


def parse_table(text: str, delimiter: str = ",") -> list[RawRow]:
    """Parse delimited text whose first line is the header.

    Quoted fields may contain the delimiter and line breaks; a doubled quote
    inside a quoted field is one literal quote. Values and header names are
    trimmed. Blank lines are skipped and never become rows. Missing trailing
    values read as "" and values beyond the header are dropped.

    Args:
        text: Raw file contents
        delimiter: Single-character field delimiter

    Returns:
        Rows in file order, or [] when there is no header plus at least one row
    """
    if text.startswith(_BYTE_ORDER_MARK):
        text = text[len(_BYTE_ORDER_MARK) :]

    reader = csv.reader(io.StringIO(text), delimiter=delimiter, quotechar='"', doublequote=True, skipinitialspace=True)
    lines = [values for values in reader if not _is_blank(values)]
    if len(lines) < 2:
        return []

    headers = [h.strip() for h in lines[0]]
    rows: list[RawRow] = []
    for values in lines[1:]:
        row: RawRow = {}
        for index, header in enumerate(headers):
            row[header] = values[index].strip() if index < len(values) else ""
        rows.append(row)

    logger.debug(f"Parsed {len(rows)} rows with {len(headers)} columns")
    return rows
