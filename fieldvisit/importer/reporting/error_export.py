"""Render the import error log as CSV for download."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable

from ..core.models import RowError

ERROR_EXPORT_HEADER = ("Row", "Error", "Data")


def errors_to_csv(errors: Iterable[RowError]) -> str:
    """Build a Row,Error,Data CSV.

    Data is the JSON form of the offending values (empty when there are
    none). Text cells are always quoted with embedded quotes doubled, so the
    JSON survives spreadsheet round trips.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(ERROR_EXPORT_HEADER)
    for error in errors:
        data = json.dumps(error.data, ensure_ascii=False) if error.data is not None else ""
        writer.writerow([error.row, error.error, data])
    return buffer.getvalue()
