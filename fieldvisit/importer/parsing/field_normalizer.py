"""FieldNormalizer - Turns a raw spreadsheet row into form submission data."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from ..core.constants import RESERVED_DISPLAY_COLUMNS
from ..core.models import RawRow
from .field_mapping import SUPERVISION_VISIT_MAPPING, FieldMapping, TransformKind
from .value_transforms import convert_date_format, normalize_numeric, normalize_radio_value

_TRANSFORMS: dict[TransformKind, Callable[[str], str]] = {
    TransformKind.DATE: convert_date_format,
    TransformKind.BOOLEAN: normalize_radio_value,
    TransformKind.NUMERIC: normalize_numeric,
    TransformKind.PASSTHROUGH: lambda value: value,
}


class FieldNormalizer:
    """Maps columns to form field ids and applies each column's transform.

    Blank answers are left out of the result entirely; an absent key is how
    the form represents "not answered".
    """

    def __init__(
        self,
        mapping: Mapping[str, FieldMapping] | None = None,
        reserved_columns: Mapping[str, str] | None = None,
    ):
        """Initialize the normalizer.

        Args:
            mapping: Column registry (defaults to the supervision visit form)
            reserved_columns: Free-text columns kept verbatim, column -> reserved key
        """
        self.mapping = mapping if mapping is not None else SUPERVISION_VISIT_MAPPING
        self.reserved_columns = reserved_columns if reserved_columns is not None else RESERVED_DISPLAY_COLUMNS

    def build_submission_data(self, row: RawRow) -> dict[str, str]:
        """Build the submission_data payload for one row.

        Args:
            row: Parsed row keyed by header name

        Returns:
            Form field id (or reserved display key) -> transformed value
        """
        submission_data: dict[str, str] = {}

        for column, field_mapping in self.mapping.items():
            value = row.get(column)
            if value is None or not value.strip():
                continue
            submission_data[field_mapping.field_id] = _TRANSFORMS[field_mapping.transform](value)

        for column, reserved_key in self.reserved_columns.items():
            value = row.get(column)
            if value:
                submission_data[reserved_key] = value

        return submission_data

    def unmapped_columns(self, headers: list[str], known: tuple[str, ...] = ()) -> list[str]:
        """Headers that will be ignored (not mapped, reserved or otherwise known)."""
        return [h for h in headers if h not in self.mapping and h not in self.reserved_columns and h not in known]
