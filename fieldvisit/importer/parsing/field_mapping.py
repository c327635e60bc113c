"""Spreadsheet column -> form field registry.

Every mapped column names its form field id and the transform applied to its
values. The registry is the only place that decides how a column is treated;
columns not listed here are ignored by the normalizer, and a listed column
with PASSTHROUGH is stored as written.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class TransformKind(Enum):
    """How a column's raw values are rewritten before storage"""

    DATE = "date"
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class FieldMapping:
    """One spreadsheet column bound to a form field"""

    column: str
    field_id: str
    transform: TransformKind = TransformKind.PASSTHROUGH


_D = TransformKind.DATE
_B = TransformKind.BOOLEAN
_N = TransformKind.NUMERIC
_P = TransformKind.PASSTHROUGH

_SUPERVISION_VISIT_FIELDS = (
    FieldMapping("Paper rolls delivered?", "field_1767077946750", _B),
    FieldMapping("Transaction registers delivered", "field_1767083181197", _N),
    FieldMapping("Posters delivered", "field_1767083181749", _N),
    FieldMapping("Light branding delivered", "field_1767083182261", _N),
    FieldMapping("Normal Supervision", "field_1767083182973", _B),
    FieldMapping("Engagement Report", "field_1767083182645", _P),
    FieldMapping("Agent Active?", "field_1767083183310", _B),
    FieldMapping("Outlet Open?", "field_1767083183678", _B),
    FieldMapping("Agent At Same Location", "field_1767083184006", _B),
    FieldMapping("Handlers Name", "field_1767083184286", _P),
    FieldMapping("Handlers Contact", "field_1767083184573", _P),
    FieldMapping("Has ABS Board", "field_1767083184879", _P),
    FieldMapping("Has Agent Number Sticker", "field_1767083185190", _P),
    FieldMapping("Has Agent Helpline number", "field_1767083185573", _P),
    FieldMapping("Has Tarriff guide", "field_1767083185965", _P),
    FieldMapping("Are records well maintained", "field_1767083186470", _P),
    FieldMapping("Is the Transaction register signed", "field_1767083186893", _P),
    FieldMapping("POS statement and transactions matching", "field_1767083187309", _P),
    FieldMapping("Devices available and working", "field_1767083187654", _P),
    FieldMapping("Operator well Trained", "field_1767083188062", _P),
    FieldMapping("Customer Information handled securely", "field_1767083188526", _P),
    FieldMapping("Recorded as per bank regulations", "field_1767083188957", _P),
    FieldMapping("Is NIN recorded", "field_1767083189485", _P),
    FieldMapping("Has Valid Trading License", "field_1767083190109", _P),
    FieldMapping("Unresolved claims", "field_1767083190702", _P),
    FieldMapping("Is Outlet clean & secure", "field_1767083194046", _P),
    FieldMapping("Agent has regulatory posters", "field_1767083194629", _P),
    FieldMapping("Agent has receipt rolls", "field_1767083195253", _P),
    FieldMapping("Agent has a transaction register", "field_1767083196013", _P),
    FieldMapping("Date of POS Last Transaction", "field_1767083197878", _D),
    FieldMapping("Date of Registor Book Last Transaction", "field_1767083200327", _D),
    FieldMapping("Agent business location", "field_1770163307666", _P),
    FieldMapping("Gender of operator", "field_1770163309609", _P),
    FieldMapping("Received a Naaki Copy?", "field_1770160606623", _B),
    FieldMapping("Rate of the Comic Book", "field_1770160610531", _N),
    FieldMapping("How often to receive a copy of Naaki", "field_1770160735058", _P),
    FieldMapping("Content You want to see In Naaki?", "field_1770160736700", _B),
    FieldMapping("Have PDP Certificate?", "field_1770160737730", _B),
)


def build_registry(mappings: tuple[FieldMapping, ...] | list[FieldMapping]) -> Mapping[str, FieldMapping]:
    """Index mappings by column name.

    Raises:
        ValueError: If a column or field id appears twice
    """
    by_column: dict[str, FieldMapping] = {}
    field_ids: set[str] = set()
    for mapping in mappings:
        if mapping.column in by_column:
            raise ValueError(f"Column mapped twice: {mapping.column!r}")
        if mapping.field_id in field_ids:
            raise ValueError(f"Field id mapped twice: {mapping.field_id!r}")
        by_column[mapping.column] = mapping
        field_ids.add(mapping.field_id)
    return MappingProxyType(by_column)


SUPERVISION_VISIT_MAPPING: Mapping[str, FieldMapping] = build_registry(_SUPERVISION_VISIT_FIELDS)
