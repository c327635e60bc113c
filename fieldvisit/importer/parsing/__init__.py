"""Parsing and normalization of spreadsheet exports."""

from __future__ import annotations

from .field_mapping import SUPERVISION_VISIT_MAPPING, FieldMapping, TransformKind, build_registry
from .field_normalizer import FieldNormalizer
from .tabular_parser import parse_table

__all__ = [
    "SUPERVISION_VISIT_MAPPING",
    "FieldMapping",
    "FieldNormalizer",
    "TransformKind",
    "build_registry",
    "parse_table",
]
