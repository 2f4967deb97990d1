"""Mapping layer - move driver rows into records, scalars, arrays, maps and JSON."""

from __future__ import annotations

from rowbind.mapping.binding import (
    Column,
    FieldBinding,
    FieldKind,
    TypeMappingCache,
    UInt,
    Unsigned,
)
from rowbind.mapping.dispatch import Rows
from rowbind.mapping.generic import ElementKind
from rowbind.mapping.materialize import ScalarType
from rowbind.mapping.protocol import ValueScanner

__all__ = [
    "Column",
    "Unsigned",
    "UInt",
    "FieldKind",
    "FieldBinding",
    "TypeMappingCache",
    "Rows",
    "ScalarType",
    "ElementKind",
    "ValueScanner",
]
