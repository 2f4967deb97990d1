"""Parametric retrieval over a closed set of element kinds.

Scalars, arrays and maps are read by column name from the live result
rather than through record bindings. Only 64-bit integers and strings
are supported as elements; map values may also be whole records.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from rowbind.adapters.protocol import RowCursor
from rowbind.core.enums import CoercionPolicy
from rowbind.core.exceptions import (
    CoercionError,
    MissingFieldError,
    ShapeError,
    UnsupportedKindError,
)
from rowbind.mapping.binding import TypeMappingCache, new_record
from rowbind.mapping.materialize import require_single_column, row_values
from rowbind.mapping.scan import (
    INT64_MAX,
    INT64_MIN,
    Discard,
    NullInt64,
    NullString,
    ScanTarget,
    adapter_for,
)

logger = logging.getLogger(__name__)


def _parse_int64(text: str) -> int:
    number = int(text.strip(), 10)
    if not INT64_MIN <= number <= INT64_MAX:
        raise ValueError(f"{number} is out of the int64 range")
    return number


class ElementKind(Enum):
    """Supported element kinds, each carrying its zero value and converters."""

    INT64 = ("int64", 0, NullInt64, _parse_int64)
    STRING = ("string", "", NullString, str)

    def __init__(self, label: str, zero: Any, target_type: type[ScanTarget], parser: Any) -> None:
        self.label = label
        self.zero = zero
        self.target_type = target_type
        self.parser = parser

    @classmethod
    def of(cls, kind: Any) -> ElementKind:
        """Resolve an ElementKind member or the builtins int and str."""
        if isinstance(kind, ElementKind):
            return kind
        if kind is int:
            return ElementKind.INT64
        if kind is str:
            return ElementKind.STRING
        raise UnsupportedKindError(getattr(kind, "__name__", repr(kind)))

    def target(self) -> ScanTarget:
        return self.target_type()

    def coerce(self, value: Any) -> Any:
        """Convert a scanned, non-NULL value into this kind; ValueError on failure."""
        if self is ElementKind.STRING:
            return value if isinstance(value, str) else str(value)
        if isinstance(value, int) and not isinstance(value, bool):
            if not INT64_MIN <= value <= INT64_MAX:
                raise ValueError(f"{value} is out of the int64 range")
            return value
        return self.parser(str(value))


def _column_index(columns: list[str], field_name: str, role: str) -> int:
    try:
        return columns.index(field_name)
    except ValueError:
        raise MissingFieldError(role, field_name) from None


def first_col_any(cursor: RowCursor, kind: ElementKind) -> tuple[Any, bool]:
    """Read the single column of the first row.

    ``(zero, False)`` means no row; ``(zero, True)`` means the row held NULL.
    """
    require_single_column(cursor)
    target = kind.target()
    if not cursor.next():
        return kind.zero, False
    cursor.scan([target])
    return (target.value if target.valid else kind.zero), True


def find_array(cursor: RowCursor, kind: ElementKind, field_name: str) -> list[Any] | None:
    """Collect the non-NULL values of one column.

    The column is resolved before any row is read. Returns None when no
    value was collected (no rows, or only NULLs).
    """
    columns = cursor.columns()
    field_index = _column_index(columns, field_name, "field")

    targets: list[ScanTarget] = [Discard() for _ in columns]
    targets[field_index] = kind.target()
    field_target = targets[field_index]

    results: list[Any] = []
    while cursor.next():
        cursor.scan(targets)
        if field_target.valid:
            results.append(field_target.value)

    if not results:
        return None
    return results


def resolve_map_kinds(
    key_kind: Any,
    value_type: Any,
    key_field: str,
    value_field: str,
    cache: TypeMappingCache,
) -> tuple[ElementKind, ElementKind | None]:
    """Validate a find_map request before it is executed.

    Returns the key kind and the value kind, the latter None when whole
    rows are materialized as records.
    """
    if key_field == "":
        raise ShapeError("key_field cannot be empty")
    key = ElementKind.of(key_kind)
    if value_field == "":
        if not cache.is_record_type(value_type):
            raise ShapeError("value_field may only be empty when the value type is a record type")
        return key, None
    return key, ElementKind.of(value_type)


def _coerce_or_policy(
    kind: ElementKind,
    value: Any,
    column: str,
    coercion: CoercionPolicy,
) -> tuple[Any, bool]:
    try:
        return kind.coerce(value), True
    except ValueError as e:
        if coercion is CoercionPolicy.STRICT:
            raise CoercionError(column, str(value), kind.label) from e
        logger.debug("Cannot parse %r from column %r as %s", value, column, kind.label)
        return kind.zero, False


def find_map(
    cursor: RowCursor,
    key_kind: ElementKind,
    value_kind: ElementKind | None,
    value_type: Any,
    key_field: str,
    value_field: str,
    cache: TypeMappingCache,
    coercion: CoercionPolicy = CoercionPolicy.SKIP,
) -> dict[Any, Any] | None:
    """Build ``{key: value}`` from the result.

    With *value_kind* None every row becomes a *value_type* record;
    otherwise the value is the *value_field* column. Rows with a NULL key
    are dropped, NULL values become the zero value. Returns None when no
    entry was collected.
    """
    columns = cursor.columns()
    key_index = _column_index(columns, key_field, "key field")

    spec = None
    bindings: list[Any] = [None] * len(columns)
    targets: list[ScanTarget] = [Discard() for _ in columns]
    if value_kind is None:
        spec = cache.spec_for(value_type)
        bindings = [spec.columns.get(column) for column in columns]
        targets = [adapter_for(binding) for binding in bindings]
        # An unmapped key column is still read, just never stored on the record
        if bindings[key_index] is None:
            targets[key_index] = NullString()
        value_index = -1
    else:
        value_index = _column_index(columns, value_field, "value field")
        targets[key_index] = NullString()
        targets[value_index] = NullString()

    result: dict[Any, Any] = {}
    while cursor.next():
        cursor.scan(targets)

        key_target = targets[key_index]
        if not key_target.valid:
            continue
        key, ok = _coerce_or_policy(key_kind, key_target.value, key_field, coercion)
        if not ok:
            continue

        if spec is not None:
            value = new_record(spec, row_values(columns, bindings, targets))
        else:
            value_target = targets[value_index]
            if value_target.valid:
                value, _ = _coerce_or_policy(value_kind, value_target.value, value_field, coercion)
            else:
                value = value_kind.zero

        result[key] = value

    if not result:
        return None
    return result
