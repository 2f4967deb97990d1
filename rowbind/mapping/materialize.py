"""Row materializer.

Drives a row cursor into records, lists of records, or a single scalar.
All entry points share one loop shape: read the column list once, build
one scan target per column once, then for every row scan and copy the
targets out into the destination.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from rowbind.adapters.protocol import RowCursor
from rowbind.core.exceptions import (
    ColumnMismatchError,
    ScanError,
    UnsignedUnderflowError,
    UnsupportedKindError,
)
from rowbind.mapping.binding import (
    FieldBinding,
    RecordSpec,
    TypeMappingCache,
    assign_fields,
    new_record,
)
from rowbind.mapping.scan import (
    NullFloat64,
    NullInt64,
    NullString,
    ScanTarget,
    adapter_for,
    apply,
)


class ScalarType(Enum):
    """Destination kinds accepted by single-column scalar reads."""

    STRING = "string"
    INT = "int"
    INT64 = "int64"
    FLOAT64 = "float64"
    INT8 = "int8"
    UINT8 = "uint8"

    @classmethod
    def of(cls, scalar_type: Any) -> ScalarType:
        """Resolve a ScalarType member or one of the builtins str, int, float."""
        if isinstance(scalar_type, ScalarType):
            return scalar_type
        builtin = _BUILTIN_SCALARS.get(scalar_type)
        if builtin is None:
            raise UnsupportedKindError(getattr(scalar_type, "__name__", repr(scalar_type)))
        return builtin

    def target(self) -> ScanTarget:
        if self is ScalarType.STRING:
            return NullString()
        if self is ScalarType.FLOAT64:
            return NullFloat64()
        return NullInt64()

    def value_of(self, target: ScanTarget, column: str) -> Any:
        """Read a scanned target, NULL becoming the zero value."""
        value = target.value
        if self is ScalarType.INT8 and not -128 <= value <= 127:
            raise ScanError(column, f"converting driver value {value} to int8: value out of range")
        if self is ScalarType.UINT8:
            if value < 0:
                raise UnsignedUnderflowError(column, value)
            if value > 255:
                raise ScanError(
                    column, f"converting driver value {value} to uint8: value out of range"
                )
        return value


_BUILTIN_SCALARS: dict[Any, ScalarType] = {
    str: ScalarType.STRING,
    int: ScalarType.INT,
    float: ScalarType.FLOAT64,
}


def require_single_column(cursor: RowCursor) -> str:
    """Return the only column name, or raise ColumnMismatchError."""
    columns = cursor.columns()
    if len(columns) != 1:
        raise ColumnMismatchError(
            f"expected a single column result, but got {len(columns)} columns"
        )
    return columns[0]


def _scan_plan(
    cursor: RowCursor, spec: RecordSpec
) -> tuple[list[str], list[FieldBinding | None], list[ScanTarget]]:
    columns = cursor.columns()
    bindings = [spec.columns.get(column) for column in columns]
    targets = [adapter_for(binding) for binding in bindings]
    return columns, bindings, targets


def row_values(
    columns: list[str],
    bindings: list[FieldBinding | None],
    targets: list[ScanTarget],
) -> dict[str, Any]:
    """Field name -> value for every mapped column of the scanned row."""
    values: dict[str, Any] = {}
    for column, binding, target in zip(columns, bindings, targets, strict=True):
        if binding is not None:
            values[binding.name] = apply(target, binding, column)
    return values


def materialize_many(cursor: RowCursor, record_type: type, cache: TypeMappingCache) -> list[Any]:
    """Build one *record_type* instance per remaining row of the result set.

    Rows are accumulated locally; nothing is returned unless every row was
    read and converted.
    """
    spec = cache.spec_for(record_type)
    columns, bindings, targets = _scan_plan(cursor, spec)

    results: list[Any] = []
    while cursor.next():
        cursor.scan(targets)
        results.append(new_record(spec, row_values(columns, bindings, targets)))
    return results


def materialize_one(cursor: RowCursor, dest: Any, cache: TypeMappingCache) -> bool:
    """Fill *dest* in place from the next row.

    Returns False and leaves *dest* untouched when there is no row.
    """
    spec = cache.spec_for(type(dest))
    columns, bindings, targets = _scan_plan(cursor, spec)

    if not cursor.next():
        return False
    cursor.scan(targets)
    assign_fields(spec, dest, row_values(columns, bindings, targets))
    return True


def materialize_scalar(cursor: RowCursor, scalar_type: Any) -> tuple[Any, bool]:
    """Read the single column of the first row as ``(value, found)``.

    SQL NULL yields the zero value with found=True.
    """
    scalar = ScalarType.of(scalar_type)
    column = require_single_column(cursor)
    target = scalar.target()

    if not cursor.next():
        return target.zero, False
    cursor.scan([target])
    return scalar.value_of(target, column), True
