"""NULL-safe scan targets.

Each mapped column is scanned into a nullable holder picked from the
destination field's kind, then converted back into the field value:

    STRING   -> NullString   NULL -> ""
    INTEGER  -> NullInt64    NULL -> 0
    UNSIGNED -> NullInt64    NULL -> 0, negative values rejected
    FLOAT    -> NullFloat64  NULL -> 0.0
    BOOL     -> NullBool     NULL -> False
    OPAQUE   -> RawValue     no NULL handling, see apply()

Unmapped columns are scanned into Discard so the remaining columns keep
their positions. Targets are allocated once per query and overwritten on
every row.
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Any, get_origin

from rowbind.core.exceptions import ScanError, UnsignedUnderflowError
from rowbind.mapping.binding import FieldBinding, FieldKind
from rowbind.mapping.protocol import ValueScanner

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_TRUE_TEXT = frozenset({"1", "t", "true"})
_FALSE_TEXT = frozenset({"0", "f", "false"})


def _text(column: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ScanError(column, f"invalid UTF-8 text: {e}") from e


def _unsupported(column: str, value: Any, target: str) -> ScanError:
    return ScanError(
        column,
        f"unsupported Scan, storing driver value of type {type(value).__name__} into type {target}",
    )


class ScanTarget:
    """Nullable holder for one column of the current row."""

    zero: Any = None
    type_name = "any"

    def __init__(self) -> None:
        self.valid = False
        self.value: Any = self.zero

    def scan(self, column: str, value: Any) -> None:
        if value is None:
            self.valid = False
            self.value = self.zero
            return
        self.value = self.convert(column, value)
        self.valid = True

    def convert(self, column: str, value: Any) -> Any:
        return value


class NullString(ScanTarget):
    zero = ""
    type_name = "string"

    def convert(self, column: str, value: Any) -> str:
        if isinstance(value, (str, bytes, bytearray, memoryview)):
            return _text(column, value)
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, (datetime.date, datetime.time)):
            return value.isoformat()
        raise _unsupported(column, value, self.type_name)


class NullInt64(ScanTarget):
    zero = 0
    type_name = "int64"

    def convert(self, column: str, value: Any) -> int:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            number = value
        elif isinstance(value, float):
            if not value.is_integer():
                raise ScanError(
                    column, f"converting driver value {value!r} to int64: invalid syntax"
                )
            number = int(value)
        elif isinstance(value, Decimal):
            if not value.is_finite() or value != value.to_integral_value():
                raise ScanError(column, f"converting driver value {value} to int64: invalid syntax")
            number = int(value)
        elif isinstance(value, (str, bytes, bytearray, memoryview)):
            text = _text(column, value).strip()
            try:
                number = int(text, 10)
            except ValueError as e:
                raise ScanError(
                    column, f"converting driver value {text!r} to int64: invalid syntax"
                ) from e
        else:
            raise _unsupported(column, value, self.type_name)
        if not INT64_MIN <= number <= INT64_MAX:
            raise ScanError(
                column, f"converting driver value {number} to int64: value out of range"
            )
        return number


class NullFloat64(ScanTarget):
    zero = 0.0
    type_name = "float64"

    def convert(self, column: str, value: Any) -> float:
        if isinstance(value, bool):
            raise _unsupported(column, value, self.type_name)
        if isinstance(value, (int, float, Decimal)):
            return float(value)
        if isinstance(value, (str, bytes, bytearray, memoryview)):
            text = _text(column, value).strip()
            try:
                return float(text)
            except ValueError as e:
                raise ScanError(
                    column, f"converting driver value {text!r} to float64: invalid syntax"
                ) from e
        raise _unsupported(column, value, self.type_name)


class NullBool(ScanTarget):
    zero = False
    type_name = "bool"

    def convert(self, column: str, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, Decimal)) and value in (0, 1):
            return bool(value)
        if isinstance(value, (str, bytes, bytearray, memoryview)):
            text = _text(column, value).strip().lower()
            if text in _TRUE_TEXT:
                return True
            if text in _FALSE_TEXT:
                return False
        raise ScanError(column, f"couldn't convert {value!r} into type bool")


class RawValue(ScanTarget):
    """Keeps the driver value untouched, NULL included."""

    def scan(self, column: str, value: Any) -> None:
        self.valid = value is not None
        self.value = value


class Discard(ScanTarget):
    """Consumes an unmapped column."""

    def scan(self, column: str, value: Any) -> None:
        return None


_TARGETS: dict[FieldKind, type[ScanTarget]] = {
    FieldKind.STRING: NullString,
    FieldKind.INTEGER: NullInt64,
    FieldKind.UNSIGNED: NullInt64,
    FieldKind.FLOAT: NullFloat64,
    FieldKind.BOOL: NullBool,
    FieldKind.OPAQUE: RawValue,
}


def adapter_for(binding: FieldBinding | None) -> ScanTarget:
    """Return a fresh scan target for a field, or Discard for an unmapped column."""
    if binding is None:
        return Discard()
    return _TARGETS[binding.kind]()


def apply(target: ScanTarget, binding: FieldBinding, column: str) -> Any:
    """Convert a scanned target into the value stored on the field."""
    if binding.kind is FieldKind.OPAQUE:
        return _apply_opaque(target.value, binding, column)
    if not target.valid:
        return binding.zero
    if binding.kind is FieldKind.UNSIGNED and target.value < 0:
        raise UnsignedUnderflowError(column, target.value)
    return target.value


def _apply_opaque(raw: Any, binding: FieldBinding, column: str) -> Any:
    """Hand the raw value to a custom field type.

    NULL handling is the field type's responsibility here: a type with
    ``from_db`` receives ``None`` itself, a plain class only accepts NULL
    when the field is annotated as optional.
    """
    base = binding.annotation
    from_db = getattr(base, "from_db", None)
    if callable(from_db):
        scanner: type[ValueScanner[Any]] = base
        try:
            return scanner.from_db(raw)
        except ScanError:
            raise
        except Exception as e:
            raise ScanError(column, str(e)) from e

    if get_origin(base) is not None or not isinstance(base, type):
        return raw
    if raw is None:
        if binding.nullable:
            return None
        raise ScanError(column, f"cannot store NULL into type {base.__name__}")
    if base is bytes and isinstance(raw, (bytearray, memoryview, str)):
        return raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)
    if isinstance(raw, base):
        return raw
    raise _unsupported(column, raw, base.__name__)
