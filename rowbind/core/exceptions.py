"""rowbind exception hierarchy.

All exceptions are rowbind-specific. Raw driver exceptions are never
exposed to callers; they are chained as ``__cause__``.
"""

from __future__ import annotations


class RowBindError(Exception):
    """Base exception for all rowbind errors."""


# --- Execution ---


class ExecutionError(RowBindError):
    """Base for query execution errors."""


class PrepareError(ExecutionError):
    """Raised when the driver refuses to prepare a statement."""

    def __init__(self, query: str, detail: str) -> None:
        self.query = query
        super().__init__(f"failed to prepare query: {detail}")


class QueryExecutionError(ExecutionError):
    """Raised when a prepared statement fails to execute."""

    def __init__(self, query: str, detail: str) -> None:
        self.query = query
        super().__init__(f"failed to execute query: {detail}")


class RowIterationError(ExecutionError):
    """Raised when the driver fails while fetching rows or result sets."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"rows iteration error: {detail}")


# --- Mapping ---


class MappingError(RowBindError):
    """Base for mapping errors."""


class ShapeError(MappingError):
    """Raised when a destination has the wrong shape for the operation."""


class ColumnMismatchError(MappingError):
    """Raised when the result columns disagree with the destination."""


class ScanError(MappingError):
    """Raised when a column value cannot be stored into its scan target."""

    def __init__(self, column: str, detail: str) -> None:
        self.column = column
        self.detail = detail
        super().__init__(f"failed to scan column '{column}': {detail}")


class UnsignedUnderflowError(ScanError):
    """Raised when a negative integer is stored into an unsigned field."""

    def __init__(self, column: str, value: int) -> None:
        self.value = value
        super().__init__(column, f"cannot convert negative value {value} to unsigned type")


class UnsupportedKindError(MappingError):
    """Raised when a scalar destination kind is outside the supported set."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"unsupported type: {kind}")


class MissingFieldError(MappingError):
    """Raised when a named field is absent from the live column list."""

    def __init__(self, role: str, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"{role} '{field_name}' not found in query results")


class TooManyResultSetsError(MappingError):
    """Raised when a procedure yields more result sets than destinations."""

    def __init__(self, expected: int) -> None:
        self.expected = expected
        super().__init__(f"too many result sets, expected {expected}")


class CoercionError(MappingError):
    """Raised in strict mode when a map key or value cannot be parsed."""

    def __init__(self, column: str, raw: str, target: str) -> None:
        self.column = column
        self.raw = raw
        super().__init__(f"cannot parse {raw!r} from column '{column}' as {target}")


# --- Adapter ---


class AdapterError(RowBindError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
