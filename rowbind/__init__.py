"""rowbind - map MySQL query results onto Python records."""

from __future__ import annotations

from rowbind.core.connection import ConnectionConfig, ConnectionManager
from rowbind.core.engine import Client
from rowbind.core.enums import CoercionPolicy, DatabaseBackend, ResultShape
from rowbind.core.exceptions import (
    AdapterError,
    CoercionError,
    ColumnMismatchError,
    ConnectionError,  # noqa: A004
    ExecutionError,
    MappingError,
    MissingFieldError,
    PoolError,
    PrepareError,
    QueryExecutionError,
    RowBindError,
    RowIterationError,
    ScanError,
    ShapeError,
    TooManyResultSetsError,
    UnsignedUnderflowError,
    UnsupportedKindError,
)
from rowbind.core.params import call_statement
from rowbind.core.trace import TraceSink, log_sql
from rowbind.mapping import (
    Column,
    ElementKind,
    Rows,
    ScalarType,
    TypeMappingCache,
    UInt,
    Unsigned,
    ValueScanner,
)

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    # Client
    "Client",
    "TraceSink",
    "log_sql",
    "call_statement",
    # Mapping
    "Column",
    "Unsigned",
    "UInt",
    "Rows",
    "ScalarType",
    "ElementKind",
    "TypeMappingCache",
    "ValueScanner",
    # Enums
    "DatabaseBackend",
    "ResultShape",
    "CoercionPolicy",
    # Exceptions
    "RowBindError",
    "ExecutionError",
    "PrepareError",
    "QueryExecutionError",
    "RowIterationError",
    "MappingError",
    "ShapeError",
    "ColumnMismatchError",
    "ScanError",
    "UnsignedUnderflowError",
    "UnsupportedKindError",
    "MissingFieldError",
    "TooManyResultSetsError",
    "CoercionError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
