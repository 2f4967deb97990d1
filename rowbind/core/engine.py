"""Query execution client.

The Client traces a statement, borrows a pooled connection, prepares and
executes through the adapter, then hands the row cursor to one of the
mapping routines. Cursor, statement and connection are released on every
exit path.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import ExitStack, contextmanager
from typing import Any, TypeVar

from rowbind.adapters.protocol import RowCursor
from rowbind.core.connection import ConnectionConfig, ConnectionManager
from rowbind.core.enums import CoercionPolicy, ResultShape
from rowbind.core.exceptions import PrepareError, QueryExecutionError, ShapeError
from rowbind.core.params import call_statement
from rowbind.core.trace import TraceSink, emit, log_sql
from rowbind.mapping.binding import TypeMappingCache
from rowbind.mapping.dispatch import check_destinations, dispatch
from rowbind.mapping.generic import (
    ElementKind,
    find_array,
    find_map,
    first_col_any,
    resolve_map_kinds,
)
from rowbind.mapping.materialize import (
    ScalarType,
    materialize_many,
    materialize_one,
    materialize_scalar,
)
from rowbind.mapping.projection import project

T = TypeVar("T")


class Client:
    """Synchronous data-mapping client.

    Safe to share between threads: connections come from the pool and the
    type mapping cache tolerates concurrent readers.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        *,
        tracer: TraceSink | None = None,
        cache: TypeMappingCache | None = None,
    ) -> None:
        self._connection_manager = connection_manager
        if tracer is None and connection_manager.config.debug:
            tracer = log_sql
        self._tracer = tracer
        self._cache = cache if cache is not None else TypeMappingCache()

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        *,
        tracer: TraceSink | None = None,
    ) -> Client:
        """Create a Client from a ConnectionConfig.

        Args:
            config: ConnectionConfig instance
            tracer: optional sink called with every statement before it runs;
                defaults to SQL logging when ``config.debug`` is set

        Returns:
            Client instance
        """
        return cls(ConnectionManager(config), tracer=tracer)

    @property
    def cache(self) -> TypeMappingCache:
        return self._cache

    @contextmanager
    def _query(self, query: str, args: Sequence[Any]) -> Iterator[tuple[Any, RowCursor]]:
        args = tuple(args)
        emit(self._tracer, query, args)

        with ExitStack() as stack:
            conn = stack.enter_context(self._connection_manager.get_connection())
            adapter = self._connection_manager.adapter
            try:
                statement = adapter.prepare(conn, query)
            except Exception as e:
                raise PrepareError(query, str(e)) from e
            stack.callback(statement.close)

            try:
                cursor = statement.execute(args)
            except Exception as e:
                raise QueryExecutionError(query, str(e)) from e
            stack.callback(cursor.close)

            yield conn, cursor

    def _commit(self, conn: Any, query: str) -> None:
        try:
            conn.commit()
        except Exception as e:
            raise QueryExecutionError(query, str(e)) from e

    # --- Records ---

    def find(self, record_type: type[T], query: str, *args: Any) -> list[T]:
        """Return one *record_type* instance per row; ``[]`` when no rows match."""
        if not self._cache.is_record_type(record_type):
            raise ShapeError(f"find expects a record type, got {record_type!r}")
        with self._query(query, args) as (_, cursor):
            return materialize_many(cursor, record_type, self._cache)

    def find_proc(self, record_type: type[T], proc_name: str, *args: Any) -> list[T]:
        return self.find(record_type, call_statement(proc_name, len(args)), *args)

    def first(self, dest: Any, query: str, *args: Any) -> bool:
        """Fill *dest* in place from the first row.

        Returns False, leaving *dest* untouched, when no row matches.
        """
        if isinstance(dest, type) or not self._cache.is_record_type(type(dest)):
            raise ShapeError(f"first expects a record instance, got {dest!r}")
        with self._query(query, args) as (_, cursor):
            return materialize_one(cursor, dest, self._cache)

    def first_proc(self, dest: Any, proc_name: str, *args: Any) -> bool:
        return self.first(dest, call_statement(proc_name, len(args)), *args)

    def first_col(self, scalar_type: Any, query: str, *args: Any) -> tuple[Any, bool]:
        """Read a single-column, first-row scalar as ``(value, found)``."""
        scalar = ScalarType.of(scalar_type)
        with self._query(query, args) as (_, cursor):
            return materialize_scalar(cursor, scalar)

    def first_col_proc(self, scalar_type: Any, proc_name: str, *args: Any) -> tuple[Any, bool]:
        return self.first_col(scalar_type, call_statement(proc_name, len(args)), *args)

    def find_multiple_proc(self, destinations: Sequence[Any], proc_name: str, *args: Any) -> None:
        """Call a procedure and route each of its result sets to a destination.

        ``Rows(record_type)`` entries receive all rows of their set, record
        instances receive the first row. Unused trailing destinations are
        left untouched.
        """
        check_destinations(destinations, self._cache)
        with self._query(call_statement(proc_name, len(args)), args) as (_, cursor):
            dispatch(cursor, destinations, self._cache)

    # --- Generic scalars, arrays and maps ---

    def first_col_any(self, kind: Any, query: str, *args: Any) -> tuple[Any, bool]:
        element = ElementKind.of(kind)
        with self._query(query, args) as (_, cursor):
            return first_col_any(cursor, element)

    def first_col_proc_any(self, kind: Any, proc_name: str, *args: Any) -> tuple[Any, bool]:
        return self.first_col_any(kind, call_statement(proc_name, len(args)), *args)

    def first_col_int64(self, query: str, *args: Any) -> tuple[int, bool]:
        return self.first_col_any(ElementKind.INT64, query, *args)

    def first_col_string(self, query: str, *args: Any) -> tuple[str, bool]:
        return self.first_col_any(ElementKind.STRING, query, *args)

    def first_col_proc_int64(self, proc_name: str, *args: Any) -> tuple[int, bool]:
        return self.first_col_proc_any(ElementKind.INT64, proc_name, *args)

    def first_col_proc_string(self, proc_name: str, *args: Any) -> tuple[str, bool]:
        return self.first_col_proc_any(ElementKind.STRING, proc_name, *args)

    def find_array(self, kind: Any, field_name: str, query: str, *args: Any) -> list[Any] | None:
        """Collect the non-NULL values of column *field_name*; None when there are none."""
        element = ElementKind.of(kind)
        with self._query(query, args) as (_, cursor):
            return find_array(cursor, element, field_name)

    def find_proc_array(
        self, kind: Any, field_name: str, proc_name: str, *args: Any
    ) -> list[Any] | None:
        return self.find_array(kind, field_name, call_statement(proc_name, len(args)), *args)

    def find_array_int64(self, field_name: str, query: str, *args: Any) -> list[int] | None:
        return self.find_array(ElementKind.INT64, field_name, query, *args)

    def find_array_string(self, field_name: str, query: str, *args: Any) -> list[str] | None:
        return self.find_array(ElementKind.STRING, field_name, query, *args)

    def find_proc_array_int64(
        self, field_name: str, proc_name: str, *args: Any
    ) -> list[int] | None:
        return self.find_proc_array(ElementKind.INT64, field_name, proc_name, *args)

    def find_proc_array_string(
        self, field_name: str, proc_name: str, *args: Any
    ) -> list[str] | None:
        return self.find_proc_array(ElementKind.STRING, field_name, proc_name, *args)

    def find_map(
        self,
        key_kind: Any,
        value_type: Any,
        key_field: str,
        value_field: str,
        query: str,
        *args: Any,
        coercion: CoercionPolicy = CoercionPolicy.SKIP,
    ) -> dict[Any, Any] | None:
        """Build a ``{key: value}`` map from the result.

        An empty *value_field* stores whole rows as *value_type* records.
        Rows with a NULL key are dropped; None is returned when the map
        would be empty.
        """
        key, value_kind = resolve_map_kinds(
            key_kind, value_type, key_field, value_field, self._cache
        )
        with self._query(query, args) as (_, cursor):
            return find_map(
                cursor, key, value_kind, value_type, key_field, value_field, self._cache, coercion
            )

    def find_proc_map(
        self,
        key_kind: Any,
        value_type: Any,
        key_field: str,
        value_field: str,
        proc_name: str,
        *args: Any,
        coercion: CoercionPolicy = CoercionPolicy.SKIP,
    ) -> dict[Any, Any] | None:
        return self.find_map(
            key_kind,
            value_type,
            key_field,
            value_field,
            call_statement(proc_name, len(args)),
            *args,
            coercion=coercion,
        )

    # --- Writes and projection ---

    def execute(self, query: str, *args: Any) -> bool:
        """Execute a write statement and commit. True if any row was affected."""
        with self._query(query, args) as (conn, cursor):
            affected = cursor.rowcount
            self._commit(conn, query)
        return affected > 0

    def execute_last_id(self, query: str, *args: Any) -> int:
        """Execute an insert and commit. Returns the generated row id."""
        with self._query(query, args) as (conn, cursor):
            last_id = cursor.lastrowid
            self._commit(conn, query)
        return int(last_id or 0)

    def exec_json(self, query: str, shape: ResultShape, *args: Any) -> bytes:
        """Project the result set to JSON bytes, see :func:`project`."""
        with self._query(query, args) as (_, cursor):
            return project(cursor, shape)

    def exec_proc_json(self, proc_name: str, shape: ResultShape, *args: Any) -> bytes:
        return self.exec_json(call_statement(proc_name, len(args)), shape, *args)

    # --- Lifecycle ---

    def ping(self) -> None:
        self._connection_manager.ping()

    def close(self) -> None:
        """Close every pooled connection."""
        self._connection_manager.close_pool()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
