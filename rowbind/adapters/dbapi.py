"""Statement and row cursor implementations over DB-API 2.0 cursors."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from rowbind.adapters.protocol import Scanner
from rowbind.core.exceptions import ColumnMismatchError, RowIterationError
from rowbind.core.params import normalize_placeholders


class DBAPIRowCursor:
    """Row cursor backed by a DB-API cursor.

    Handles both tuple-like rows and dict-like rows from different drivers.
    Result sets without a column description (status packets that follow a
    MySQL ``CALL``) are skipped by :meth:`next_result_set`.
    """

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor
        self._row: tuple[Any, ...] | None = None
        self._closed = False

    @property
    def rowcount(self) -> int:
        return int(self._cursor.rowcount)

    @property
    def lastrowid(self) -> int | None:
        return self._cursor.lastrowid

    def columns(self) -> list[str]:
        if self._cursor.description is None:
            return []
        return [desc[0] for desc in self._cursor.description]

    def next(self) -> bool:
        self._row = None
        if self._cursor.description is None:
            return False
        try:
            row = self._cursor.fetchone()
        except Exception as e:
            raise RowIterationError(str(e)) from e
        if row is None:
            return False

        # Dict rows keep column order on every supported driver
        self._row = tuple(row.values()) if isinstance(row, dict) else tuple(row)
        return True

    def scan(self, targets: Sequence[Scanner]) -> None:
        if self._row is None:
            raise ColumnMismatchError("scan called without a current row")
        if len(targets) != len(self._row):
            raise ColumnMismatchError(
                f"expected {len(self._row)} destination arguments in scan, not {len(targets)}"
            )
        for column, target, value in zip(self.columns(), targets, self._row, strict=True):
            target.scan(column, value)

    def next_result_set(self) -> bool:
        nextset = getattr(self._cursor, "nextset", None)
        if nextset is None:
            return False
        while True:
            try:
                more = nextset()
            except Exception as e:
                raise RowIterationError(str(e)) from e
            if not more:
                return False
            if self._cursor.description is not None:
                self._row = None
                return True

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._cursor.close()


class DBAPIStatement:
    """Prepared statement over a DB-API connection.

    DB-API has no portable prepare step; the statement keeps the translated
    SQL text and opens one driver cursor per execution. Closing the
    statement closes every cursor it opened.
    """

    def __init__(
        self,
        sql: str,
        paramstyle: str,
        cursor_factory: Callable[[], Any],
    ) -> None:
        self.sql = normalize_placeholders(sql, paramstyle)
        self._cursor_factory = cursor_factory
        self._cursors: list[DBAPIRowCursor] = []

    def execute(self, args: Sequence[Any]) -> DBAPIRowCursor:
        cursor = self._cursor_factory()
        try:
            cursor.execute(self.sql, tuple(args))
        except Exception:
            cursor.close()
            raise
        row_cursor = DBAPIRowCursor(cursor)
        self._cursors.append(row_cursor)
        return row_cursor

    def close(self) -> None:
        for row_cursor in self._cursors:
            row_cursor.close()
        self._cursors.clear()
