"""Database adapter protocols.

The engine only talks to a driver through these interfaces: an adapter
that opens connections and prepares statements, a prepared statement that
executes into a row cursor, and the row cursor itself.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rowbind.core.connection import ConnectionConfig


@runtime_checkable
class Scanner(Protocol):
    """Destination for one column value of the current row."""

    def scan(self, column: str, value: Any) -> None:
        """Store the driver value, or raise ScanError."""
        ...


@runtime_checkable
class RowCursor(Protocol):
    """Cursor over one or more result sets."""

    @property
    def rowcount(self) -> int:
        """Rows affected by a write statement, -1 when unknown."""
        ...

    @property
    def lastrowid(self) -> int | None: ...

    def columns(self) -> list[str]:
        """Column names of the current result set, in order."""
        ...

    def next(self) -> bool:
        """Advance to the next row of the current result set."""
        ...

    def scan(self, targets: Sequence[Scanner]) -> None:
        """Copy the current row into *targets*, one per column."""
        ...

    def next_result_set(self) -> bool:
        """Advance to the next result set, if the statement produced one."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class Statement(Protocol):
    """A prepared statement."""

    def execute(self, args: Sequence[Any]) -> RowCursor:
        """Execute with positional arguments and return a row cursor."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Placeholder style the driver expects: 'qmark' (?) or 'format' (%s)."""
        ...

    def connect(self, config: ConnectionConfig) -> Any:
        """Open a new driver connection."""
        ...

    def ping(self, connection: Any) -> None:
        """Raise if the connection is no longer usable."""
        ...

    def prepare(self, connection: Any, sql: str) -> Statement:
        """Prepare *sql* (written with ? placeholders) on *connection*."""
        ...
