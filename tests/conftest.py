"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from rowbind.adapters.dbapi import DBAPIRowCursor, DBAPIStatement
from rowbind.core.connection import ConnectionConfig, ConnectionManager
from rowbind.core.engine import Client

ResultSet = tuple[list[str], list[tuple[Any, ...]]]


class FakeCursor:
    """DB-API cursor replaying scripted result sets, one script per execute."""

    def __init__(self, connection: FakeConnection) -> None:
        self._connection = connection
        self._sets: list[ResultSet | None] = []
        self._rows: list[tuple[Any, ...]] = []
        self.description: list[tuple[Any, ...]] | None = None
        self.rowcount = -1
        self.lastrowid: int | None = None
        self.closed = False

    def execute(self, sql: str, args: tuple[Any, ...]) -> None:
        self._connection.executed.append((sql, args))
        if self._connection.execute_error is not None:
            raise self._connection.execute_error
        script = self._connection.scripts.pop(0) if self._connection.scripts else []
        self._sets = list(script)
        self.rowcount = self._connection.rowcount
        self.lastrowid = self._connection.lastrowid
        self._load()

    def _load(self) -> None:
        current = self._sets.pop(0) if self._sets else None
        if current is None:
            self.description = None
            self._rows = []
            return
        columns, rows = current
        self.description = [(name, None, None, None, None, None, None) for name in columns]
        self._rows = list(rows)

    def fetchone(self) -> tuple[Any, ...] | None:
        if self._connection.fetch_error is not None:
            raise self._connection.fetch_error
        if not self._rows:
            return None
        return self._rows.pop(0)

    def nextset(self) -> bool | None:
        if not self._sets:
            return None
        self._load()
        return True

    def close(self) -> None:
        self.closed = True
        self._connection.closed_cursors += 1


class FakeConnection:
    def __init__(self) -> None:
        self.scripts: list[list[ResultSet | None]] = []
        self.executed: list[tuple[str, tuple[Any, ...]]] = []
        self.execute_error: Exception | None = None
        self.fetch_error: Exception | None = None
        self.rowcount = -1
        self.lastrowid: int | None = None
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.closed_cursors = 0

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


class FakeAdapter:
    """Adapter over FakeConnection using the MySQL ``format`` paramstyle."""

    def __init__(self) -> None:
        self.connection = FakeConnection()
        self.prepare_error: Exception | None = None
        self.closed_statements = 0

    @property
    def paramstyle(self) -> str:
        return "format"

    def connect(self, config: ConnectionConfig) -> FakeConnection:
        return self.connection

    def ping(self, connection: FakeConnection) -> None:
        return None

    def prepare(self, connection: FakeConnection, sql: str) -> DBAPIStatement:
        if self.prepare_error is not None:
            raise self.prepare_error
        adapter = self

        class _Tracked(DBAPIStatement):
            def close(self) -> None:
                adapter.closed_statements += 1
                super().close()

        return _Tracked(sql, self.paramstyle, connection.cursor)


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config; one shared connection."""
    return ConnectionConfig(
        driver="sqlite",
        database=":memory:",
        max_open_conns=1,
        max_idle_conns=1,
        pool_timeout=1.0,
    )


@pytest.fixture
def client(sqlite_config: ConnectionConfig) -> Iterator[Client]:
    """Client over an in-memory SQLite database."""
    with Client.from_config(sqlite_config) as sqlite_client:
        yield sqlite_client


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def fake_client(fake_adapter: FakeAdapter) -> Callable[..., Client]:
    """Build a Client over the fake driver.

    Usage:
        client = fake_client([(["id"], [(1,)]), (["name"], [("a",)])])

    Each positional argument is the list of result sets returned by one
    execution, consumed in order.
    """

    def _make(*scripts: list[ResultSet | None], **config: Any) -> Client:
        fake_adapter.connection.scripts.extend(list(s) for s in scripts)
        cfg = ConnectionConfig(driver="mysql", database="test", **config)
        return Client(ConnectionManager(cfg, adapter=fake_adapter))

    return _make


@pytest.fixture
def make_cursor() -> Callable[..., DBAPIRowCursor]:
    """Build an executed row cursor over the given result sets.

    Usage:
        cursor = make_cursor((["id", "name"], [(1, "a")]))
    """

    def _make(*result_sets: ResultSet | None) -> DBAPIRowCursor:
        connection = FakeConnection()
        connection.scripts.append(list(result_sets))
        cursor = connection.cursor()
        cursor.execute("SELECT", ())
        return DBAPIRowCursor(cursor)

    return _make
