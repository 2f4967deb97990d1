"""Unit tests for Client."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Any

import pytest

from rowbind.core.connection import ConnectionConfig, ConnectionManager
from rowbind.core.engine import Client
from rowbind.core.enums import ResultShape
from rowbind.core.exceptions import (
    PrepareError,
    QueryExecutionError,
    RowIterationError,
    ScanError,
    ShapeError,
    TooManyResultSetsError,
    UnsupportedKindError,
)
from rowbind.mapping.binding import Column
from rowbind.mapping.dispatch import Rows


@dataclass
class User:
    id: Annotated[int, Column("id")] = 0
    name: Annotated[str, Column("name")] = ""
    email: Annotated[str | None, Column("email")] = None


@dataclass
class Count:
    total: Annotated[int, Column("total")] = 0


@pytest.fixture
def engine(client: Client) -> Client:
    """Client over SQLite with a small users table."""
    client.execute(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, email TEXT)"
    )
    client.execute("INSERT INTO users (name, email) VALUES (?, ?)", "Alice", "alice@example.com")
    client.execute("INSERT INTO users (name, email) VALUES (?, ?)", "Bob", None)
    return client


class TestClient:
    def test_find(self, engine: Client) -> None:
        users = engine.find(User, "SELECT id, name, email FROM users ORDER BY id")
        assert users == [User(1, "Alice", "alice@example.com"), User(2, "Bob", None)]

    def test_find_empty(self, engine: Client) -> None:
        assert engine.find(User, "SELECT id, name FROM users WHERE id = ?", 999) == []

    def test_find_requires_record_type(self, engine: Client) -> None:
        with pytest.raises(ShapeError):
            engine.find(int, "SELECT id FROM users")

    def test_first(self, engine: Client) -> None:
        user = User()
        assert engine.first(user, "SELECT id, name FROM users WHERE name = ?", "Bob") is True
        assert user.id == 2
        assert user.name == "Bob"

    def test_first_not_found(self, engine: Client) -> None:
        user = User(7, "keep")
        assert engine.first(user, "SELECT id, name FROM users WHERE id = ?", 999) is False
        assert user == User(7, "keep")

    def test_first_rejects_class(self, engine: Client) -> None:
        with pytest.raises(ShapeError):
            engine.first(User, "SELECT id FROM users")

    def test_first_col(self, engine: Client) -> None:
        assert engine.first_col(int, "SELECT COUNT(*) FROM users") == (2, True)

    def test_first_col_unsupported_before_execution(self, fake_client, fake_adapter) -> None:
        client = fake_client()
        with pytest.raises(UnsupportedKindError):
            client.first_col(bytes, "SELECT 1")
        assert fake_adapter.connection.executed == []

    def test_first_col_any(self, engine: Client) -> None:
        assert engine.first_col_int64("SELECT NULL AS id") == (0, True)
        assert engine.first_col_string("SELECT name FROM users WHERE id = ?", 1) == ("Alice", True)
        assert engine.first_col_any(str, "SELECT name FROM users WHERE id = 9") == ("", False)

    def test_find_array(self, engine: Client) -> None:
        assert engine.find_array_string("email", "SELECT email FROM users ORDER BY id") == [
            "alice@example.com"
        ]
        assert engine.find_array_int64("id", "SELECT id, name FROM users ORDER BY id") == [1, 2]
        assert engine.find_array(int, "id", "SELECT id FROM users WHERE id > 5") is None

    def test_find_map(self, engine: Client) -> None:
        assert engine.find_map(int, str, "id", "name", "SELECT id, name FROM users") == {
            1: "Alice",
            2: "Bob",
        }
        by_name = engine.find_map(str, User, "name", "", "SELECT id, name FROM users")
        assert by_name == {"Alice": User(1, "Alice"), "Bob": User(2, "Bob")}

    def test_find_map_empty_key_field_before_execution(self, fake_client, fake_adapter) -> None:
        client = fake_client()
        with pytest.raises(ShapeError, match="key_field cannot be empty"):
            client.find_map(int, str, "", "name", "SELECT 1")
        assert fake_adapter.connection.executed == []

    def test_execute(self, engine: Client) -> None:
        assert engine.execute("UPDATE users SET name = ? WHERE id = ?", "Carol", 1) is True
        assert engine.execute("UPDATE users SET name = ? WHERE id = ?", "Dave", 999) is False

    def test_execute_last_id(self, engine: Client) -> None:
        new_id = engine.execute_last_id("INSERT INTO users (name) VALUES (?)", "Eve")
        assert new_id == 3

    def test_exec_json(self, engine: Client) -> None:
        body = engine.exec_json("SELECT id, name FROM users WHERE id = ?", ResultShape.HAS_ONE, 1)
        assert body == b'{"id":1,"name":"Alice"}'
        assert engine.exec_json("SELECT id FROM users WHERE id = 9", ResultShape.HAS_LIST) == b"[]"

    def test_ping(self, engine: Client) -> None:
        engine.ping()


class TestProcedures:
    def test_find_proc_call_text(self, fake_client, fake_adapter) -> None:
        client = fake_client([(["id", "name"], [(1, "a")]), None])
        assert client.find_proc(User, "list_users", 5, "x") == [User(1, "a")]
        assert fake_adapter.connection.executed == [("CALL `list_users`(%s,%s)", (5, "x"))]

    def test_find_multiple_proc(self, fake_client) -> None:
        client = fake_client([(["id", "name"], [(1, "a"), (2, "b")]), (["total"], [(2,)]), None])
        users, count = Rows(User), Count()
        client.find_multiple_proc([users, count], "users_and_count")
        assert users == [User(1, "a"), User(2, "b")]
        assert count.total == 2

    def test_find_multiple_proc_too_many(self, fake_client) -> None:
        client = fake_client([(["id"], [(1,)]), (["id"], [(2,)])])
        with pytest.raises(TooManyResultSetsError, match="expected 1"):
            client.find_multiple_proc([Rows(User)], "p")

    def test_find_multiple_proc_empty_destinations(self, fake_client, fake_adapter) -> None:
        client = fake_client()
        with pytest.raises(ShapeError, match="destinations cannot be empty"):
            client.find_multiple_proc([], "p")
        assert fake_adapter.connection.executed == []

    def test_proc_twins(self, fake_client, fake_adapter) -> None:
        client = fake_client(
            [(["n"], [(3,)])],
            [(["name"], [("a",), ("b",)])],
            [(["id", "name"], [(1, "a")])],
            [(["id"], [(1,)])],
        )
        assert client.first_col_proc_int64("count_users") == (3, True)
        assert client.find_proc_array_string("name", "names") == ["a", "b"]
        assert client.find_proc_map(int, str, "id", "name", "pairs", 1) == {1: "a"}
        assert client.exec_proc_json("ids", ResultShape.HAS_LIST) == b'[{"id":1}]'
        sql = [query for query, _ in fake_adapter.connection.executed]
        assert sql == ["CALL `count_users`()", "CALL `names`()", "CALL `pairs`(%s)", "CALL `ids`()"]


class TestResources:
    def test_closed_after_success(self, fake_client, fake_adapter) -> None:
        client = fake_client([(["id"], [(1,)])])
        client.find(User, "SELECT id FROM users")
        assert fake_adapter.closed_statements == 1
        assert fake_adapter.connection.closed_cursors == 1

    def test_closed_after_scan_failure(self, fake_client, fake_adapter) -> None:
        client = fake_client([(["id"], [("abc",)])])
        with pytest.raises(ScanError):
            client.find(User, "SELECT id FROM users")
        assert fake_adapter.closed_statements == 1
        assert fake_adapter.connection.closed_cursors == 1

    def test_prepare_error_wrapped(self, fake_client, fake_adapter) -> None:
        client = fake_client()
        fake_adapter.prepare_error = RuntimeError("syntax")
        with pytest.raises(PrepareError, match="failed to prepare query: syntax") as exc_info:
            client.find(User, "SELEC")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_execute_error_wrapped(self, fake_client, fake_adapter) -> None:
        client = fake_client()
        fake_adapter.connection.execute_error = RuntimeError("gone away")
        with pytest.raises(QueryExecutionError, match="gone away"):
            client.find(User, "SELECT id FROM users")
        assert fake_adapter.closed_statements == 1
        assert fake_adapter.connection.closed_cursors == 1

    def test_fetch_error_wrapped(self, fake_client, fake_adapter) -> None:
        client = fake_client([(["id"], [(1,)])])
        fake_adapter.connection.fetch_error = RuntimeError("lost")
        with pytest.raises(RowIterationError, match="lost"):
            client.find(User, "SELECT id FROM users")

    def test_connection_returned_to_pool(self, fake_client) -> None:
        client = fake_client([(["id"], [])], [(["id"], [])], max_open_conns=1)
        client.find(User, "SELECT id FROM users")
        client.find(User, "SELECT id FROM users")

    def test_execute_commits(self, fake_client, fake_adapter) -> None:
        client = fake_client()
        fake_adapter.connection.rowcount = 1
        assert client.execute("DELETE FROM users WHERE id = ?", 1) is True
        assert fake_adapter.connection.commits == 1

    def test_reads_end_transaction_on_release(self, fake_client, fake_adapter) -> None:
        client = fake_client([(["id"], [(5,)])], [(["id"], [(5,)])])
        client.find_proc(User, "create_user", 5)
        client.find(User, "SELECT id FROM users")
        conn = fake_adapter.connection
        assert (conn.commits, conn.rollbacks) == (0, 2)
        assert conn.closed is False

    def test_close(self, fake_client, fake_adapter) -> None:
        with fake_client([(["id"], [])]) as client:
            client.find(User, "SELECT id FROM users")
        assert fake_adapter.connection.closed


class TestTracing:
    def test_tracer_called_before_execution(self, fake_client, fake_adapter) -> None:
        seen: list[tuple[str, tuple[Any, ...]]] = []
        manager = ConnectionManager(
            ConnectionConfig(driver="mysql", database="test"), adapter=fake_adapter
        )
        client = Client(manager, tracer=lambda query, args: seen.append((query, args)))
        client.execute("DELETE FROM users WHERE id = ?", 4)
        assert seen == [("DELETE FROM users WHERE id = ?", (4,))]

    def test_failing_tracer_does_not_abort(self, fake_adapter, caplog) -> None:
        def broken(query: str, args: tuple[Any, ...]) -> None:
            raise RuntimeError("sink down")

        manager = ConnectionManager(
            ConnectionConfig(driver="mysql", database="test"), adapter=fake_adapter
        )
        fake_adapter.connection.scripts.append([(["id"], [(1,)])])
        client = Client(manager, tracer=broken)
        with caplog.at_level(logging.WARNING, logger="rowbind.core.trace"):
            assert client.find(User, "SELECT id FROM users") == [User(1)]
        assert "trace sink failed" in caplog.text

    def test_debug_logs_sql(self, fake_client, caplog) -> None:
        client = fake_client([(["id"], [])], debug=True)
        with caplog.at_level(logging.INFO, logger="rowbind.sql"):
            client.find(User, "SELECT id FROM users WHERE id = ? AND name = ?", 1, "a")
        assert "sql:SELECT id FROM users WHERE id = ? AND name = ?, args:[1, a]" in caplog.text
