"""SQLite adapter using stdlib sqlite3."""

from __future__ import annotations

import sqlite3

from rowbind.adapters.dbapi import DBAPIStatement
from rowbind.core.connection import ConnectionConfig


class SqliteSyncAdapter:
    """Synchronous SQLite adapter using stdlib sqlite3."""

    @property
    def paramstyle(self) -> str:
        return "qmark"

    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        """Open a SQLite connection; ``config.database`` is the file path."""
        conn = sqlite3.connect(config.database, check_same_thread=False, **config.extra)
        if config.database != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def ping(self, connection: sqlite3.Connection) -> None:
        connection.execute("SELECT 1").close()

    def prepare(self, connection: sqlite3.Connection, sql: str) -> DBAPIStatement:
        """Return a statement that opens a fresh sqlite3 cursor per execution."""
        return DBAPIStatement(sql, self.paramstyle, connection.cursor)
