"""MySQL adapter using mysql-connector-python."""

from __future__ import annotations

import logging
import re
from typing import Any

from rowbind.adapters.dbapi import DBAPIStatement
from rowbind.core.connection import ConnectionConfig

logger = logging.getLogger(__name__)

_OFFSET = re.compile(r"^[+-]\d{2}:\d{2}$")


def _time_zone(loc: str) -> str | None:
    """Translate a location into a session ``time_zone`` offset.

    Only "UTC" and ``+HH:MM`` or ``-HH:MM`` offsets are sent to the server. Named zones
    need the server tz tables, so the session default is kept for them.
    """
    if loc == "UTC":
        return "+00:00"
    if _OFFSET.match(loc):
        return loc
    if loc != "Local":
        logger.debug("loc %r is not a UTC offset; session time_zone left unchanged", loc)
    return None


class MysqlSyncAdapter:
    """Synchronous MySQL adapter using mysql-connector-python.

    Cursors are buffered so a statement can be abandoned after the first
    row, and multi-result-set ``CALL`` statements are walked with
    ``cursor.nextset()``.
    """

    @property
    def paramstyle(self) -> str:
        return "format"

    def connect(self, config: ConnectionConfig) -> Any:
        """Open a MySQL connection from the config."""
        import mysql.connector

        options: dict[str, Any] = {
            "host": config.host,
            "port": config.port or 3306,
            "user": config.user,
            "password": config.password,
            "database": config.database,
            "charset": config.charset,
            "collation": config.collation,
            "autocommit": True,
        }
        time_zone = _time_zone(config.loc)
        if time_zone is not None:
            options["time_zone"] = time_zone
        options.update(config.extra)
        return mysql.connector.connect(**options)

    def ping(self, connection: Any) -> None:
        connection.ping(reconnect=False)

    def prepare(self, connection: Any, sql: str) -> DBAPIStatement:
        """Return a statement whose cursors are buffered tuple cursors."""
        return DBAPIStatement(
            sql,
            self.paramstyle,
            lambda: connection.cursor(buffered=True),
        )
