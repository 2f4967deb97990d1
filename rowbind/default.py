"""Process-wide default Client.

For applications that talk to a single database::

    from rowbind import default

    default.connect(ConnectionConfig.from_addr("app", "secret", "db:3306", "shop"))
    cities = default.find(City, "SELECT id, name FROM city WHERE country = ?", "NL")
    default.close()

Every Client query method is available as a module-level function that
forwards to the connected handle.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from rowbind.core.connection import ConnectionConfig
from rowbind.core.engine import Client
from rowbind.core.exceptions import ConnectionError  # noqa: A004
from rowbind.core.trace import TraceSink

logger = logging.getLogger(__name__)

_FORWARDED = frozenset(
    {
        "find",
        "find_proc",
        "first",
        "first_proc",
        "first_col",
        "first_col_proc",
        "find_multiple_proc",
        "first_col_any",
        "first_col_proc_any",
        "first_col_int64",
        "first_col_string",
        "first_col_proc_int64",
        "first_col_proc_string",
        "find_array",
        "find_proc_array",
        "find_array_int64",
        "find_array_string",
        "find_proc_array_int64",
        "find_proc_array_string",
        "find_map",
        "find_proc_map",
        "execute",
        "execute_last_id",
        "exec_json",
        "exec_proc_json",
        "ping",
    }
)

_client: Client | None = None
_lock = threading.Lock()


def connect(config: ConnectionConfig, *, tracer: TraceSink | None = None) -> Client:
    """Install the default Client, replacing (and closing) a previous one."""
    global _client
    client = Client.from_config(config, tracer=tracer)
    with _lock:
        previous, _client = _client, client
    if previous is not None:
        logger.debug("Replacing the default client")
        previous.close()
    return client


def get_client() -> Client:
    """Return the default Client; raises ConnectionError before connect()."""
    client = _client
    if client is None:
        raise ConnectionError("rowbind.default is not connected; call connect() first")
    return client


def close() -> None:
    """Close and drop the default Client. Safe to call when not connected."""
    global _client
    with _lock:
        client, _client = _client, None
    if client is not None:
        client.close()


def __getattr__(name: str) -> Any:
    if name in _FORWARDED:
        return getattr(get_client(), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
