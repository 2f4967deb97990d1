"""SQL trace sinks.

A trace sink is any callable taking the final query text and the argument
tuple. It runs before execution and must never abort the query.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)
sql_logger = logging.getLogger("rowbind.sql")

TraceSink = Callable[[str, tuple[Any, ...]], None]


def log_sql(query: str, args: tuple[Any, ...]) -> None:
    """Default sink: log the statement and its arguments on ``rowbind.sql``."""
    args_joined = ", ".join(str(arg) for arg in args)
    sql_logger.info("sql:%s, args:[%s]", query, args_joined)


def emit(sink: TraceSink | None, query: str, args: tuple[Any, ...]) -> None:
    """Invoke *sink* if set; failures are logged and otherwise ignored."""
    if sink is None:
        return
    try:
        sink(query, args)
    except Exception:
        logger.warning("trace sink failed for query %r", query, exc_info=True)
