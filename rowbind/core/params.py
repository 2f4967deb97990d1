"""SQL placeholder handling.

Callers always write positional ``?`` placeholders. Drivers using the
``format`` paramstyle get them rewritten to ``%s`` while quoted literals
and identifiers are preserved.
"""

from __future__ import annotations

import re
from functools import lru_cache

# Single- or double-quoted literals (with escaped quotes) and backtick identifiers
_QUOTED_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|`[^`]*`")


def call_statement(proc_name: str, arg_count: int) -> str:
    """Build the ``CALL `name`(?,?,...)`` text for a stored procedure."""
    placeholders = ",".join("?" * arg_count)
    return f"CALL `{proc_name}`({placeholders})"


def normalize_placeholders(sql: str, paramstyle: str) -> str:
    """Convert ``?`` placeholders to the target param style.

    Args:
        sql: SQL string with ``?`` placeholders.
        paramstyle: Target style - 'qmark' (no conversion) or 'format' (%s).

    Returns:
        SQL with placeholders converted to the target style.
    """
    if paramstyle == "qmark":
        return sql
    return _convert_to_format(sql)


@lru_cache(maxsize=256)
def _convert_to_format(sql: str) -> str:
    """Convert ? placeholders to %s, preserving quoted text."""
    parts: list[str] = []
    last_end = 0

    for match in _QUOTED_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append(sql[last_end:start].replace("?", "%s"))
        parts.append(match.group())
        last_end = end

    if last_end < len(sql):
        parts.append(sql[last_end:].replace("?", "%s"))

    return "".join(parts)
