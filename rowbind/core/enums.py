"""Enumerations shared across the engine."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    MYSQL = "mysql"


class ResultShape(Enum):
    """Shape of a raw JSON projection."""

    HAS_ONE = 1
    HAS_LIST = 2


class CoercionPolicy(Enum):
    """What find_map does with a key or value that fails to parse."""

    SKIP = "skip"
    STRICT = "strict"
