"""Connection configuration and management.

ConnectionConfig is a Pydantic model for type-safe connection config.
ConnectionManager loads the driver adapter and hands out connections from
a lazily created SQLAlchemy QueuePool.
"""

from __future__ import annotations

import importlib
import logging
import threading
from collections.abc import Callable
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel
from sqlalchemy import exc as sa_exc
from sqlalchemy.pool import QueuePool

from rowbind.core.enums import DatabaseBackend
from rowbind.core.exceptions import AdapterError, ConnectionError, PoolError  # noqa: A004

logger = logging.getLogger(__name__)


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    charset: str = "utf8mb4"
    collation: str = "utf8mb4_unicode_ci"
    loc: str = "Local"
    max_open_conns: int = 100
    max_idle_conns: int = 50
    conn_max_lifetime: float = 4 * 60 * 60
    pool_timeout: float = 30.0
    debug: bool = False
    extra: dict[str, Any] = {}

    @classmethod
    def from_addr(
        cls,
        user: str,
        password: str,
        addr: str,
        database: str,
        **options: Any,
    ) -> ConnectionConfig:
        """Build a MySQL config from a ``host:port`` address."""
        host, _, port = addr.partition(":")
        return cls(
            driver="mysql",
            host=host,
            port=int(port) if port else None,
            user=user,
            password=password,
            database=database,
            **options,
        )


# Adapter module mapping: driver name -> (module_path, class_name)
_ADAPTER_MAP: dict[DatabaseBackend, tuple[str, str]] = {
    DatabaseBackend.SQLITE: ("rowbind.adapters.sqlite", "SqliteSyncAdapter"),
    DatabaseBackend.MYSQL: ("rowbind.adapters.mysql", "MysqlSyncAdapter"),
}


def _load_adapter(driver: str) -> Any:
    """Load an adapter by driver name."""
    try:
        backend = DatabaseBackend(driver.lower())
    except ValueError:
        raise AdapterError(f"Unsupported database driver: {driver}") from None

    module_path, cls_name = _ADAPTER_MAP[backend]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{driver}': {e}") from e


def build_pool(connect: Callable[[], Any], config: ConnectionConfig) -> QueuePool:
    """Build a lazily filled QueuePool sized from the config.

    ``max_open_conns`` bounds checked-out plus idle connections,
    ``max_idle_conns`` of them are kept between checkouts, and a
    non-positive ``conn_max_lifetime`` disables recycling. Connections
    are rolled back when returned.
    """
    if config.max_open_conns < 1:
        raise PoolError("max_open_conns must be at least 1")
    pool_size = max(1, min(config.max_idle_conns, config.max_open_conns))
    lifetime = config.conn_max_lifetime
    return QueuePool(
        connect,
        pool_size=pool_size,
        max_overflow=config.max_open_conns - pool_size,
        timeout=config.pool_timeout,
        recycle=lifetime if lifetime > 0 else -1,
        reset_on_return="rollback",
    )


class ConnectionManager:
    """Synchronous connection manager using the SyncAdapter protocol."""

    def __init__(self, config: ConnectionConfig, adapter: Any | None = None) -> None:
        self.config = config
        self._adapter = adapter if adapter is not None else _load_adapter(config.driver)
        self._pool: QueuePool | None = None
        self._pool_lock = threading.Lock()

    @property
    def adapter(self) -> Any:
        return self._adapter

    def _connect(self) -> Any:
        try:
            return self._adapter.connect(self.config)
        except Exception as e:
            raise ConnectionError(f"failed to open database: {e}") from e

    def initialize_pool(self) -> QueuePool:
        """Initialize the connection pool."""
        with self._pool_lock:
            if self._pool is None:
                self._pool = build_pool(self._connect, self.config)
                logger.debug(
                    "Created pool for %s (open=%d)", self.config.driver, self.config.max_open_conns
                )
            return self._pool

    @contextmanager
    def get_connection(self):  # type: ignore[no-untyped-def]
        """Get a DB-API connection from the pool as a context manager.

        The connection is rolled back and returned to the pool on exit.
        """
        pool = self._pool if self._pool is not None else self.initialize_pool()
        try:
            proxy = pool.connect()
        except sa_exc.TimeoutError as e:
            raise PoolError(
                f"no connection available within {self.config.pool_timeout}s"
            ) from e
        try:
            yield proxy.dbapi_connection
        finally:
            proxy.close()

    def ping(self) -> None:
        """Check that the database is reachable."""
        with self.get_connection() as conn:
            try:
                self._adapter.ping(conn)
            except Exception as e:
                raise ConnectionError(f"database ping failed: {e}") from e

    def close_pool(self) -> None:
        """Close idle pooled connections; the next checkout builds a new pool."""
        with self._pool_lock:
            if self._pool is not None:
                self._pool.dispose()
                self._pool = None
