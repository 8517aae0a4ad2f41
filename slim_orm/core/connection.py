"""Connection configuration and management.

ConnectionConfig is a Pydantic model for type-safe connection config.
ConnectionManager uses the SyncAdapter protocol for pool-based connection
lifecycle.
"""

from __future__ import annotations

import importlib
import logging
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel

from slim_orm.core.enums import DatabaseBackend
from slim_orm.core.exceptions import AdapterError, ConnectivityError

logger = logging.getLogger(__name__)


class ConnectionConfig(BaseModel):
    """Configuration for database connections.

    ``pool_size`` bounds the number of open connections.
    """

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    pool_size: int = 5
    extra: dict[str, Any] = {}


# Adapter module mapping: backend → (module_path, class_name)
_ADAPTER_MAP: dict[DatabaseBackend, tuple[str, str]] = {
    DatabaseBackend.SQLITE: ("slim_orm.adapters.sqlite", "SqliteSyncAdapter"),
    DatabaseBackend.POSTGRESQL: ("slim_orm.adapters.postgresql", "PostgresqlSyncAdapter"),
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


class ConnectionManager:
    """Synchronous connection manager using SyncAdapter protocol."""

    def __init__(self, config: ConnectionConfig, adapter: Any | None = None) -> None:
        self.config = config
        self._adapter = adapter if adapter is not None else _load_adapter(config.driver)
        self._pool: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter

    def initialize_pool(self) -> Any:
        """Initialize the connection pool."""
        if self._pool is None:
            try:
                self._pool = self._adapter.create_pool(self.config)
            except ConnectivityError:
                raise
            except Exception as e:
                raise ConnectivityError(
                    f"Cannot open {self.config.driver} database '{self.config.database}': {e}"
                ) from e
            logger.info(
                "Opened %s pool for '%s' (size=%d)",
                self.config.driver,
                self.config.database,
                self.config.pool_size,
            )
        return self._pool

    @contextmanager
    def get_connection(self):  # type: ignore[no-untyped-def]
        """Get a connection from the pool as a context manager."""
        connection = self.acquire()
        try:
            yield connection
        finally:
            self.release(connection)

    def acquire(self) -> Any:
        """Take a connection out of the pool. Pair with release()."""
        if self._pool is None:
            self.initialize_pool()
        return self._adapter.acquire_connection(self._pool)

    def release(self, connection: Any) -> None:
        """Return a connection taken with acquire()."""
        self._adapter.release_connection(connection, self._pool)

    def ping(self) -> None:
        """Check that the database answers a trivial query.

        Raises:
            ConnectivityError: If the pool cannot be created or the ping fails.
        """
        with self.get_connection() as conn:
            try:
                self._adapter.ping(conn)
            except Exception as e:
                raise ConnectivityError(f"Ping failed: {e}") from e

    def close_pool(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            self._adapter.close_pool(self._pool)
            self._pool = None
            logger.info("Closed %s pool for '%s'", self.config.driver, self.config.database)
