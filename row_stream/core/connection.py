"""Connection configuration and management.

ConnectionConfig is a Pydantic model for type-safe connection config.
ConnectionManager and AsyncConnectionManager use adapter protocols for
pool-based connection lifecycle.
"""

from __future__ import annotations

import importlib
import logging
import os
from collections.abc import Mapping
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from pydantic import BaseModel

from row_stream.core.enums import DatabaseBackend
from row_stream.core.exceptions import AdapterError, ConnectionError, PoolError  # noqa: A004

logger = logging.getLogger(__name__)

ENV_PREFIX = "ROW_STREAM_"

_ENV_FIELDS = (
    "driver",
    "host",
    "port",
    "user",
    "password",
    "database",
    "pool_size",
    "query_timeout",
    "script_timeout",
    "batch_delay",
    "batch_separator",
)


class ConnectionConfig(BaseModel):
    """Configuration for database connections and execution defaults."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str = ""
    pool_size: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800
    query_timeout: int = 30
    script_timeout: int = 600
    batch_delay: float = 0.5
    batch_separator: str = "GO"
    extra: dict[str, Any] = {}

    @property
    def backend(self) -> DatabaseBackend:
        try:
            return DatabaseBackend.from_driver(self.driver)
        except ValueError:
            raise AdapterError(f"Unsupported database driver: {self.driver}") from None

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Mapping[str, str] | None = None,
    ) -> ConnectionConfig:
        """Build a config from ``{prefix}DRIVER``, ``{prefix}DATABASE``, ...

        ``{prefix}CONNECTION_STRING`` is passed to the adapter through
        ``extra["connection_string"]`` for drivers that accept a raw
        connection string.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in _ENV_FIELDS:
            raw = env.get(f"{prefix}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        connection_string = env.get(f"{prefix}CONNECTION_STRING")
        if connection_string:
            values["extra"] = {"connection_string": connection_string}
        return cls.model_validate(values)


# Adapter module mapping: backend → (module_path, sync_class, async_class)
_ADAPTER_MAP: dict[DatabaseBackend, tuple[str, str, str | None]] = {
    DatabaseBackend.SQLITE: (
        "row_stream.adapters.sqlite",
        "SqliteSyncAdapter",
        "SqliteAsyncAdapter",
    ),
    DatabaseBackend.POSTGRESQL: (
        "row_stream.adapters.postgresql",
        "PostgresqlSyncAdapter",
        "PostgresqlAsyncAdapter",
    ),
    DatabaseBackend.MSSQL: ("row_stream.adapters.mssql", "MssqlSyncAdapter", None),
}


def _load_adapter(config: ConnectionConfig, kind: str) -> Any:
    """Load a sync or async adapter by driver name."""
    backend = config.backend
    module_path, sync_cls_name, async_cls_name = _ADAPTER_MAP[backend]
    cls_name = sync_cls_name if kind == "sync" else async_cls_name
    if cls_name is None:
        raise AdapterError(f"Driver '{config.driver}' has no {kind} adapter")

    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load {kind} adapter for '{config.driver}': {e}") from e


class ConnectionManager:
    """Synchronous connection manager using SyncAdapter protocol."""

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self._adapter = _load_adapter(config, "sync")
        self._pool: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter

    def initialize_pool(self) -> Any:
        """Initialize the connection pool."""
        if self._pool is None:
            try:
                self._pool = self._adapter.create_pool(self.config)
            except AdapterError:
                raise
            except Exception as e:
                raise ConnectionError(f"Cannot connect to {self.config.driver}: {e}") from e
            logger.debug(f"Created {self.config.driver} pool of {self.config.pool_size}")
        return self._pool

    @contextmanager
    def get_connection(self):  # type: ignore[no-untyped-def]
        """Get a connection from the pool as a context manager."""
        if self._pool is None:
            self.initialize_pool()
        try:
            connection = self._adapter.acquire_connection(self._pool)
        except Exception as e:
            raise PoolError(f"Cannot acquire a connection: {e}") from e
        try:
            yield connection
        finally:
            self._adapter.release_connection(connection, self._pool)

    def close_pool(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            self._adapter.close_pool(self._pool)
            self._pool = None


class AsyncConnectionManager:
    """Asynchronous connection manager using AsyncAdapter protocol."""

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self._adapter = _load_adapter(config, "async")
        self._pool: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter

    async def initialize_pool(self) -> Any:
        """Initialize the async connection pool."""
        if self._pool is None:
            try:
                self._pool = await self._adapter.create_pool_async(self.config)
            except AdapterError:
                raise
            except Exception as e:
                raise ConnectionError(f"Cannot connect to {self.config.driver}: {e}") from e
            logger.debug(f"Created async {self.config.driver} pool of {self.config.pool_size}")
        return self._pool

    @asynccontextmanager
    async def get_connection(self):  # type: ignore[no-untyped-def]
        """Get an async connection from the pool as an async context manager."""
        if self._pool is None:
            await self.initialize_pool()
        try:
            connection = await self._adapter.acquire_connection_async(self._pool)
        except Exception as e:
            raise PoolError(f"Cannot acquire a connection: {e}") from e
        try:
            yield connection
        finally:
            await self._adapter.release_connection_async(connection, self._pool)

    async def close_pool(self) -> None:
        """Close the async pool."""
        if self._pool is not None:
            await self._adapter.close_pool_async(self._pool)
            self._pool = None
