"""Unit tests for ConnectionConfig and the connection managers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from row_stream.core.connection import (
    AsyncConnectionManager,
    ConnectionConfig,
    ConnectionManager,
)
from row_stream.core.enums import DatabaseBackend
from row_stream.core.exceptions import AdapterError, ConnectionError, PoolError  # noqa: A004


class TestConnectionConfig:
    def test_defaults(self) -> None:
        config = ConnectionConfig(driver="sqlite", database=":memory:")
        assert config.pool_size == 5
        assert config.query_timeout == 30
        assert config.script_timeout == 600
        assert config.batch_delay == 0.5
        assert config.batch_separator == "GO"
        assert config.backend is DatabaseBackend.SQLITE

    def test_driver_name_ignores_case(self) -> None:
        assert ConnectionConfig(driver="PostgreSQL").backend is DatabaseBackend.POSTGRESQL

    @pytest.mark.parametrize(
        ("driver", "backend"),
        [
            ("postgres", DatabaseBackend.POSTGRESQL),
            ("sqlserver", DatabaseBackend.MSSQL),
            (" sqlite3 ", DatabaseBackend.SQLITE),
        ],
    )
    def test_driver_aliases(self, driver: str, backend: DatabaseBackend) -> None:
        assert ConnectionConfig(driver=driver).backend is backend

    def test_unsupported_driver(self) -> None:
        with pytest.raises(AdapterError, match="Unsupported database driver"):
            ConnectionConfig(driver="oracle").backend  # noqa: B018

    def test_from_env(self) -> None:
        environ = {
            "ROW_STREAM_DRIVER": "postgresql",
            "ROW_STREAM_HOST": "db.internal",
            "ROW_STREAM_PORT": "5432",
            "ROW_STREAM_DATABASE": "reports",
            "ROW_STREAM_QUERY_TIMEOUT": "45",
            "ROW_STREAM_BATCH_DELAY": "0",
            "ROW_STREAM_USER": "",
        }
        config = ConnectionConfig.from_env(environ=environ)
        assert config.host == "db.internal"
        assert config.port == 5432
        assert config.query_timeout == 45
        assert config.batch_delay == 0.0
        assert config.user is None

    def test_from_env_connection_string_and_prefix(self) -> None:
        environ = {
            "APP_DB_DRIVER": "mssql",
            "APP_DB_CONNECTION_STRING": "DRIVER={ODBC Driver 18 for SQL Server};SERVER=x",
        }
        config = ConnectionConfig.from_env("APP_DB_", environ=environ)
        assert config.extra == {
            "connection_string": "DRIVER={ODBC Driver 18 for SQL Server};SERVER=x"
        }

    def test_from_env_requires_driver(self) -> None:
        with pytest.raises(ValidationError):
            ConnectionConfig.from_env(environ={})


class _BrokenAdapter:
    paramstyle = "named"

    def create_pool(self, config: ConnectionConfig) -> list[object]:
        return []

    def acquire_connection(self, pool: list[object]) -> object:
        raise RuntimeError("pool exhausted")

    def release_connection(self, connection: object, pool: list[object]) -> None:
        raise AssertionError("nothing was acquired")

    def close_pool(self, pool: list[object]) -> None:
        pass


class _UnreachableAdapter(_BrokenAdapter):
    def create_pool(self, config: ConnectionConfig) -> list[object]:
        raise OSError("unable to open database file")


class TestConnectionManager:
    def test_sqlite_round_trip(self) -> None:
        manager = ConnectionManager(ConnectionConfig(driver="sqlite", database=":memory:"))
        with manager.get_connection() as conn:
            assert conn.execute("SELECT 1").fetchone()[0] == 1
        manager.close_pool()

    def test_acquire_failure_is_pool_error(self) -> None:
        manager = ConnectionManager(ConnectionConfig(driver="sqlite", database=":memory:"))
        manager._adapter = _BrokenAdapter()
        with pytest.raises(PoolError, match="pool exhausted"):
            with manager.get_connection():
                pass

    def test_pool_creation_failure_is_connection_error(self) -> None:
        manager = ConnectionManager(ConnectionConfig(driver="sqlite", database=":memory:"))
        manager._adapter = _UnreachableAdapter()
        with pytest.raises(ConnectionError, match="unable to open"):
            manager.initialize_pool()

    def test_mssql_has_no_async_adapter(self) -> None:
        with pytest.raises(AdapterError, match="no async adapter"):
            AsyncConnectionManager(ConnectionConfig(driver="mssql"))
