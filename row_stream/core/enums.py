"""Database backend enumeration."""

from __future__ import annotations

from enum import Enum

_ALIASES = {
    "sqlite3": "sqlite",
    "postgres": "postgresql",
    "psycopg": "postgresql",
    "sqlserver": "mssql",
    "pyodbc": "mssql",
}


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MSSQL = "mssql"

    @classmethod
    def from_driver(cls, driver: str) -> DatabaseBackend:
        """Resolve a driver name or alias, ignoring case.

        Raises:
            ValueError: If the name matches no backend.
        """
        name = driver.strip().lower()
        return cls(_ALIASES.get(name, name))
