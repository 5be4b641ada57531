"""Connection factory with registry pattern for resolving dialect tags."""

from typing import Type

from sqlbridge.data_connectors.base import BaseConnection
from sqlbridge.data_connectors.clickhouse import ClickHouseConnection
from sqlbridge.data_connectors.clickhouse_tcp import ClickHouseTCPConnection
from sqlbridge.data_connectors.duckdb import DuckDBConnection
from sqlbridge.data_connectors.file import FileConnection
from sqlbridge.data_connectors.folder import FolderConnection
from sqlbridge.data_connectors.mysql import MySQLConnection
from sqlbridge.data_connectors.postgresql import PostgreSQLConnection
from sqlbridge.data_connectors.sqlite import SQLiteConnection
from sqlbridge.data_connectors.types import DialectPayload
from sqlbridge.logging import get_logger

logger = get_logger(__name__)


class ConnectionRegistry:
    """Registry for dialect connections.

    Maintains a mapping of dialect tags to connection classes.
    Supports dynamic registration and lookup.
    """

    def __init__(self) -> None:
        self._connections: dict[str, Type[BaseConnection]] = {}
        self._register_default_connections()

    def _register_default_connections(self) -> None:
        """Register built-in connections."""
        for connection_class in (
            FolderConnection,
            FileConnection,
            DuckDBConnection,
            SQLiteConnection,
            ClickHouseConnection,
            ClickHouseTCPConnection,
            MySQLConnection,
            PostgreSQLConnection,
        ):
            self.register(connection_class.DIALECT, connection_class)

        logger.debug(
            "Registered default connections",
            extra={"dialects": list(self._connections.keys())},
        )

    def register(self, dialect: str, connection_class: Type[BaseConnection]) -> None:
        """Register a connection class.

        Args:
            dialect: Dialect tag the class serves (e.g., 'postgres')
            connection_class: Connection class that extends BaseConnection

        """
        if dialect in self._connections:
            logger.warning(
                "Overwriting existing connection",
                extra={
                    "dialect": dialect,
                    "old_class": self._connections[dialect].__name__,
                    "new_class": connection_class.__name__,
                },
            )
        self._connections[dialect] = connection_class

    def unregister(self, dialect: str) -> None:
        self._connections.pop(dialect, None)

    def get(self, dialect: str) -> Type[BaseConnection] | None:
        """Get a connection class by exact dialect tag."""
        return self._connections.get(dialect)

    def list_dialects(self) -> list[str]:
        return list(self._connections.keys())

    def is_registered(self, dialect: str) -> bool:
        return dialect in self._connections


# Global registry instance
_registry = ConnectionRegistry()


def get_registry() -> ConnectionRegistry:
    """Get the global connection registry."""
    return _registry


def get_connection(payload: DialectPayload) -> BaseConnection | None:
    """Resolve a descriptor into a connection, without opening it.

    Args:
        payload: Descriptor naming the dialect and how to reach it

    Returns:
        A connection ready to be opened with ``async with``, or None when
        no connection is registered for the dialect tag

    Raises:
        MalformedDescriptorError: If the dialect is supported but a field it
            requires is missing or invalid

    Example:
        >>> conn = get_connection(DialectPayload(dialect="sqlite", path="app.db"))
        >>> async with conn:
        ...     result = await conn.query("SELECT * FROM users")

    """
    connection_class = _registry.get(payload.dialect)
    if connection_class is None:
        logger.warning(
            "Unsupported dialect",
            extra={"dialect": payload.dialect, "available_dialects": _registry.list_dialects()},
        )
        return None

    connection = connection_class.from_payload(payload)
    logger.debug(
        "Connection created",
        extra={
            "dialect": payload.dialect,
            "connection_class": connection_class.__name__,
            "connection_id": connection.connection_id,
        },
    )
    return connection


def register_connection(dialect: str, connection_class: Type[BaseConnection]) -> None:
    """Register a custom connection class.

    Example:
        >>> class SnowflakeConnection(BaseConnection):
        ...     DIALECT = "snowflake"
        ...     # ... implementation
        >>>
        >>> register_connection("snowflake", SnowflakeConnection)

    """
    _registry.register(dialect, connection_class)
