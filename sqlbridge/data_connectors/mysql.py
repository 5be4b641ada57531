"""MySQL connection implementation using aiomysql."""

from typing import Any

import aiomysql

from sqlbridge.config import settings
from sqlbridge.data_connectors.base import BaseConnection, Rows
from sqlbridge.exceptions.connector import ConnectionFailedError, InvalidCredentialsError
from sqlbridge.logging import get_logger

logger = get_logger(__name__)

# Server error raised for a rejected login
ACCESS_DENIED = 1045


class MySQLConnection(BaseConnection):
    """MySQL connection over a single autocommit aiomysql connection.

    Compatible with MySQL 5.7+ and MariaDB. A schema in MySQL is a database,
    so the default schema is whatever ``DATABASE()`` reports.
    """

    DIALECT = "mysql"
    REQUIRED_FIELDS = ("host", "port")
    IDENTIFIER_QUOTE = "`"
    SYSTEM_SCHEMAS = ("information_schema", "mysql", "performance_schema", "sys")
    DEFAULT_SCHEMA_SQL = "DATABASE()"

    def _build_connection_params(self) -> dict[str, Any]:
        """Build aiomysql connection parameters, leaving out what the caller did not give."""
        params: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "charset": "utf8mb4",
            "autocommit": True,
            "connect_timeout": settings.CONNECT_TIMEOUT,
        }
        if self.username:
            params["user"] = self.username
        if self.password:
            params["password"] = self.password
        if self.database:
            params["db"] = self.database
        return params

    async def _connect(self) -> aiomysql.Connection:
        params = self._build_connection_params()
        try:
            conn = await aiomysql.connect(**params)
            logger.info(
                "MySQL connection opened",
                extra={"host": params["host"], "port": params["port"], "database": params.get("db")},
            )
            return conn

        except aiomysql.OperationalError as e:
            error_code = e.args[0] if e.args else 0
            if error_code == ACCESS_DENIED:
                logger.error(
                    "MySQL authentication failed",
                    extra={"host": params["host"], "port": params["port"], "user": params.get("user")},
                )
                raise InvalidCredentialsError(str(e), dialect=self.DIALECT, username=params.get("user")) from e

            logger.error(
                "Failed to connect to MySQL",
                extra={"host": params["host"], "port": params["port"], "error": str(e), "error_code": error_code},
            )
            raise ConnectionFailedError(
                str(e),
                dialect=self.DIALECT,
                host=params["host"],
                port=params["port"],
            ) from e

    async def _close(self) -> None:
        self._conn.close()

    async def _run(self, sql: str) -> Rows:
        async with self._conn.cursor() as cursor:
            await cursor.execute(sql)
            if not cursor.description:
                return [], []
            columns = [desc[0] for desc in cursor.description]
            rows = await cursor.fetchall()
            return columns, [tuple(row) for row in rows]

    async def _execute(self, sql: str) -> None:
        async with self._conn.cursor() as cursor:
            await cursor.execute(sql)
