"""PostgreSQL connection implementation using asyncpg."""

import asyncio
from typing import Any

import asyncpg

from sqlbridge.config import settings
from sqlbridge.data_connectors.base import BaseConnection, Rows
from sqlbridge.exceptions.connector import ConnectionFailedError, InvalidCredentialsError
from sqlbridge.logging import get_logger
from sqlbridge.utils.sql import split_statements

logger = get_logger(__name__)


class PostgreSQLConnection(BaseConnection):
    """PostgreSQL connection over a single asyncpg connection.

    Statements are prepared so that column names are known even when the
    result is empty. Multi-statement text returns the rows of its last statement.
    """

    DIALECT = "postgres"
    REQUIRED_FIELDS = ("host", "port")
    SYSTEM_SCHEMAS = ("information_schema", "pg_catalog", "pg_toast")
    DEFAULT_SCHEMA_SQL = "current_schema()"

    def _build_connection_params(self) -> dict[str, Any]:
        """Build asyncpg connection parameters, leaving out what the caller did not give."""
        params: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "timeout": settings.CONNECT_TIMEOUT,
        }
        if self.username:
            params["user"] = self.username
        if self.password:
            params["password"] = self.password
        if self.database:
            params["database"] = self.database
        return params

    async def _connect(self) -> asyncpg.Connection:
        params = self._build_connection_params()
        try:
            conn = await asyncpg.connect(**params)
            logger.info(
                "PostgreSQL connection opened",
                extra={"host": params["host"], "port": params["port"], "database": params.get("database")},
            )
            return conn

        except asyncpg.InvalidPasswordError as e:
            logger.error(
                "PostgreSQL authentication failed",
                extra={"host": params["host"], "port": params["port"], "user": params.get("user")},
            )
            raise InvalidCredentialsError(str(e), dialect=self.DIALECT, username=params.get("user")) from e

        except (
            asyncpg.PostgresError,
            asyncpg.InterfaceError,
            asyncio.TimeoutError,
            OSError,
        ) as e:
            logger.error(
                "Failed to connect to PostgreSQL",
                extra={"host": params["host"], "port": params["port"], "error": str(e)},
            )
            raise ConnectionFailedError(
                str(e) or f"Failed to connect to PostgreSQL at {params['host']}:{params['port']}",
                dialect=self.DIALECT,
                host=params["host"],
                port=params["port"],
            ) from e

    async def _close(self) -> None:
        await self._conn.close()

    async def _run(self, sql: str) -> Rows:
        statements = split_statements(sql, self.DIALECT)
        if len(statements) > 1:
            # A prepared statement holds one command; the earlier ones go over the simple-query protocol
            await self._conn.execute(";\n".join(statements[:-1]))
            sql = statements[-1]
        statement = await self._conn.prepare(sql)
        columns = [attribute.name for attribute in statement.get_attributes()]
        records = await statement.fetch()
        return columns, [tuple(record) for record in records]

    async def _execute(self, sql: str) -> None:
        await self._conn.execute(sql)
