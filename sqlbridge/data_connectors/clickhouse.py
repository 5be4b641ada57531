"""ClickHouse connection over HTTP using clickhouse-connect."""

import inspect
from typing import Any, Optional

import clickhouse_connect
from clickhouse_connect.driver.exceptions import ClickHouseError

from sqlbridge.config import settings
from sqlbridge.data_connectors.base import BaseConnection, Rows
from sqlbridge.data_connectors.types import ColumnMetadata, RawArrowData, TreeNode
from sqlbridge.exceptions.connector import ConnectionFailedError
from sqlbridge.logging import get_logger
from sqlbridge.utils.sql import quote_literal

logger = get_logger(__name__)

VIEW_ENGINES = ("View", "MaterializedView", "LiveView", "WindowView")


class ClickHouseConnection(BaseConnection):
    """ClickHouse connection through the HTTP interface.

    Introspection reads ``system.tables`` and ``system.columns``; the native
    TCP variant reuses all of it and only swaps the driver primitives.
    """

    DIALECT = "clickhouse"
    REQUIRED_FIELDS = ("host",)
    IDENTIFIER_QUOTE = "`"
    SYSTEM_SCHEMAS = ("system", "INFORMATION_SCHEMA", "information_schema")
    DEFAULT_SCHEMA_SQL = "currentDatabase()"

    def _build_connection_params(self) -> dict[str, Any]:
        """Connection parameters; an absent port leaves the library default in place."""
        params: dict[str, Any] = {
            "host": self.host,
            "connect_timeout": settings.CONNECT_TIMEOUT,
        }
        if self.port is not None:
            params["port"] = self.port
        if self.username:
            params["username"] = self.username
        if self.password:
            params["password"] = self.password
        if self.database:
            params["database"] = self.database
        return params

    async def _connect(self) -> Any:
        params = self._build_connection_params()
        try:
            client = await clickhouse_connect.get_async_client(**params)
        except (ClickHouseError, OSError) as e:
            logger.error(
                "Failed to connect to ClickHouse",
                extra={"host": self.host, "port": self.port, "error": str(e)},
            )
            raise ConnectionFailedError(str(e), dialect=self.DIALECT, host=self.host, port=self.port) from e

        logger.info(
            "ClickHouse connection opened",
            extra={"host": self.host, "port": self.port, "database": self.database},
        )
        return client

    async def _close(self) -> None:
        # close() is a coroutine only in newer clickhouse-connect releases
        result = self._conn.close()
        if inspect.isawaitable(result):
            await result

    async def _run(self, sql: str) -> Rows:
        result = await self._conn.query(sql)
        return list(result.column_names), [tuple(row) for row in result.result_rows]

    async def _execute(self, sql: str) -> None:
        await self._conn.command(sql)

    async def get_db(self) -> TreeNode:
        """Build the database → table tree from ``system.tables``."""
        sql = (
            "SELECT database, name, engine FROM system.tables "
            f"WHERE {self._system_schema_filter('database')} "
            "ORDER BY database, name"
        )
        _, rows = await self._query_rows(sql)

        databases: dict[str, TreeNode] = {}
        for database, table, engine in rows:
            node = databases.setdefault(
                database,
                TreeNode(name=database, path=database, node_type="database", icon="schema"),
            )
            kind = "view" if engine in VIEW_ENGINES else "table"
            node.children.append(TreeNode(name=table, path=f"{database}.{table}", node_type=kind, icon=kind))

        name = self._display_name()
        return TreeNode(name=name, path=name, node_type="root", icon="database", children=list(databases.values()))

    async def show_schema(self, schema: str) -> RawArrowData:
        sql = (
            "SELECT name AS table_name, engine AS table_type, total_rows, total_bytes "
            f"FROM system.tables WHERE database = {quote_literal(schema)} ORDER BY name"
        )
        return self._raw(await self._fetch(sql), sql)

    async def show_column(self, schema: Optional[str], table: str) -> RawArrowData:
        schema_sql = quote_literal(schema) if schema else self.DEFAULT_SCHEMA_SQL
        sql = (
            "SELECT name AS column_name, type AS data_type, "
            "default_expression AS column_default, is_in_primary_key, comment "
            f"FROM system.columns WHERE database = {schema_sql} AND table = {quote_literal(table)} "
            "ORDER BY position"
        )
        return self._raw(await self._fetch(sql), sql)

    async def find(self, value: str, path: Optional[str] = None) -> RawArrowData:
        pattern = quote_literal(f"%{value.lower()}%")
        scope = f"AND database = {quote_literal(path)} " if path else ""
        sql = (
            "SELECT database AS table_schema, table AS table_name, name AS column_name "
            "FROM system.columns "
            f"WHERE (lower(table) LIKE {pattern} OR lower(name) LIKE {pattern}) "
            f"AND {self._system_schema_filter('database')} "
            f"{scope}"
            "ORDER BY database, table, name "
            f"LIMIT {settings.FIND_MAX_RESULTS}"
        )
        return self._raw(await self._fetch(sql), sql)

    async def all_columns(self) -> list[ColumnMetadata]:
        sql = (
            "SELECT database, table, name, type FROM system.columns "
            f"WHERE {self._system_schema_filter('database')}"
        )
        _, rows = await self._query_rows(sql)
        return [
            ColumnMetadata(
                database=database,
                schema_name=database,
                table=table,
                column=column,
                data_type=data_type,
                nullable=data_type.startswith("Nullable("),
            )
            for database, table, column, data_type in rows
        ]
