"""SQLite connection implementation using aiosqlite."""

from pathlib import Path
from typing import Optional

import aiosqlite

from sqlbridge.config import settings
from sqlbridge.data_connectors.base import BaseConnection, Rows
from sqlbridge.data_connectors.types import ColumnMetadata, RawArrowData, TreeNode
from sqlbridge.exceptions.connector import ConnectionFailedError
from sqlbridge.logging import get_logger
from sqlbridge.utils.sql import quote_literal

logger = get_logger(__name__)

USER_OBJECTS = "type IN ('table', 'view') AND name NOT LIKE 'sqlite_%'"


class SQLiteConnection(BaseConnection):
    """SQLite connection on an existing database file.

    SQLite has no ``information_schema``; introspection goes through
    ``sqlite_master`` and the ``pragma_table_info`` table-valued function.
    """

    DIALECT = "sqlite"
    REQUIRED_FIELDS = ("path",)
    SYSTEM_SCHEMAS = ()

    async def _connect(self) -> aiosqlite.Connection:
        db_path = Path(self.path).expanduser()
        # aiosqlite would create a missing file
        if not db_path.is_file():
            logger.error("SQLite database file not found", extra={"database": str(db_path)})
            raise ConnectionFailedError(f"database file does not exist: {db_path}", dialect=self.DIALECT)

        conn = await aiosqlite.connect(str(db_path), timeout=settings.SQLITE_TIMEOUT)
        logger.info("SQLite connection opened", extra={"database": str(db_path)})
        return conn

    async def _close(self) -> None:
        await self._conn.close()

    async def _run(self, sql: str) -> Rows:
        async with self._conn.execute(sql) as cursor:
            if not cursor.description:
                await self._conn.commit()
                return [], []
            columns = [desc[0] for desc in cursor.description]
            rows = await cursor.fetchall()
        return columns, [tuple(row) for row in rows]

    async def _execute(self, sql: str) -> None:
        await self._conn.execute(sql)
        await self._conn.commit()

    def _master(self, schema: Optional[str]) -> str:
        return f"{self.quote_identifier(schema)}.sqlite_master" if schema else "sqlite_master"

    def _display_name(self) -> str:
        return Path(self.path).name

    async def get_db(self) -> TreeNode:
        """Build a ``main`` database node holding the tables and views."""
        _, rows = await self._query_rows(f"SELECT name, type FROM sqlite_master WHERE {USER_OBJECTS} ORDER BY name")
        main = TreeNode(
            name="main",
            path="main",
            node_type="database",
            icon="schema",
            children=[TreeNode(name=name, path=name, node_type=kind, icon=kind) for name, kind in rows],
        )
        return TreeNode(name=self._display_name(), path=self.path, node_type="root", icon="database", children=[main])

    async def show_schema(self, schema: str) -> RawArrowData:
        sql = (
            "SELECT name AS table_name, type AS table_type "
            f"FROM {self._master(schema)} WHERE {USER_OBJECTS} ORDER BY name"
        )
        return self._raw(await self._fetch(sql), sql)

    async def show_column(self, schema: Optional[str], table: str) -> RawArrowData:
        args = quote_literal(table) + (f", {quote_literal(schema)}" if schema else "")
        sql = (
            "SELECT name AS column_name, type AS data_type, "
            "CASE WHEN \"notnull\" = 1 THEN 'NO' ELSE 'YES' END AS is_nullable, "
            "dflt_value AS column_default, pk AS primary_key "
            f"FROM pragma_table_info({args}) ORDER BY cid"
        )
        return self._raw(await self._fetch(sql), sql)

    async def find(self, value: str, path: Optional[str] = None) -> RawArrowData:
        pattern = quote_literal(f"%{value.lower()}%")
        sql = (
            "SELECT m.name AS table_name, p.name AS column_name "
            f"FROM {self._master(path)} AS m JOIN pragma_table_info(m.name) AS p "
            f"WHERE m.type IN ('table', 'view') AND m.name NOT LIKE 'sqlite_%' "
            f"AND (lower(m.name) LIKE {pattern} OR lower(p.name) LIKE {pattern}) "
            f"ORDER BY m.name, p.cid LIMIT {settings.FIND_MAX_RESULTS}"
        )
        return self._raw(await self._fetch(sql), sql)

    async def all_columns(self) -> list[ColumnMetadata]:
        sql = (
            "SELECT m.name, p.name, p.type, p.\"notnull\" "
            "FROM sqlite_master AS m JOIN pragma_table_info(m.name) AS p "
            "WHERE m.type IN ('table', 'view') AND m.name NOT LIKE 'sqlite_%'"
        )
        _, rows = await self._query_rows(sql)
        return [
            ColumnMetadata(
                database=self._display_name(),
                schema_name="main",
                table=table,
                column=column,
                data_type=data_type or "",
                nullable=not notnull,
            )
            for table, column, data_type, notnull in rows
        ]
