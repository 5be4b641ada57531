"""DuckDB connection implementation.

The duckdb Python API is synchronous; every call runs in a worker thread so
the event loop is never blocked.
"""

import asyncio
from pathlib import Path
from typing import Any, Optional

import duckdb

from sqlbridge.data_connectors.base import BaseConnection, Rows
from sqlbridge.logging import get_logger
from sqlbridge.utils.sql import quote_literal

logger = get_logger(__name__)


class DuckDBConnection(BaseConnection):
    """Connection to a DuckDB database file.

    ``cwd`` becomes DuckDB's ``file_search_path`` so queries like
    ``SELECT * FROM 'data.csv'`` resolve relative to it.
    """

    DIALECT = "duckdb"
    REQUIRED_FIELDS = ("path",)
    SYSTEM_SCHEMAS = ("information_schema", "pg_catalog")
    DEFAULT_SCHEMA_SQL = "current_schema()"

    def _database(self) -> str:
        return str(Path(self.path).expanduser())

    def _search_path(self) -> Optional[str]:
        return self.cwd

    def _connect_sync(self) -> duckdb.DuckDBPyConnection:
        conn = duckdb.connect(database=self._database(), read_only=False)
        search_path = self._search_path()
        if search_path:
            conn.execute(f"SET file_search_path = {quote_literal(search_path)}")
        return conn

    async def _connect(self) -> duckdb.DuckDBPyConnection:
        conn = await asyncio.to_thread(self._connect_sync)
        logger.info(
            "DuckDB connection opened",
            extra={"database": self._database(), "file_search_path": self._search_path()},
        )
        return conn

    async def _close(self) -> None:
        await asyncio.to_thread(self._conn.close)

    def _run_sync(self, sql: str) -> Rows:
        cursor = self._conn.execute(sql)
        if cursor.description is None:
            return [], []
        columns = [desc[0] for desc in cursor.description]
        return columns, cursor.fetchall()

    async def _run(self, sql: str) -> Rows:
        return await asyncio.to_thread(self._run_sync, sql)

    async def _execute(self, sql: str) -> None:
        await asyncio.to_thread(self._conn.execute, sql)

    def _display_name(self) -> str:
        return Path(self.path).stem

    async def _describe(self, relation: str) -> list[tuple[Any, ...]]:
        """Rows of ``DESCRIBE`` for any relation or table function."""
        _, rows = await self._query_rows(f"DESCRIBE SELECT * FROM {relation}")
        return rows
