"""Base connection class for all dialects."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import uuid4

import pyarrow as pa
from opentelemetry import trace

from sqlbridge.config import settings
from sqlbridge.data_connectors.types import (
    ColumnMetadata,
    ConnectionStatus,
    DialectPayload,
    RawArrowData,
    TreeNode,
)
from sqlbridge.exceptions.connector import (
    ConnectionFailedError,
    ConnectorError,
    DropTableError,
    ExportError,
    MalformedDescriptorError,
    QueryExecutionError,
)
from sqlbridge.logging import get_logger
from sqlbridge.utils.arrow import rows_to_arrow
from sqlbridge.utils.export import check_export_format, write_table
from sqlbridge.utils.sql import (
    count_rows,
    count_table,
    is_single_query,
    paginate,
    quote_literal,
    select_table,
)

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)

Rows = tuple[list[str], list[tuple[Any, ...]]]


class BaseConnection(ABC):
    """Abstract base class for all dialect connections.

    A connection is built from a descriptor without touching the backend,
    opened once by ``async with``, used for a single operation and closed.
    Subclasses provide the driver primitives (``_connect``, ``_close``,
    ``_run``, ``_execute``); the operations of the contract are implemented
    here on top of them against ``information_schema`` and can be overridden
    where a backend exposes its catalog differently.
    """

    DIALECT: str = ""
    REQUIRED_FIELDS: tuple[str, ...] = ()
    IDENTIFIER_QUOTE = '"'
    SYSTEM_SCHEMAS: tuple[str, ...] = ("information_schema",)
    DEFAULT_SCHEMA_SQL = "current_schema()"

    def __init__(self, payload: DialectPayload) -> None:
        """Capture connection parameters. No I/O happens here.

        Args:
            payload: Descriptor already checked by ``from_payload``

        """
        self.payload = payload
        self.path = payload.path
        self.host = payload.host
        self.port = int(payload.port) if payload.port is not None else None
        self.username = payload.username
        self.password = payload.password
        self.database = payload.database
        self.cwd = payload.cwd

        self._conn: Any = None
        self._status = ConnectionStatus.DISCONNECTED
        self._connection_id = str(uuid4())

    @classmethod
    def from_payload(cls, payload: DialectPayload) -> "BaseConnection":
        """Validate the fields this dialect needs and build the connection.

        Raises:
            MalformedDescriptorError: If a required field is absent or the port is not an integer

        """
        for field in cls.REQUIRED_FIELDS:
            value = getattr(payload, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MalformedDescriptorError(cls.DIALECT, field)

        if payload.port is not None and not isinstance(payload.port, int):
            try:
                int(str(payload.port).strip())
            except ValueError:
                raise MalformedDescriptorError(cls.DIALECT, "port", reason="must be an integer") from None

        return cls(payload)

    @abstractmethod
    async def _connect(self) -> Any:
        """Open the backend handle.

        Returns:
            Driver-specific connection object

        Raises:
            ConnectionFailedError: If the backend cannot be reached

        """

    @abstractmethod
    async def _close(self) -> None:
        """Release the backend handle held in ``self._conn``."""

    @abstractmethod
    async def _run(self, sql: str) -> Rows:
        """Execute a statement and return its column names and rows.

        Statements that produce no result set return two empty lists.
        Driver exceptions propagate; ``_query_rows`` wraps them.
        """

    @abstractmethod
    async def _execute(self, sql: str) -> None:
        """Execute a statement whose result is not needed (DDL)."""

    async def open(self) -> None:
        """Open the connection.

        Raises:
            ConnectionFailedError: If the handshake fails

        """
        with tracer.start_as_current_span(
            "connection.open",
            attributes={"dialect": self.DIALECT, "connection.id": self._connection_id},
        ):
            try:
                logger.debug(
                    "Opening connection",
                    extra={"dialect": self.DIALECT, "connection_id": self._connection_id},
                )
                self._conn = await self._connect()
                self._status = ConnectionStatus.CONNECTED

            except ConnectorError:
                self._status = ConnectionStatus.ERROR
                raise

            except Exception as e:
                self._status = ConnectionStatus.ERROR
                logger.error(
                    "Failed to open connection",
                    extra={"dialect": self.DIALECT, "connection_id": self._connection_id, "error": str(e)},
                )
                raise ConnectionFailedError(
                    str(e),
                    dialect=self.DIALECT,
                    host=self.host,
                    port=self.port,
                ) from e

    async def close(self) -> None:
        """Close the connection if it was opened.

        Raises:
            ConnectorError: If the driver fails to release the handle

        """
        if self._conn is None:
            return

        with tracer.start_as_current_span(
            "connection.close",
            attributes={"dialect": self.DIALECT, "connection.id": self._connection_id},
        ):
            try:
                await self._close()
                self._status = ConnectionStatus.DISCONNECTED
                logger.debug(
                    "Connection closed",
                    extra={"dialect": self.DIALECT, "connection_id": self._connection_id},
                )
            except Exception as e:
                self._status = ConnectionStatus.ERROR
                logger.error(
                    "Error closing connection",
                    extra={"dialect": self.DIALECT, "connection_id": self._connection_id, "error": str(e)},
                )
                raise ConnectorError(f"Failed to close connection: {str(e)}", dialect=self.DIALECT) from e
            finally:
                self._conn = None

    async def __aenter__(self) -> "BaseConnection":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def connection_id(self) -> str:
        return self._connection_id

    # Helpers shared by the operations

    def quote_identifier(self, name: str) -> str:
        """Quote a single identifier for this dialect."""
        q = self.IDENTIFIER_QUOTE
        return f"{q}{name.replace(q, q + q)}{q}"

    def _qualified(self, schema: Optional[str], table: str) -> str:
        if schema:
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table)

    def _table_ref(self, table: str) -> str:
        """Render the table reference used by ``query_table``.

        Table names are taken as written by the caller (``schema.table`` included).
        """
        return table

    def _system_schema_filter(self, column: str = "table_schema") -> str:
        if not self.SYSTEM_SCHEMAS:
            return "1 = 1"
        names = ", ".join(quote_literal(name) for name in self.SYSTEM_SCHEMAS)
        return f"{column} NOT IN ({names})"

    def _display_name(self) -> str:
        return self.database or self.host or self.path or self.DIALECT

    async def _query_rows(self, sql: str) -> Rows:
        """Run ``sql`` and wrap driver failures into ``QueryExecutionError``."""
        try:
            return await self._run(sql)
        except ConnectorError:
            raise
        except Exception as e:
            logger.error(
                "Query execution failed",
                extra={"dialect": self.DIALECT, "connection_id": self._connection_id, "error": str(e)},
            )
            raise QueryExecutionError(str(e), dialect=self.DIALECT, query=sql[:200]) from e

    async def _fetch(self, sql: str) -> pa.Table:
        columns, rows = await self._query_rows(sql)
        return rows_to_arrow(columns, rows)

    async def _scalar(self, sql: str) -> Any:
        _, rows = await self._query_rows(sql)
        if not rows:
            raise QueryExecutionError("statement returned no rows", dialect=self.DIALECT, query=sql[:200])
        return rows[0][0]

    @staticmethod
    def _slice(table: pa.Table, limit: Optional[int], offset: int) -> pa.Table:
        return table.slice(min(offset, table.num_rows), limit)

    @staticmethod
    def _raw(table: pa.Table, sql: Optional[str], total: Optional[int] = None) -> RawArrowData:
        return RawArrowData(
            total=table.num_rows if total is None else total,
            batch=table,
            titles=None,
            sql=sql,
        )

    # Query operations

    async def query(self, sql: str, limit: Optional[int] = None, offset: int = 0) -> RawArrowData:
        """Execute ``sql`` and return at most ``limit`` rows after skipping ``offset``.

        A statement that parses as a single query under this dialect's grammar
        is paged by the backend; anything else runs as written and is sliced
        here. ``limit=None`` means unbounded.
        """
        offset = offset or 0
        if limit is None and not offset:
            return self._raw(await self._fetch(sql), sql)

        if limit is not None and is_single_query(sql, self.DIALECT):
            return self._raw(await self._fetch(paginate(sql, limit, offset, self.DIALECT)), sql)

        return self._raw(self._slice(await self._fetch(sql), limit, offset), sql)

    async def paging_query(
        self,
        sql: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> RawArrowData:
        """Execute one page of ``sql``; ``total`` is the size of the full result."""
        limit = settings.DEFAULT_PAGE_SIZE if limit is None else limit
        offset = offset or 0

        if is_single_query(sql, self.DIALECT):
            total = int(await self._scalar(count_rows(sql, self.DIALECT)))
            table = await self._fetch(paginate(sql, limit, offset, self.DIALECT))
            return self._raw(table, sql, total=total)

        table = await self._fetch(sql)
        return self._raw(self._slice(table, limit, offset), sql, total=table.num_rows)

    async def query_table(
        self,
        table: str,
        limit: Optional[int] = None,
        offset: int = 0,
        where: str = "",
        order_by: str = "",
    ) -> RawArrowData:
        """Select rows from one table; ``total`` is the filtered row count."""
        offset = offset or 0
        ref = self._table_ref(table)
        total = await self.table_row_count(table, where)

        if limit is None and offset:
            # OFFSET without LIMIT is not valid everywhere
            sql = select_table(ref, where, order_by)
            data = self._slice(await self._fetch(sql), None, offset)
        else:
            sql = select_table(ref, where, order_by, limit, offset)
            data = await self._fetch(sql)

        return self._raw(data, sql, total=total)

    async def table_row_count(self, table: str, where: str = "") -> int:
        """Count rows of ``table`` matching ``where`` (all rows when empty)."""
        return int(await self._scalar(count_table(self._table_ref(table), where)))

    async def export(self, sql: str, file: str, file_format: str) -> None:
        """Run ``sql`` and write the full result to ``file``.

        Raises:
            UnsupportedExportFormatError: Before running anything, for an unknown format
            QueryExecutionError: If the statement fails
            ExportError: If the file cannot be written

        """
        file_format = check_export_format(file_format, dialect=self.DIALECT)
        table = await self._fetch(sql)

        try:
            await asyncio.to_thread(write_table, table, file, file_format)
        except Exception as e:
            logger.error(
                "Export failed",
                extra={"dialect": self.DIALECT, "file": file, "format": file_format, "error": str(e)},
            )
            raise ExportError(str(e), dialect=self.DIALECT, file=file, file_format=file_format) from e

        logger.info(
            "Export written",
            extra={"dialect": self.DIALECT, "file": file, "format": file_format, "rows": table.num_rows},
        )

    # Introspection

    async def get_db(self) -> TreeNode:
        """Build the database → schema → table tree."""
        sql = (
            "SELECT table_schema AS table_schema, table_name AS table_name, table_type AS table_type "
            "FROM information_schema.tables "
            f"WHERE {self._system_schema_filter()} "
            "ORDER BY table_schema, table_name"
        )
        _, rows = await self._query_rows(sql)

        schemas: dict[str, TreeNode] = {}
        for schema, table, table_type in rows:
            node = schemas.get(schema)
            if node is None:
                node = TreeNode(name=schema, path=schema, node_type="database", icon="schema")
                schemas[schema] = node
            kind = "view" if "VIEW" in str(table_type).upper() else "table"
            node.children.append(TreeNode(name=table, path=f"{schema}.{table}", node_type=kind, icon=kind))

        name = self._display_name()
        return TreeNode(name=name, path=name, node_type="root", icon="database", children=list(schemas.values()))

    async def show_schema(self, schema: str) -> RawArrowData:
        """List the tables and views of ``schema``."""
        sql = (
            "SELECT table_name AS table_name, table_type AS table_type "
            "FROM information_schema.tables "
            f"WHERE table_schema = {quote_literal(schema)} "
            "ORDER BY table_name"
        )
        return self._raw(await self._fetch(sql), sql)

    async def show_column(self, schema: Optional[str], table: str) -> RawArrowData:
        """Describe the columns of one table, in declaration order."""
        schema_sql = quote_literal(schema) if schema else self.DEFAULT_SCHEMA_SQL
        sql = (
            "SELECT column_name AS column_name, data_type AS data_type, "
            "is_nullable AS is_nullable, column_default AS column_default "
            "FROM information_schema.columns "
            f"WHERE table_schema = {schema_sql} AND table_name = {quote_literal(table)} "
            "ORDER BY ordinal_position"
        )
        return self._raw(await self._fetch(sql), sql)

    async def drop_table(self, schema: Optional[str], table: str) -> str:
        """Drop a table and return a confirmation message.

        Raises:
            DropTableError: If no table name is given or the backend refuses

        """
        if not table or not table.strip():
            raise DropTableError("a table name is required", dialect=self.DIALECT)

        sql = f"DROP TABLE {self._qualified(schema, table)}"
        try:
            await self._execute(sql)
        except Exception as e:
            logger.error(
                "Drop table failed",
                extra={"dialect": self.DIALECT, "table": table, "error": str(e)},
            )
            raise DropTableError(str(e), dialect=self.DIALECT, table=table) from e

        logger.warning("Table dropped", extra={"dialect": self.DIALECT, "schema": schema, "table": table})
        return f"dropped table {schema + '.' if schema else ''}{table}"

    async def find(self, value: str, path: Optional[str] = None) -> RawArrowData:
        """Search table and column names containing ``value`` (case-insensitive)."""
        pattern = quote_literal(f"%{value.lower()}%")
        scope = f"AND table_schema = {quote_literal(path)} " if path else ""
        sql = (
            "SELECT table_schema AS table_schema, table_name AS table_name, column_name AS column_name "
            "FROM information_schema.columns "
            f"WHERE (lower(table_name) LIKE {pattern} OR lower(column_name) LIKE {pattern}) "
            f"AND {self._system_schema_filter()} "
            f"{scope}"
            "ORDER BY table_schema, table_name, column_name "
            f"LIMIT {settings.FIND_MAX_RESULTS}"
        )
        return self._raw(await self._fetch(sql), sql)

    async def all_columns(self) -> list[ColumnMetadata]:
        """Describe every column of every user table."""
        sql = (
            "SELECT table_catalog AS table_catalog, table_schema AS table_schema, table_name AS table_name, "
            "column_name AS column_name, data_type AS data_type, is_nullable AS is_nullable "
            "FROM information_schema.columns "
            f"WHERE {self._system_schema_filter()}"
        )
        _, rows = await self._query_rows(sql)
        return [
            ColumnMetadata(
                database=catalog,
                schema_name=schema,
                table=table,
                column=column,
                data_type=str(data_type),
                nullable=str(nullable).upper() == "YES",
            )
            for catalog, schema, table, column, data_type, nullable in rows
        ]
