"""Boundary operations exposed to the client.

Every command resolves the descriptor into a fresh connection, opens it,
runs one operation and closes it. Commands that answer with an
``ArrowResponse`` fold backend failures into the envelope; the others let
the typed error propagate. An unknown dialect or a malformed descriptor is
always raised.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional

from opentelemetry import trace

from sqlbridge.data_connectors.base import BaseConnection
from sqlbridge.data_connectors.factory import get_connection, get_registry
from sqlbridge.data_connectors.types import ColumnMetadata, DialectPayload, RawArrowData, TreeNode
from sqlbridge.exceptions.connector import (
    ConnectorError,
    MalformedDescriptorError,
    UnsupportedDialectError,
)
from sqlbridge.logging import command_context, get_logger
from sqlbridge.schemas.response import ArrowResponse
from sqlbridge.services import os_integration
from sqlbridge.services.command_metrics import record_command, unsupported_dialect_total
from sqlbridge.services.opened_files import opened_files_registry
from sqlbridge.utils import sql as sql_utils
from sqlbridge.utils.export import infer_export_format

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


def resolve_connection(dialect: DialectPayload) -> BaseConnection:
    """Build the connection for ``dialect`` without opening it.

    Raises:
        UnsupportedDialectError: If no connection is registered for the tag
        MalformedDescriptorError: If a field the dialect requires is missing

    """
    connection = get_connection(dialect)
    if connection is None:
        unsupported_dialect_total.inc()
        raise UnsupportedDialectError(dialect.dialect, get_registry().list_dialects())
    return connection


@asynccontextmanager
async def _connected(operation: str, dialect: DialectPayload) -> AsyncIterator[BaseConnection]:
    """Open a connection for one command, with tracing and metrics around it."""
    start = time.perf_counter()
    status = "success"
    with tracer.start_as_current_span(
        f"command.{operation}",
        attributes={"dialect": dialect.dialect, "operation": operation},
    ), command_context(operation, dialect.dialect):
        try:
            connection = resolve_connection(dialect)
            logger.info("Running command")
            async with connection:
                yield connection
        except Exception as e:
            status = "error"
            logger.error("Command failed", error=str(e))
            raise
        finally:
            record_command(dialect.dialect, operation, status, time.perf_counter() - start)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


async def _enveloped(
    operation: str,
    dialect: DialectPayload,
    call: Callable[[BaseConnection], Awaitable[RawArrowData]],
    timed: bool,
) -> ArrowResponse:
    start = time.perf_counter()
    try:
        async with _connected(operation, dialect) as connection:
            raw = await call(connection)
    except (UnsupportedDialectError, MalformedDescriptorError):
        raise
    except ConnectorError as e:
        return ArrowResponse.from_raw_data(e, _elapsed_ms(start) if timed else None)
    return ArrowResponse.from_raw_data(raw, _elapsed_ms(start) if timed else None)


async def query(sql: str, limit: Optional[int], offset: int, dialect: DialectPayload) -> ArrowResponse:
    """Run ``sql``; ``limit=None`` returns every row after ``offset``."""
    return await _enveloped("query", dialect, lambda conn: conn.query(sql, limit, offset), timed=True)


async def paging_query(
    sql: str,
    limit: Optional[int],
    offset: Optional[int],
    dialect: DialectPayload,
) -> ArrowResponse:
    """Run one page of ``sql``; ``data.total`` is the size of the full result."""
    return await _enveloped("paging_query", dialect, lambda conn: conn.paging_query(sql, limit, offset), timed=True)


async def query_table(
    table: str,
    limit: Optional[int],
    offset: int,
    order_by: Optional[str],
    where: Optional[str],
    dialect: DialectPayload,
) -> ArrowResponse:
    return await _enveloped(
        "query_table",
        dialect,
        lambda conn: conn.query_table(table, limit, offset, where or "", order_by or ""),
        timed=True,
    )


async def table_row_count(table: str, condition: Optional[str], dialect: DialectPayload) -> int:
    async with _connected("table_row_count", dialect) as connection:
        return await connection.table_row_count(table, condition or "")


async def export(sql: str, file: str, file_format: Optional[str], dialect: DialectPayload) -> None:
    """Write the result of ``sql`` to ``file``.

    Without an explicit format it is taken from the file extension, and a
    file name without extension is written as CSV.
    """
    file_format = infer_export_format(file, file_format)
    async with _connected("export", dialect) as connection:
        await connection.export(sql, file, file_format)


async def get_db(dialect: DialectPayload) -> TreeNode:
    async with _connected("get_db", dialect) as connection:
        return await connection.get_db()


async def show_schema(schema: str, dialect: DialectPayload) -> ArrowResponse:
    return await _enveloped("show_schema", dialect, lambda conn: conn.show_schema(schema), timed=False)


async def show_column(schema: Optional[str], table: str, dialect: DialectPayload) -> ArrowResponse:
    return await _enveloped("show_column", dialect, lambda conn: conn.show_column(schema, table), timed=False)


async def drop_table(schema: Optional[str], table: str, dialect: DialectPayload) -> str:
    async with _connected("drop_table", dialect) as connection:
        return await connection.drop_table(schema, table)


async def find(value: str, path: Optional[str], dialect: DialectPayload) -> ArrowResponse:
    return await _enveloped("find", dialect, lambda conn: conn.find(value, path), timed=False)


async def all_columns(dialect: DialectPayload) -> list[ColumnMetadata]:
    async with _connected("all_columns", dialect) as connection:
        return await connection.all_columns()


async def format_sql(sql: str) -> str:
    return sql_utils.format_sql(sql)


async def opened_files() -> list[str]:
    """Most recently opened files, empty until something recorded them."""
    return opened_files_registry.get()


async def open_path(path: str) -> None:
    await os_integration.open_path(path)
