"""ClickHouse connection over the native TCP protocol using clickhouse-driver."""

import asyncio
from typing import Any

from clickhouse_driver import Client
from clickhouse_driver.errors import Error as ClickHouseDriverError

from sqlbridge.config import settings
from sqlbridge.data_connectors.base import Rows
from sqlbridge.data_connectors.clickhouse import ClickHouseConnection
from sqlbridge.exceptions.connector import ConnectionFailedError
from sqlbridge.logging import get_logger

logger = get_logger(__name__)


class ClickHouseTCPConnection(ClickHouseConnection):
    """Native-protocol ClickHouse connection.

    clickhouse-driver is synchronous, so each call runs in a worker thread.
    The client connects lazily; ``_connect`` forces the handshake with a
    trivial query so that an unreachable server fails on open.
    """

    DIALECT = "clickhouse_tcp"

    def _build_connection_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "host": self.host,
            "connect_timeout": settings.CONNECT_TIMEOUT,
        }
        if self.port is not None:
            params["port"] = self.port
        if self.username:
            params["user"] = self.username
        if self.password:
            params["password"] = self.password
        if self.database:
            params["database"] = self.database
        return params

    def _connect_sync(self) -> Client:
        client = Client(**self._build_connection_params())
        client.execute("SELECT 1")
        return client

    async def _connect(self) -> Client:
        try:
            client = await asyncio.to_thread(self._connect_sync)
        except (ClickHouseDriverError, OSError, EOFError) as e:
            logger.error(
                "Failed to connect to ClickHouse over TCP",
                extra={"host": self.host, "port": self.port, "error": str(e)},
            )
            raise ConnectionFailedError(str(e), dialect=self.DIALECT, host=self.host, port=self.port) from e

        logger.info(
            "ClickHouse TCP connection opened",
            extra={"host": self.host, "port": self.port, "database": self.database},
        )
        return client

    async def _close(self) -> None:
        await asyncio.to_thread(self._conn.disconnect)

    def _run_sync(self, sql: str) -> Rows:
        result = self._conn.execute(sql, with_column_types=True)
        if not isinstance(result, tuple):
            return [], []
        rows, columns = result
        return [name for name, _ in columns], [tuple(row) for row in rows]

    async def _run(self, sql: str) -> Rows:
        return await asyncio.to_thread(self._run_sync, sql)

    async def _execute(self, sql: str) -> None:
        await asyncio.to_thread(self._conn.execute, sql)
