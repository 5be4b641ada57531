"""Tests for network connections with their drivers mocked out."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sqlbridge.data_connectors.factory import get_connection
from sqlbridge.data_connectors.types import ConnectionStatus, DialectPayload
from sqlbridge.exceptions import (
    ConnectionFailedError,
    DropTableError,
    QueryExecutionError,
)
from sqlbridge.services import commands

POSTGRES = DialectPayload(dialect="postgres", host="db.local", port=5432, username="app", database="shop")
MYSQL = DialectPayload(dialect="mysql", host="db.local", port=3306, username="app", password="pw")
CLICKHOUSE = DialectPayload(dialect="clickhouse", host="ch.local")
CLICKHOUSE_TCP = DialectPayload(dialect="clickhouse_tcp", host="ch.local", port=9000)


def _attribute(name: str) -> MagicMock:
    attribute = MagicMock()
    attribute.name = name
    return attribute


@pytest.fixture
def pg_conn() -> MagicMock:
    statement = MagicMock()
    statement.get_attributes.return_value = [_attribute("id"), _attribute("name")]
    statement.fetch = AsyncMock(return_value=[(1, "alice"), (2, "bob")])

    conn = MagicMock()
    conn.prepare = AsyncMock(return_value=statement)
    conn.execute = AsyncMock()
    conn.close = AsyncMock()
    return conn


class TestPostgreSQL:
    @pytest.mark.asyncio
    async def test_query_round_trip(self, pg_conn):
        with patch("sqlbridge.data_connectors.postgresql.asyncpg.connect", new=AsyncMock(return_value=pg_conn)) as connect:
            connection = get_connection(POSTGRES)
            async with connection:
                raw = await connection.query("SELECT id, name FROM users")

        connect.assert_awaited_once()
        kwargs = connect.await_args.kwargs
        assert kwargs["host"] == "db.local"
        assert kwargs["port"] == 5432
        assert kwargs["user"] == "app"
        assert kwargs["database"] == "shop"
        assert "password" not in kwargs

        assert raw["batch"].column_names == ["id", "name"]
        assert raw["batch"].num_rows == 2
        assert raw["total"] == 2
        pg_conn.close.assert_awaited_once()
        assert connection.status == ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_limit_is_pushed_to_the_server(self, pg_conn):
        with patch("sqlbridge.data_connectors.postgresql.asyncpg.connect", new=AsyncMock(return_value=pg_conn)):
            async with get_connection(POSTGRES) as connection:
                await connection.query("SELECT id, name FROM users", limit=2, offset=4)

        sql = pg_conn.prepare.await_args.args[0]
        assert sql == "SELECT * FROM (SELECT id, name FROM users) AS t LIMIT 2 OFFSET 4"

    @pytest.mark.asyncio
    async def test_multi_statement_text_returns_the_last_result(self, pg_conn):
        sql = "CREATE TEMP TABLE picks AS SELECT 1 AS id; INSERT INTO picks VALUES (2); SELECT id, name FROM picks;"
        with patch("sqlbridge.data_connectors.postgresql.asyncpg.connect", new=AsyncMock(return_value=pg_conn)):
            response = await commands.query(sql, 1, 1, POSTGRES)

        assert response.code == 0
        assert response.data.total == 1
        pg_conn.execute.assert_awaited_once_with("CREATE TEMP TABLE picks AS SELECT 1 AS id;\nINSERT INTO picks VALUES (2)")
        pg_conn.prepare.assert_awaited_once_with("SELECT id, name FROM picks")

    @pytest.mark.asyncio
    async def test_unreachable_server_fails_on_open(self):
        connect = AsyncMock(side_effect=OSError("Connection refused"))
        with patch("sqlbridge.data_connectors.postgresql.asyncpg.connect", new=connect):
            connection = get_connection(POSTGRES)
            with pytest.raises(ConnectionFailedError) as exc_info:
                await connection.open()

        assert exc_info.value.message == "Connection refused"
        assert exc_info.value.host == "db.local"
        assert connection.status == ConnectionStatus.ERROR

    @pytest.mark.asyncio
    async def test_backend_error_message_is_kept_verbatim(self, pg_conn):
        pg_conn.prepare.side_effect = RuntimeError('relation "nope" does not exist')
        with patch("sqlbridge.data_connectors.postgresql.asyncpg.connect", new=AsyncMock(return_value=pg_conn)):
            async with get_connection(POSTGRES) as connection:
                with pytest.raises(QueryExecutionError) as exc_info:
                    await connection.query("SELECT * FROM nope")

        assert exc_info.value.message == 'relation "nope" does not exist'
        pg_conn.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_query_command_times_and_envelopes_failures(self, pg_conn):
        pg_conn.prepare.side_effect = RuntimeError("syntax error at or near \"SELEC\"")
        with patch("sqlbridge.data_connectors.postgresql.asyncpg.connect", new=AsyncMock(return_value=pg_conn)):
            response = await commands.query("SELEC 1", None, 0, POSTGRES)

        assert response.code == 1
        assert response.message == 'syntax error at or near "SELEC"'
        assert response.elapsed_ms is not None and response.elapsed_ms >= 0

    @pytest.mark.asyncio
    async def test_drop_table_failure(self, pg_conn):
        pg_conn.execute.side_effect = RuntimeError('table "ghost" does not exist')
        with patch("sqlbridge.data_connectors.postgresql.asyncpg.connect", new=AsyncMock(return_value=pg_conn)):
            with pytest.raises(DropTableError) as exc_info:
                await commands.drop_table("public", "ghost", POSTGRES)

        assert exc_info.value.message == 'table "ghost" does not exist'
        assert pg_conn.execute.await_args.args[0] == 'DROP TABLE "public"."ghost"'

    @pytest.mark.asyncio
    async def test_drop_table_requires_a_name(self, pg_conn):
        with patch("sqlbridge.data_connectors.postgresql.asyncpg.connect", new=AsyncMock(return_value=pg_conn)):
            with pytest.raises(DropTableError):
                await commands.drop_table(None, "  ", POSTGRES)
        pg_conn.execute.assert_not_called()


@pytest.fixture
def mysql_cursor() -> MagicMock:
    cursor = MagicMock()
    cursor.execute = AsyncMock()
    cursor.description = (("id",), ("name",))
    cursor.fetchall = AsyncMock(return_value=((1, "alice"),))
    return cursor


@pytest.fixture
def mysql_conn(mysql_cursor) -> MagicMock:
    context = MagicMock()
    context.__aenter__.return_value = mysql_cursor
    conn = MagicMock()
    conn.cursor.return_value = context
    return conn


class TestMySQL:
    @pytest.mark.asyncio
    async def test_query_uses_autocommit_connection(self, mysql_conn, mysql_cursor):
        with patch("sqlbridge.data_connectors.mysql.aiomysql.connect", new=AsyncMock(return_value=mysql_conn)) as connect:
            async with get_connection(MYSQL) as connection:
                raw = await connection.query("SELECT id, name FROM users")

        kwargs = connect.await_args.kwargs
        assert kwargs["autocommit"] is True
        assert kwargs["user"] == "app"
        assert kwargs["password"] == "pw"
        assert "db" not in kwargs
        assert raw["batch"].to_pylist() == [{"id": 1, "name": "alice"}]
        mysql_conn.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_show_column_defaults_to_current_database(self, mysql_conn, mysql_cursor):
        with patch("sqlbridge.data_connectors.mysql.aiomysql.connect", new=AsyncMock(return_value=mysql_conn)):
            async with get_connection(MYSQL) as connection:
                await connection.show_column(None, "users")

        sql = mysql_cursor.execute.await_args.args[0]
        assert "table_schema = DATABASE()" in sql
        assert "table_name = 'users'" in sql

    @pytest.mark.asyncio
    async def test_drop_table_quotes_with_backticks(self, mysql_conn, mysql_cursor):
        with patch("sqlbridge.data_connectors.mysql.aiomysql.connect", new=AsyncMock(return_value=mysql_conn)):
            message = await commands.drop_table("shop", "old_orders", MYSQL)

        assert mysql_cursor.execute.await_args.args[0] == "DROP TABLE `shop`.`old_orders`"
        assert "old_orders" in message


@pytest.fixture
def ch_client() -> MagicMock:
    result = MagicMock()
    result.column_names = ("database", "name", "engine")
    result.result_rows = [("default", "events", "MergeTree"), ("default", "events_mv", "MaterializedView")]

    client = MagicMock()
    client.query = AsyncMock(return_value=result)
    client.command = AsyncMock()
    client.close = AsyncMock()
    return client


class TestClickHouseHTTP:
    @pytest.mark.asyncio
    async def test_port_is_optional(self, ch_client):
        get_client = AsyncMock(return_value=ch_client)
        with patch("sqlbridge.data_connectors.clickhouse.clickhouse_connect.get_async_client", new=get_client):
            async with get_connection(CLICKHOUSE) as connection:
                await connection.query("SELECT 1")

        kwargs = get_client.await_args.kwargs
        assert kwargs["host"] == "ch.local"
        assert "port" not in kwargs
        ch_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_db_reads_system_tables(self, ch_client):
        with patch(
            "sqlbridge.data_connectors.clickhouse.clickhouse_connect.get_async_client",
            new=AsyncMock(return_value=ch_client),
        ):
            tree = await commands.get_db(CLICKHOUSE)

        assert "system.tables" in ch_client.query.await_args.args[0]
        assert tree.node_type == "root"
        [database] = tree.children
        assert database.name == "default"
        assert [(t.name, t.node_type) for t in database.children] == [("events", "table"), ("events_mv", "view")]

    @pytest.mark.asyncio
    async def test_drop_table_runs_as_command(self, ch_client):
        with patch(
            "sqlbridge.data_connectors.clickhouse.clickhouse_connect.get_async_client",
            new=AsyncMock(return_value=ch_client),
        ):
            await commands.drop_table("default", "events", CLICKHOUSE)

        ch_client.command.assert_awaited_once_with("DROP TABLE `default`.`events`")


class TestClickHouseTCP:
    @staticmethod
    def _client() -> MagicMock:
        def execute(sql, with_column_types=False):
            if not with_column_types:
                return [(1,)]
            return [(1, "a"), (2, "b"), (3, "c")], [("id", "UInt8"), ("name", "String")]

        client = MagicMock()
        client.execute.side_effect = execute
        return client

    @pytest.mark.asyncio
    async def test_paging_query_counts_then_pages(self):
        client = self._client()
        with patch("sqlbridge.data_connectors.clickhouse_tcp.Client", return_value=client) as client_class:
            response = await commands.paging_query("SELECT id, name FROM t", 2, 1, CLICKHOUSE_TCP)

        assert client_class.call_args.kwargs["port"] == 9000
        statements = [c.args[0] for c in client.execute.call_args_list]
        assert statements[0] == "SELECT 1"
        assert statements[1] == "SELECT count(*) FROM (SELECT id, name FROM t) AS t"
        assert statements[2] == "SELECT * FROM (SELECT id, name FROM t) AS t LIMIT 2 OFFSET 1"
        assert response.code == 0
        assert response.elapsed_ms is not None
        client.disconnect.assert_called_once()

    @pytest.mark.asyncio
    async def test_unreachable_server_is_enveloped(self):
        client = MagicMock()
        client.execute.side_effect = OSError("Connection refused")
        with patch("sqlbridge.data_connectors.clickhouse_tcp.Client", return_value=client):
            response = await commands.query("SELECT 1", None, 0, CLICKHOUSE_TCP)

        assert response.code == 1
        assert response.message == "Connection refused"
