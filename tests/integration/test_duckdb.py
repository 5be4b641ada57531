"""DuckDB connection against a real database file."""

import pyarrow.parquet as pq
import pytest

from sqlbridge.data_connectors.types import DialectPayload
from sqlbridge.exceptions import QueryExecutionError
from sqlbridge.services import commands


@pytest.mark.asyncio
async def test_paging_query(duckdb_payload, rows_of):
    response = await commands.paging_query("SELECT name FROM users ORDER BY id", 2, 2, duckdb_payload)

    assert [row["name"] for row in rows_of(response)] == ["carol", "dave"]
    assert response.data.total == 5
    assert [title.type for title in response.data.titles] == ["string"]


@pytest.mark.asyncio
async def test_multiple_statements_are_sliced_locally(duckdb_payload, rows_of):
    sql = "CREATE TEMP TABLE t2 AS SELECT * FROM users; SELECT id FROM t2 ORDER BY id"

    response = await commands.paging_query(sql, 2, 1, duckdb_payload)

    assert [row["id"] for row in rows_of(response)] == [2, 3]
    assert response.data.total == 5


@pytest.mark.asyncio
async def test_cwd_resolves_relative_files(duckdb_path, data_folder, rows_of):
    payload = DialectPayload(dialect="duckdb", path=str(duckdb_path), cwd=str(data_folder))

    response = await commands.query("SELECT count(*) AS n FROM 'sales.csv'", None, 0, payload)

    assert rows_of(response) == [{"n": 4}]


@pytest.mark.asyncio
async def test_query_table(duckdb_payload, rows_of):
    response = await commands.query_table("users", 1, 1, "age", "age >= 27", duckdb_payload)

    assert [row["name"] for row in rows_of(response)] == ["alice"]
    assert response.data.total == 4


@pytest.mark.asyncio
async def test_export_parquet(duckdb_payload, tmp_path):
    target = tmp_path / "users.parquet"

    await commands.export("SELECT * FROM users", str(target), None, duckdb_payload)

    table = pq.read_table(target)
    assert table.num_rows == 5
    assert table.column_names == ["id", "name", "age"]


@pytest.mark.asyncio
async def test_get_db(duckdb_payload):
    tree = await commands.get_db(duckdb_payload)

    assert tree.name == "warehouse"
    main = next(node for node in tree.children if node.name == "main")
    assert [(node.name, node.node_type) for node in main.children] == [("users", "table")]


@pytest.mark.asyncio
async def test_show_column_uses_current_schema(duckdb_payload, rows_of):
    rows = rows_of(await commands.show_column(None, "users", duckdb_payload))

    assert [(row["column_name"], row["data_type"]) for row in rows] == [
        ("id", "INTEGER"),
        ("name", "VARCHAR"),
        ("age", "INTEGER"),
    ]


@pytest.mark.asyncio
async def test_all_columns(duckdb_payload):
    columns = [c for c in await commands.all_columns(duckdb_payload) if c.table == "users"]

    assert sorted(c.column for c in columns) == ["age", "id", "name"]
    assert {c.schema_name for c in columns} == {"main"}


@pytest.mark.asyncio
async def test_drop_table(duckdb_payload):
    assert await commands.drop_table("main", "users", duckdb_payload) == "dropped table main.users"

    with pytest.raises(QueryExecutionError):
        await commands.table_row_count("users", None, duckdb_payload)
