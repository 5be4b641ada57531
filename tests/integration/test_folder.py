"""Folder connection over a directory of data files."""

import os
from unittest.mock import patch

import pytest

from sqlbridge.data_connectors.types import DialectPayload
from sqlbridge.exceptions import OperationNotSupportedError, QueryExecutionError
from sqlbridge.services import commands


@pytest.mark.asyncio
async def test_get_db_lists_readable_files(folder_payload):
    tree = await commands.get_db(folder_payload)

    assert tree.name == "data"
    assert tree.node_type == "root"
    assert [(node.name, node.node_type) for node in tree.children] == [("nested", "path"), ("sales.csv", "csv")]

    [items] = tree.children[0].children
    assert items.name == "items.parquet"
    assert items.path == "nested/items.parquet"
    assert items.node_type == "parquet"
    assert items.size > 0


@pytest.mark.asyncio
async def test_get_db_does_not_follow_a_symlink_loop(data_folder, folder_payload):
    os.symlink(data_folder, data_folder / "loop", target_is_directory=True)

    tree = await commands.get_db(folder_payload)

    assert [node.name for node in tree.children] == ["nested", "sales.csv"]
    rows = await commands.find("sales", None, folder_payload)
    assert rows.code == 0


@pytest.mark.asyncio
async def test_get_db_reports_unreadable_folder(folder_payload):
    with patch("sqlbridge.data_connectors.folder.os.scandir", side_effect=PermissionError("permission denied")):
        with pytest.raises(QueryExecutionError, match="permission denied"):
            await commands.get_db(folder_payload)


@pytest.mark.asyncio
async def test_query_relative_file(folder_payload, rows_of):
    sql = "SELECT region, sum(amount) AS amount FROM 'sales.csv' GROUP BY region ORDER BY region"

    response = await commands.query(sql, None, 0, folder_payload)

    assert rows_of(response) == [
        {"region": "east", "amount": 30.0},
        {"region": "north", "amount": 17.75},
        {"region": "south", "amount": 20.0},
    ]


@pytest.mark.asyncio
async def test_query_table_reads_the_file(folder_payload, rows_of):
    response = await commands.query_table("sales.csv", None, 0, "amount", "region = 'north'", folder_payload)

    assert [row["id"] for row in rows_of(response)] == [3, 1]
    assert response.data.total == 2


@pytest.mark.asyncio
async def test_query_table_nested_parquet(folder_payload, rows_of):
    response = await commands.query_table("nested/items.parquet", 1, 0, "sku", None, folder_payload)

    assert rows_of(response) == [{"sku": "a-1", "price": 1.5}]
    assert response.data.total == 2


@pytest.mark.asyncio
async def test_table_row_count(folder_payload):
    assert await commands.table_row_count("sales.csv", "amount > 10", folder_payload) == 3


@pytest.mark.asyncio
async def test_show_schema_lists_directory_entries(folder_payload, rows_of):
    rows = rows_of(await commands.show_schema("", folder_payload))

    assert [(row["name"], row["type"]) for row in rows] == [("nested", "path"), ("sales.csv", "csv")]
    assert rows[0]["size"] is None


@pytest.mark.asyncio
async def test_show_column_describes_the_file(folder_payload, rows_of):
    rows = rows_of(await commands.show_column(None, "sales.csv", folder_payload))

    assert [row["column_name"] for row in rows] == ["id", "region", "amount"]


@pytest.mark.asyncio
async def test_find(folder_payload, rows_of):
    rows = rows_of(await commands.find("ITEMS", None, folder_payload))

    assert rows == [{"name": "items.parquet", "path": "nested/items.parquet", "type": "parquet", "size": rows[0]["size"]}]


@pytest.mark.asyncio
async def test_find_skips_hidden_files(folder_payload, rows_of):
    rows = rows_of(await commands.find("hidden", None, folder_payload))

    assert rows == []


@pytest.mark.asyncio
async def test_all_columns(folder_payload):
    columns = await commands.all_columns(folder_payload)

    assert [(c.table, c.column) for c in columns] == [
        ("nested/items.parquet", "sku"),
        ("nested/items.parquet", "price"),
        ("sales.csv", "id"),
        ("sales.csv", "region"),
        ("sales.csv", "amount"),
    ]
    assert columns[0].schema_name == "nested"
    assert columns[2].schema_name is None


@pytest.mark.asyncio
async def test_drop_table_is_not_supported(folder_payload, data_folder):
    with pytest.raises(OperationNotSupportedError):
        await commands.drop_table(None, "sales.csv", folder_payload)

    assert (data_folder / "sales.csv").exists()


@pytest.mark.asyncio
async def test_missing_folder(tmp_path):
    payload = DialectPayload(dialect="folder", path=str(tmp_path / "nowhere"))

    response = await commands.query("SELECT 1", None, 0, payload)

    assert response.code == 1
    assert "folder does not exist" in response.message
