"""Pytest fixtures for the test suite."""

import sqlite3
from pathlib import Path

import duckdb
import pyarrow as pa
import pyarrow.ipc
import pyarrow.parquet as pq
import pytest

from sqlbridge.data_connectors.types import DialectPayload
from sqlbridge.services.opened_files import opened_files_registry

USERS = [
    (1, "alice", 34),
    (2, "bob", 27),
    (3, "carol", 41),
    (4, "dave", 19),
    (5, "erin", 52),
]


@pytest.fixture(autouse=True)
def reset_opened_files():
    """Keep the process-wide registry empty between tests."""
    opened_files_registry.reset()
    yield
    opened_files_registry.reset()


@pytest.fixture
def rows_of():
    """Decode the Arrow payload of a successful response into row dicts."""

    def _decode(response) -> list[dict]:
        assert response.code == 0, response.message
        return pa.ipc.open_stream(response.data.data).read_all().to_pylist()

    return _decode


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    """SQLite database with a ``users`` table and an ``adults`` view."""
    path = tmp_path / "app.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER)")
    conn.executemany("INSERT INTO users VALUES (?, ?, ?)", USERS)
    conn.execute("CREATE TABLE orders (order_id INTEGER, user_id INTEGER, total REAL)")
    conn.execute("CREATE VIEW adults AS SELECT * FROM users WHERE age >= 21")
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def sqlite_payload(sqlite_path: Path) -> DialectPayload:
    return DialectPayload(dialect="sqlite", path=str(sqlite_path))


@pytest.fixture
def duckdb_path(tmp_path: Path) -> Path:
    """DuckDB database file with a ``users`` table."""
    path = tmp_path / "warehouse.duckdb"
    conn = duckdb.connect(str(path))
    conn.execute("CREATE TABLE users (id INTEGER, name VARCHAR, age INTEGER)")
    conn.executemany("INSERT INTO users VALUES (?, ?, ?)", USERS)
    conn.close()
    return path


@pytest.fixture
def duckdb_payload(duckdb_path: Path) -> DialectPayload:
    return DialectPayload(dialect="duckdb", path=str(duckdb_path))


@pytest.fixture
def data_folder(tmp_path: Path) -> Path:
    """Folder with a CSV, a nested Parquet file and files that must be skipped."""
    folder = tmp_path / "data"
    nested = folder / "nested"
    nested.mkdir(parents=True)

    (folder / "sales.csv").write_text("id,region,amount\n1,north,10.5\n2,south,20.0\n3,north,7.25\n4,east,30.0\n")
    (folder / ".hidden.csv").write_text("id\n1\n")
    (folder / "notes.md").write_text("# not a table\n")

    items = pa.table({"sku": ["a-1", "b-2"], "price": [1.5, 2.5]})
    pq.write_table(items, nested / "items.parquet")
    return folder


@pytest.fixture
def folder_payload(data_folder: Path) -> DialectPayload:
    return DialectPayload(dialect="folder", path=str(data_folder))


@pytest.fixture
def file_payload(data_folder: Path) -> DialectPayload:
    return DialectPayload(dialect="file", path=str(data_folder / "sales.csv"))
