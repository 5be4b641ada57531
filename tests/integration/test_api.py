"""HTTP surface of the connector service."""

import base64

import pyarrow as pa
import pyarrow.ipc
import pytest
from fastapi.testclient import TestClient

from sqlbridge.server import create_app
from sqlbridge.services.opened_files import opened_files_registry


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def sqlite_dialect(sqlite_path):
    return {"dialect": "sqlite", "path": str(sqlite_path)}


def _decode(payload: dict) -> list[dict]:
    data = base64.urlsafe_b64decode(payload["data"]["data"])
    return pa.ipc.open_stream(data).read_all().to_pylist()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert "clickhouse_tcp" in body["dialects"]


def test_query_returns_arrow_envelope(client, sqlite_dialect):
    response = client.post(
        "/api/v1/query",
        json={"dialect": sqlite_dialect, "sql": "SELECT id, name FROM users ORDER BY id", "limit": 2},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 0
    assert body["elapsed_ms"] >= 0
    assert body["data"]["titles"] == [{"name": "id", "type": "int64"}, {"name": "name", "type": "string"}]
    assert _decode(body) == [{"id": 1, "name": "alice"}, {"id": 2, "name": "bob"}]


def test_backend_error_stays_in_envelope(client, sqlite_dialect):
    response = client.post("/api/v1/query", json={"dialect": sqlite_dialect, "sql": "SELECT * FROM ghost"})

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 1
    assert "ghost" in body["message"]
    assert body["data"] is None


def test_unsupported_dialect(client):
    response = client.post("/api/v1/query", json={"dialect": {"dialect": "oracle"}, "sql": "SELECT 1"})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "not support dialect oracle"


def test_malformed_descriptor(client):
    response = client.post("/api/v1/get_db", json={"dialect": {"dialect": "postgres", "host": "db.local"}})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "MalformedDescriptorError"
    assert error["details"]["field"] == "port"


def test_request_validation(client, sqlite_dialect):
    response = client.post("/api/v1/query", json={"dialect": sqlite_dialect})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_table_row_count(client, sqlite_dialect):
    response = client.post(
        "/api/v1/table_row_count",
        json={"dialect": sqlite_dialect, "table": "users", "condition": "age > 30"},
    )

    assert response.status_code == 200
    assert response.json() == {"count": 3}


def test_show_column_accepts_schema_key(client, sqlite_dialect):
    response = client.post(
        "/api/v1/show_column",
        json={"dialect": sqlite_dialect, "schema": "main", "table": "orders"},
    )

    assert response.status_code == 200
    assert [row["column_name"] for row in _decode(response.json())] == ["order_id", "user_id", "total"]


def test_export_writes_file(client, sqlite_dialect, tmp_path):
    target = tmp_path / "users.tsv"

    response = client.post(
        "/api/v1/export",
        json={"dialect": sqlite_dialect, "sql": "SELECT name FROM users ORDER BY id", "file": str(target)},
    )

    assert response.status_code == 204
    assert target.read_text().splitlines()[:2] == ["name", "alice"]


def test_drop_table_on_folder_is_rejected(client, data_folder):
    response = client.post(
        "/api/v1/drop_table",
        json={"dialect": {"dialect": "folder", "path": str(data_folder)}, "table": "sales.csv"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "OperationNotSupportedError"


def test_all_columns(client, file_payload):
    response = client.post("/api/v1/all_columns", json={"dialect": file_payload.model_dump()})

    assert response.status_code == 200
    assert [column["column"] for column in response.json()] == ["id", "region", "amount"]


def test_format_sql(client):
    response = client.post("/api/v1/format_sql", json={"sql": "select a,b from t where a=1"})

    assert response.status_code == 200
    formatted = response.json()["sql"]
    assert formatted.startswith("SELECT\n")
    assert "FROM t" in formatted


def test_opened_files(client):
    assert client.post("/api/v1/opened_files").json() == {"files": []}

    opened_files_registry.set(["/data/report.csv"])

    assert client.post("/api/v1/opened_files").json() == {"files": ["/data/report.csv"]}


def test_open_missing_path(client, tmp_path):
    response = client.post("/api/v1/open_path", json={"path": str(tmp_path / "missing")})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "PathNotFoundError"


def test_metrics_count_commands(client, sqlite_dialect):
    client.post("/api/v1/query", json={"dialect": sqlite_dialect, "sql": "SELECT 1"})

    response = client.get("/metrics")

    assert response.status_code == 200
    assert 'sqlbridge_command_requests_total{dialect="sqlite",operation="query",status="success"}' in response.text
