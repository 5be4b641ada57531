"""Type definitions for data connectors."""

from __future__ import annotations

from enum import Enum
from typing import Optional, TypedDict, Union

import pyarrow as pa
from pydantic import BaseModel, ConfigDict, Field


class Dialect(str, Enum):
    """Dialect tags understood by the connection factory."""

    FOLDER = "folder"
    FILE = "file"
    DUCKDB = "duckdb"
    SQLITE = "sqlite"
    CLICKHOUSE = "clickhouse"
    CLICKHOUSE_TCP = "clickhouse_tcp"
    MYSQL = "mysql"
    POSTGRES = "postgres"


class ConnectionStatus(str, Enum):
    """Connection status states."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class DialectPayload(BaseModel):
    """Which backend to target and how to reach it.

    Which fields are required depends on the dialect; the factory enforces
    that when it builds a connection, not here.
    """

    dialect: str = Field(..., description="Dialect tag, e.g. 'postgres' or 'folder'")
    path: Optional[str] = Field(None, description="File, folder or database path")
    username: Optional[str] = Field(None, description="Login user")
    password: Optional[str] = Field(None, description="Login password")
    host: Optional[str] = Field(None, description="Server host")
    port: Optional[Union[int, str]] = Field(None, description="Server port")
    database: Optional[str] = Field(None, description="Database to select after connecting")
    cwd: Optional[str] = Field(None, description="Working directory for relative file references")


class Title(BaseModel):
    """Column header of a columnar result."""

    name: str
    type: str


class RawArrowData(TypedDict):
    """Result of an operation before it is wrapped in a response envelope.

    Attributes:
        total: Rows in the full result (before paging) when known, else rows returned
        batch: The rows themselves
        titles: Column headers, derived from the batch schema when None
        sql: The statement that produced the rows, if any

    """

    total: int
    batch: pa.Table
    titles: Optional[list[Title]]
    sql: Optional[str]


class TreeNode(BaseModel):
    """One level of a backend's navigable hierarchy."""

    name: str = Field(..., description="Display name")
    path: str = Field(..., description="Identifier passed back to the other operations")
    node_type: str = Field(..., description="root, database, table, view, path or a file kind")
    icon: Optional[str] = Field(None, description="Icon hint for the client")
    size: Optional[int] = Field(None, description="Size in bytes for file nodes")
    children: list[TreeNode] = Field(default_factory=list)


class ColumnMetadata(BaseModel):
    """Column description aggregated by ``all_columns``."""

    model_config = ConfigDict(frozen=True)

    database: Optional[str] = None
    schema_name: Optional[str] = None
    table: str
    column: str
    data_type: str
    nullable: Optional[bool] = None
