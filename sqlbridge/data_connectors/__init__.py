"""Data connectors module for connecting to databases and data files."""

from sqlbridge.data_connectors.base import BaseConnection
from sqlbridge.data_connectors.clickhouse import ClickHouseConnection
from sqlbridge.data_connectors.clickhouse_tcp import ClickHouseTCPConnection
from sqlbridge.data_connectors.duckdb import DuckDBConnection
from sqlbridge.data_connectors.factory import (
    ConnectionRegistry,
    get_connection,
    get_registry,
    register_connection,
)
from sqlbridge.data_connectors.file import FileConnection
from sqlbridge.data_connectors.folder import FolderConnection
from sqlbridge.data_connectors.mysql import MySQLConnection
from sqlbridge.data_connectors.postgresql import PostgreSQLConnection
from sqlbridge.data_connectors.sqlite import SQLiteConnection
from sqlbridge.data_connectors.types import (
    ColumnMetadata,
    ConnectionStatus,
    Dialect,
    DialectPayload,
    RawArrowData,
    Title,
    TreeNode,
)

__all__ = [
    # Base connection
    "BaseConnection",
    # Concrete connections
    "FolderConnection",
    "FileConnection",
    "DuckDBConnection",
    "SQLiteConnection",
    "ClickHouseConnection",
    "ClickHouseTCPConnection",
    "MySQLConnection",
    "PostgreSQLConnection",
    # Factory functions
    "get_connection",
    "register_connection",
    "get_registry",
    "ConnectionRegistry",
    # Types
    "Dialect",
    "DialectPayload",
    "RawArrowData",
    "Title",
    "TreeNode",
    "ColumnMetadata",
    "ConnectionStatus",
]
