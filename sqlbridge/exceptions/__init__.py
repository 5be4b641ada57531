from sqlbridge.exceptions.base import NotFoundError, PathNotFoundError, SqlBridgeError
from sqlbridge.exceptions.connector import (
    ConnectionFailedError,
    ConnectorError,
    DropTableError,
    ExportError,
    InvalidCredentialsError,
    MalformedDescriptorError,
    OperationNotSupportedError,
    QueryExecutionError,
    UnsupportedDialectError,
    UnsupportedExportFormatError,
)

__all__ = [
    "SqlBridgeError",
    "NotFoundError",
    "PathNotFoundError",
    "ConnectorError",
    "UnsupportedDialectError",
    "MalformedDescriptorError",
    "ConnectionFailedError",
    "InvalidCredentialsError",
    "QueryExecutionError",
    "DropTableError",
    "ExportError",
    "UnsupportedExportFormatError",
    "OperationNotSupportedError",
]
