"""Connector-specific exceptions for data source connections."""

from typing import Any

from sqlbridge.exceptions.base import SqlBridgeError


class ConnectorError(SqlBridgeError):
    """Base exception for all connector-related errors."""

    def __init__(
        self,
        message: str,
        dialect: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize connector error.

        Args:
            message: Human-readable error message
            dialect: The dialect tag of the connection that failed
            details: Additional error context

        """
        details = dict(details or {})
        if dialect:
            details.setdefault("dialect", dialect)
        super().__init__(message, details=details)
        self.dialect = dialect


class UnsupportedDialectError(ConnectorError):
    """Raised when no connection class is registered for a dialect tag."""

    def __init__(
        self,
        dialect: str,
        available_dialects: list[str] | None = None,
    ) -> None:
        """Initialize unsupported dialect error.

        Args:
            dialect: The unsupported dialect tag
            available_dialects: List of supported dialect tags

        """
        super().__init__(
            f"not support dialect {dialect}",
            dialect=dialect,
            details={"available_dialects": available_dialects or []},
        )
        self.available_dialects = available_dialects or []


class MalformedDescriptorError(ConnectorError):
    """Raised when a supported dialect is missing a field it cannot work without.

    This is a caller bug rather than a backend failure, so it is never folded
    into a response envelope.
    """

    def __init__(self, dialect: str, field: str, reason: str = "is required") -> None:
        """Initialize malformed descriptor error.

        Args:
            dialect: The dialect tag being constructed
            field: Name of the offending descriptor field
            reason: What is wrong with the field

        """
        super().__init__(
            f"field '{field}' {reason} for dialect '{dialect}'",
            dialect=dialect,
            details={"field": field},
        )
        self.field = field


class ConnectionFailedError(ConnectorError):
    """Raised when the backend handshake fails.

    This indicates the connection parameters are invalid or
    the remote service is unreachable.
    """

    def __init__(
        self,
        message: str,
        dialect: str | None = None,
        host: str | None = None,
        port: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize connection failure.

        Args:
            message: Human-readable error message
            dialect: The dialect tag that failed
            host: Host that was attempted
            port: Port that was attempted
            details: Additional error context

        """
        super().__init__(message, dialect=dialect, details=details)
        self.host = host
        self.port = port


class InvalidCredentialsError(ConnectionFailedError):
    """Raised when provided credentials are rejected by the server."""

    def __init__(
        self,
        message: str = "Authentication failed with provided credentials",
        dialect: str | None = None,
        username: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, dialect=dialect, details=details)
        self.username = username


class QueryExecutionError(ConnectorError):
    """Raised when query execution fails.

    This could be due to syntax errors, permission issues,
    or runtime errors in the query. The backend message is kept verbatim.
    """

    def __init__(
        self,
        message: str,
        dialect: str | None = None,
        query: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize query execution error.

        Args:
            message: Human-readable error message
            dialect: The dialect tag that failed
            query: The query that failed (may be truncated)
            details: Additional error context

        """
        super().__init__(message, dialect=dialect, details=details)
        self.query = query


class DropTableError(ConnectorError):
    """Raised when a DROP TABLE statement does not complete."""

    def __init__(self, message: str, dialect: str | None = None, table: str | None = None) -> None:
        super().__init__(message, dialect=dialect, details={"table": table} if table else None)
        self.table = table


class ExportError(ConnectorError):
    """Raised when a result set cannot be written to its destination."""

    def __init__(
        self,
        message: str,
        dialect: str | None = None,
        file: str | None = None,
        file_format: str | None = None,
    ) -> None:
        super().__init__(message, dialect=dialect, details={"file": file, "format": file_format})
        self.file = file
        self.file_format = file_format


class UnsupportedExportFormatError(ExportError):
    """Raised when an export is requested in a format no writer handles."""

    def __init__(self, file_format: str, supported: list[str], dialect: str | None = None) -> None:
        super().__init__(
            f"export format '{file_format}' is not supported, expected one of: {', '.join(supported)}",
            dialect=dialect,
            file_format=file_format,
        )
        self.supported = supported


class OperationNotSupportedError(ConnectorError):
    """Raised when a dialect has no meaningful implementation of an operation."""

    def __init__(self, operation: str, dialect: str | None = None) -> None:
        super().__init__(f"{operation} is not supported for dialect {dialect}", dialect=dialect)
        self.operation = operation
