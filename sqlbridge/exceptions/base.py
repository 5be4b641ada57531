"""Root of the service's exception hierarchy."""

from typing import Any, Dict, Optional


class SqlBridgeError(Exception):
    """Base class of every error the service raises on purpose.

    ``error_code`` defaults to the class name and is what HTTP clients see;
    ``details`` carries structured context for logs and error responses.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"error_code": self.error_code, "message": self.message, "details": self.details}


class NotFoundError(SqlBridgeError):
    """A resource named by the caller does not exist."""


class PathNotFoundError(NotFoundError):
    """A filesystem path handed to the service does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"the path does not exist: {path}", details={"path": path})
        self.path = path
