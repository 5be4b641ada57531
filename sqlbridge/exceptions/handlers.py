import traceback
from typing import Any, Dict

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from sqlbridge.exceptions.base import NotFoundError, SqlBridgeError
from sqlbridge.exceptions.connector import (
    ConnectorError,
    MalformedDescriptorError,
    OperationNotSupportedError,
    UnsupportedDialectError,
    UnsupportedExportFormatError,
)
from sqlbridge.logging import get_logger

logger = get_logger(__name__)


def create_error_response(
    error_code: str,
    message: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    details: Dict[str, Any] | None = None,
) -> JSONResponse:
    """Create standardized error response."""
    content: Dict[str, Any] = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


def _status_for(exc: SqlBridgeError) -> int:
    # Most specific first: several of these share ConnectorError as a parent
    status_map = (
        (UnsupportedDialectError, status.HTTP_400_BAD_REQUEST),
        (MalformedDescriptorError, status.HTTP_422_UNPROCESSABLE_ENTITY),
        (UnsupportedExportFormatError, status.HTTP_400_BAD_REQUEST),
        (OperationNotSupportedError, status.HTTP_400_BAD_REQUEST),
        (NotFoundError, status.HTTP_404_NOT_FOUND),
        (ConnectorError, status.HTTP_502_BAD_GATEWAY),
    )
    for exc_type, status_code in status_map:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def sqlbridge_exception_handler(request: Request, exc: SqlBridgeError) -> JSONResponse:
    """Handle service exceptions."""
    status_code = _status_for(exc)

    logger.error(
        "Service exception occurred",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=request.url.path,
        method=request.method,
    )

    return create_error_response(
        error_code=exc.error_code,
        message=exc.message,
        status_code=status_code,
        details=exc.details,
    )


async def validation_exception_handler(request: Request, exc: PydanticValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error occurred",
        errors=errors,
        path=request.url.path,
        method=request.method,
    )

    return create_error_response(
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"validation_errors": errors},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    error_id = id(exc)

    logger.error(
        "Unexpected exception occurred",
        error_id=error_id,
        error_type=type(exc).__name__,
        error=str(exc),
        path=request.url.path,
        method=request.method,
        traceback=traceback.format_exc(),
    )

    return create_error_response(
        error_code="INTERNAL_SERVER_ERROR",
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        details={"error_id": error_id},
    )
