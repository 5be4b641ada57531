"""Access logging for command requests."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from sqlbridge.api.metrics import command_label
from sqlbridge.config import settings
from sqlbridge.logging import get_correlation_id, get_logger, get_trace_id, set_correlation_id

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request once it finishes and echo its correlation ID.

    A client that sends ``X-Correlation-ID`` gets its own ID back and in the
    service logs; otherwise a new one is generated. Requests slower than
    ``SLOW_REQUEST_MS`` are logged as warnings.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        correlation_id = request.headers.get(CORRELATION_HEADER)
        if correlation_id:
            set_correlation_id(correlation_id)
        else:
            correlation_id = get_correlation_id()

        command = command_label(request.url.path)
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed",
                command=command,
                path=request.url.path,
                duration_ms=self._elapsed_ms(start_time),
                error=str(exc),
                exc_info=True,
            )
            raise

        duration_ms = self._elapsed_ms(start_time)
        log = logger.warning if duration_ms >= settings.SLOW_REQUEST_MS else logger.info
        log(
            "Request completed",
            command=command,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response.headers[CORRELATION_HEADER] = correlation_id
        trace_id = get_trace_id()
        if trace_id:
            response.headers["X-Trace-ID"] = trace_id
        return response

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return round((time.perf_counter() - start_time) * 1000, 2)
