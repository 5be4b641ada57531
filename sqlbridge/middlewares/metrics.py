"""Per-command request metrics."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from sqlbridge.api.metrics import (
    command_label,
    http_exceptions_total,
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

EXCLUDED_ENDPOINTS = {"/health", "/metrics"}


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count and time requests under the name of the command they call.

    Paths that are not known commands share the ``other`` label so unknown
    paths cannot grow the label set.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXCLUDED_ENDPOINTS:
            return await call_next(request)

        command = command_label(request.url.path)
        http_requests_in_progress.labels(command=command).inc()
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            http_exceptions_total.labels(command=command, exception_type=type(exc).__name__).inc()
            raise
        finally:
            http_request_duration_seconds.labels(command=command).observe(time.perf_counter() - start_time)
            http_requests_in_progress.labels(command=command).dec()

        http_requests_total.labels(command=command, status_code=response.status_code).inc()
        return response
