"""Structured logging for the connector service.

Log lines carry the request's correlation ID, the active trace and span IDs
and, inside a command, the operation and dialect it runs for. Connection
descriptors hold credentials, so password-like keys are masked before any
renderer sees them.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

import structlog
from opentelemetry import trace

from sqlbridge.config import settings

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

SECRET_KEYS = frozenset({"password", "passwd", "pwd", "secret", "token"})
MASK = "******"


def get_correlation_id() -> str:
    """Correlation ID of the current context, created on first use."""
    correlation_id = correlation_id_var.get()
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
        correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def get_trace_id() -> Optional[str]:
    span_context = trace.get_current_span().get_span_context()
    if span_context.trace_id == trace.INVALID_TRACE_ID:
        return None
    return f"{span_context.trace_id:032x}"


def get_span_id() -> Optional[str]:
    span_context = trace.get_current_span().get_span_context()
    if span_context.span_id == trace.INVALID_SPAN_ID:
        return None
    return f"{span_context.span_id:016x}"


def add_request_context(_logger: Any, _method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Attach correlation, trace and service identifiers."""
    event_dict["correlation_id"] = get_correlation_id()
    trace_id = get_trace_id()
    if trace_id:
        event_dict["trace_id"] = trace_id
        event_dict["span_id"] = get_span_id()
    event_dict["service"] = settings.OTEL_SERVICE_NAME
    event_dict["version"] = settings.OTEL_SERVICE_VERSION
    return event_dict


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: MASK if str(key).lower() in SECRET_KEYS else _mask(item) for key, item in value.items()}
    return value


def redact_secrets(_logger: Any, _method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask password-like keys, including inside ``extra`` and other nested dicts.

    Examples:
        >>> redact_secrets(None, "info", {"extra": {"user": "app", "password": "pw"}})
        {'extra': {'user': 'app', 'password': '******'}}

    """
    return _mask(event_dict)


@contextmanager
def command_context(operation: str, dialect: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with the command it belongs to."""
    with structlog.contextvars.bound_contextvars(operation=operation, dialect=dialect):
        yield


def configure_logging() -> None:
    """Configure structlog on top of stdlib logging."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.value),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_request_context,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.LOG_FORMAT == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "development")

    structlog.configure(
        processors=processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if settings.ENVIRONMENT == "production":
        for name in ("uvicorn.access", "clickhouse_connect", "clickhouse_driver", "aiomysql"):
            logging.getLogger(name).setLevel(logging.WARNING)


class CentralizedLogger:
    """Structured logger that mirrors each entry as an event on the active span."""

    def __init__(self, name: str = __name__):
        self.name = name
        self.logger = structlog.get_logger(name)

    def _log_with_trace(self, level: str, event: str, **kwargs):
        span = trace.get_current_span()
        if span.is_recording():
            attributes = {key: self._span_value(value) for key, value in _mask(kwargs).items() if key != "exc_info"}
            span.add_event(f"[{level.upper()}] {event}", attributes=attributes)
            if level == "error":
                span.set_status(trace.Status(trace.StatusCode.ERROR, event))

        getattr(self.logger, level)(event, **kwargs)

    @staticmethod
    def _span_value(value):
        if isinstance(value, (bool, float)):
            return value
        if isinstance(value, int):
            # Span attributes are int64
            return value if -(2**63) <= value < 2**63 else str(value)
        return "null" if value is None else str(value)[:500]

    def debug(self, event: str, **kwargs):
        self._log_with_trace("debug", event, **kwargs)

    def info(self, event: str, **kwargs):
        self._log_with_trace("info", event, **kwargs)

    def warning(self, event: str, **kwargs):
        self._log_with_trace("warning", event, **kwargs)

    def error(self, event: str, **kwargs):
        self._log_with_trace("error", event, **kwargs)


def get_logger(name: str) -> CentralizedLogger:
    return CentralizedLogger(name)
