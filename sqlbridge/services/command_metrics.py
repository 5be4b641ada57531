"""Command metrics for Prometheus monitoring."""

from prometheus_client import Counter, Histogram

from sqlbridge.logging import get_logger

logger = get_logger(__name__)

command_requests_total = Counter(
    "sqlbridge_command_requests_total",
    "Total number of commands by dialect, operation and outcome",
    ["dialect", "operation", "status"],
)

command_duration_seconds = Histogram(
    "sqlbridge_command_duration_seconds",
    "Time spent running a command, connection open and close included",
    ["dialect", "operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

unsupported_dialect_total = Counter(
    "sqlbridge_unsupported_dialect_total",
    "Requests naming a dialect no connection is registered for",
)


def record_command(dialect: str, operation: str, status: str, duration: float) -> None:
    """Record one finished command."""
    command_requests_total.labels(dialect=dialect, operation=operation, status=status).inc()
    command_duration_seconds.labels(dialect=dialect, operation=operation).observe(duration)
    logger.debug(
        "Command recorded",
        dialect=dialect,
        operation=operation,
        status=status,
        duration_ms=round(duration * 1000, 2),
    )
