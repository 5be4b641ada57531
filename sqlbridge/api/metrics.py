"""Prometheus metrics for the command HTTP surface."""

from prometheus_client import Counter, Gauge, Histogram

API_PREFIX = "/api/v1/"

# Paths served under API_PREFIX; anything else is labelled "other"
COMMANDS = frozenset(
    {
        "query",
        "paging_query",
        "query_table",
        "table_row_count",
        "export",
        "get_db",
        "show_schema",
        "show_column",
        "drop_table",
        "find",
        "all_columns",
        "format_sql",
        "opened_files",
        "open_path",
    }
)

http_requests_total = Counter(
    "sqlbridge_http_requests_total",
    "HTTP requests by command and response status",
    ["command", "status_code"],
)

http_request_duration_seconds = Histogram(
    "sqlbridge_http_request_duration_seconds",
    "Latency of command requests, serialization of the response included",
    ["command"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

http_requests_in_progress = Gauge(
    "sqlbridge_http_requests_in_progress",
    "Command requests currently being served",
    ["command"],
)

http_exceptions_total = Counter(
    "sqlbridge_http_exceptions_total",
    "Exceptions that escaped the exception handlers",
    ["command", "exception_type"],
)


def command_label(path: str) -> str:
    """Metric label for a request path.

    Examples:
        >>> command_label("/api/v1/paging_query")
        'paging_query'
        >>> command_label("/docs")
        'other'
        >>> command_label("/api/v1/no_such_command")
        'other'

    """
    if not path.startswith(API_PREFIX):
        return "other"
    command = path[len(API_PREFIX) :].strip("/")
    return command if command in COMMANDS else "other"
