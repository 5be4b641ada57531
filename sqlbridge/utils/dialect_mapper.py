"""Utility for mapping dialect tags to SQL grammars.

The grammar is only used to reason about SQL text (is this a single query
we can wrap for paging, how should it be pretty-printed); it never decides
which backend executes the statement.
"""

from sqlglot.dialects.dialect import Dialect

from sqlbridge.logging import get_logger

logger = get_logger(__name__)

# Mapping from dialect tags to sqlglot dialect names
TAG_TO_GRAMMAR = {
    "folder": "duckdb",
    "file": "duckdb",
    "duckdb": "duckdb",
    "clickhouse_tcp": "clickhouse",
    "mysql": "mysql",
    "postgres": "postgres",
}

# sqlglot's base Dialect is the generic/ANSI grammar
GENERIC_GRAMMAR = ""


def get_ast_dialect(dialect: str) -> Dialect:
    """Return the sqlglot grammar used to parse SQL written for ``dialect``.

    Unknown tags degrade to the generic grammar instead of failing.

    Examples:
        >>> type(get_ast_dialect("mysql")).__name__
        'MySQL'
        >>> type(get_ast_dialect("sqlite")).__name__
        'Dialect'

    """
    name = TAG_TO_GRAMMAR.get(dialect, GENERIC_GRAMMAR)
    if not name:
        logger.debug("Using generic SQL grammar", dialect=dialect)
    return Dialect.get_or_raise(name)


def get_supported_grammars() -> list[str]:
    """Get the distinct non-generic grammar names."""
    return sorted(set(TAG_TO_GRAMMAR.values()))
