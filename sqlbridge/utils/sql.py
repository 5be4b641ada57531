"""SQL text helpers shared by every connection.

Statements are treated as opaque text except where paging needs to know
whether a statement is a single query that can be nested in a subquery.
"""

from typing import Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError
from sqlglot.tokens import TokenType

from sqlbridge.logging import get_logger
from sqlbridge.utils.dialect_mapper import get_ast_dialect

logger = get_logger(__name__)


def strip_statement(sql: str) -> str:
    """Drop surrounding whitespace and trailing semicolons."""
    return sql.strip().rstrip(";").rstrip()


def is_single_query(sql: str, dialect: str) -> bool:
    """Check whether ``sql`` is exactly one row-returning query.

    Args:
        sql: SQL text
        dialect: Dialect tag used to pick the parsing grammar

    Returns:
        True if the text parses to a single SELECT-like expression

    """
    try:
        expressions = [e for e in sqlglot.parse(sql, dialect=get_ast_dialect(dialect)) if e is not None]
    except SqlglotError:
        return False
    return len(expressions) == 1 and isinstance(expressions[0], exp.Query)


def subquery_body(sql: str, dialect: Optional[str] = None) -> str:
    """Text of a single query that can be nested inside parentheses.

    Everything after the last token goes, so trailing semicolons and
    comments cannot swallow the closing parenthesis.

    Examples:
        >>> subquery_body("SELECT * FROM users -- every user")
        'SELECT * FROM users'
        >>> subquery_body("SELECT 1; /* done */")
        'SELECT 1'

    """
    try:
        tokens = get_ast_dialect(dialect or "").tokenize(sql)
    except SqlglotError:
        return strip_statement(sql)

    body = [token for token in tokens if token.token_type != TokenType.SEMICOLON]
    if not body:
        return strip_statement(sql)
    return sql[: body[-1].end + 1].strip()


def split_statements(sql: str, dialect: Optional[str] = None) -> list[str]:
    """Split ``sql`` on top-level semicolons, dropping empty statements.

    Text that does not tokenize is returned whole so the backend reports the error.

    Examples:
        >>> split_statements("CREATE TABLE t (id INT); INSERT INTO t VALUES (';');")
        ['CREATE TABLE t (id INT)', "INSERT INTO t VALUES (';')"]

    """
    try:
        tokens = get_ast_dialect(dialect or "").tokenize(sql)
    except SqlglotError:
        return [sql.strip()]

    statements, current = [], []
    for token in tokens + [None]:
        if token is not None and token.token_type != TokenType.SEMICOLON:
            current.append(token)
            continue
        if current:
            statements.append(sql[current[0].start : current[-1].end + 1])
        current = []
    return statements


def paginate(sql: str, limit: Optional[int], offset: int, dialect: Optional[str] = None) -> str:
    """Wrap a query so the backend applies limit and offset."""
    paged = f"SELECT * FROM ({subquery_body(sql, dialect)}) AS t"
    if limit is not None:
        paged += f" LIMIT {int(limit)}"
    if offset:
        paged += f" OFFSET {int(offset)}"
    return paged


def count_rows(sql: str, dialect: Optional[str] = None) -> str:
    """Wrap a query so the backend counts its rows."""
    return f"SELECT count(*) FROM ({subquery_body(sql, dialect)}) AS t"


def quote_literal(value: str) -> str:
    """Render ``value`` as a single-quoted SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def select_table(
    table_ref: str,
    where: str = "",
    order_by: str = "",
    limit: Optional[int] = None,
    offset: int = 0,
) -> str:
    """Build the SELECT behind ``query_table``.

    Empty or blank ``where``/``order_by`` produce no clause at all.
    """
    sql = f"SELECT * FROM {table_ref}"
    if where and where.strip():
        sql += f" WHERE {where.strip()}"
    if order_by and order_by.strip():
        sql += f" ORDER BY {order_by.strip()}"
    if limit is not None:
        sql += f" LIMIT {int(limit)}"
    if offset:
        sql += f" OFFSET {int(offset)}"
    return sql


def count_table(table_ref: str, where: str = "") -> str:
    """Build the COUNT behind ``table_row_count``."""
    sql = f"SELECT count(*) FROM {table_ref}"
    if where and where.strip():
        sql += f" WHERE {where.strip()}"
    return sql


def format_sql(sql: str) -> str:
    """Pretty-print SQL with sqlglot's default formatting options.

    Text that does not parse is returned unchanged.
    """
    try:
        statements = sqlglot.transpile(sql, pretty=True)
    except SqlglotError as e:
        logger.warning("Unable to format SQL, returning it unchanged", error=str(e))
        return sql
    return ";\n\n".join(statements)
