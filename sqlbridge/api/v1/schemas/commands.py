"""Pydantic schemas for the command API."""

from typing import Optional

from pydantic import BaseModel, Field

from sqlbridge.data_connectors.types import DialectPayload


class DialectRequest(BaseModel):
    """Any request that targets a backend."""

    dialect: DialectPayload = Field(..., description="Backend to target")


class QueryRequest(DialectRequest):
    sql: str = Field(..., min_length=1, description="Statement to run")
    limit: Optional[int] = Field(None, ge=0, description="Maximum rows to return, unbounded when omitted")
    offset: int = Field(0, ge=0, description="Rows to skip")


class PagingQueryRequest(DialectRequest):
    sql: str = Field(..., min_length=1, description="Statement to run")
    limit: Optional[int] = Field(None, ge=0, description="Page size, the service default when omitted")
    offset: Optional[int] = Field(None, ge=0, description="Rows to skip")


class QueryTableRequest(DialectRequest):
    table: str = Field(..., min_length=1, description="Table (or file) to read")
    limit: Optional[int] = Field(None, ge=0)
    offset: int = Field(0, ge=0)
    order_by: Optional[str] = Field(None, description="ORDER BY clause body")
    where: Optional[str] = Field(None, description="WHERE clause body")


class TableRowCountRequest(DialectRequest):
    table: str = Field(..., min_length=1)
    condition: Optional[str] = Field(None, description="WHERE clause body, unconditional when empty")


class ExportRequest(DialectRequest):
    sql: str = Field(..., min_length=1)
    file: str = Field(..., min_length=1, description="Destination path")
    format: Optional[str] = Field(None, description="Output format, inferred from the file extension when omitted")


class ShowSchemaRequest(DialectRequest):
    schema_name: str = Field(..., alias="schema", description="Schema (or directory) to list")


class TableRequest(DialectRequest):
    schema_name: Optional[str] = Field(None, alias="schema")
    table: str = Field(..., description="Table name")


class FindRequest(DialectRequest):
    value: str = Field(..., description="Text to search for")
    path: Optional[str] = Field(None, description="Schema or directory to search in")


class FormatSqlRequest(BaseModel):
    sql: str


class OpenPathRequest(BaseModel):
    path: str = Field(..., min_length=1)


class CountResponse(BaseModel):
    count: int


class MessageResponse(BaseModel):
    message: str


class FormattedSqlResponse(BaseModel):
    sql: str


class OpenedFilesResponse(BaseModel):
    files: list[str]
