"""Command API routes.

Each route forwards its body to the matching command; errors are turned
into responses by the application's exception handlers.
"""

from fastapi import APIRouter, Response, status

from sqlbridge.api.v1.schemas.commands import (
    CountResponse,
    DialectRequest,
    ExportRequest,
    FindRequest,
    FormatSqlRequest,
    FormattedSqlResponse,
    MessageResponse,
    OpenedFilesResponse,
    OpenPathRequest,
    PagingQueryRequest,
    QueryRequest,
    QueryTableRequest,
    ShowSchemaRequest,
    TableRequest,
    TableRowCountRequest,
)
from sqlbridge.data_connectors.types import ColumnMetadata, TreeNode
from sqlbridge.schemas.response import ArrowResponse
from sqlbridge.services import commands

router = APIRouter(prefix="/v1", tags=["Commands"])


@router.post("/query", response_model=ArrowResponse, summary="Run a statement")
async def query(body: QueryRequest) -> ArrowResponse:
    return await commands.query(body.sql, body.limit, body.offset, body.dialect)


@router.post("/paging_query", response_model=ArrowResponse, summary="Run one page of a statement")
async def paging_query(body: PagingQueryRequest) -> ArrowResponse:
    return await commands.paging_query(body.sql, body.limit, body.offset, body.dialect)


@router.post("/query_table", response_model=ArrowResponse, summary="Read rows from one table")
async def query_table(body: QueryTableRequest) -> ArrowResponse:
    return await commands.query_table(body.table, body.limit, body.offset, body.order_by, body.where, body.dialect)


@router.post("/table_row_count", response_model=CountResponse, summary="Count rows of one table")
async def table_row_count(body: TableRowCountRequest) -> CountResponse:
    count = await commands.table_row_count(body.table, body.condition, body.dialect)
    return CountResponse(count=count)


@router.post("/export", status_code=status.HTTP_204_NO_CONTENT, summary="Write a result to a file")
async def export(body: ExportRequest) -> Response:
    await commands.export(body.sql, body.file, body.format, body.dialect)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/get_db", response_model=TreeNode, summary="Navigable tree of the backend")
async def get_db(body: DialectRequest) -> TreeNode:
    return await commands.get_db(body.dialect)


@router.post("/show_schema", response_model=ArrowResponse, summary="List the objects of a schema")
async def show_schema(body: ShowSchemaRequest) -> ArrowResponse:
    return await commands.show_schema(body.schema_name, body.dialect)


@router.post("/show_column", response_model=ArrowResponse, summary="Describe the columns of a table")
async def show_column(body: TableRequest) -> ArrowResponse:
    return await commands.show_column(body.schema_name, body.table, body.dialect)


@router.post("/drop_table", response_model=MessageResponse, summary="Drop a table")
async def drop_table(body: TableRequest) -> MessageResponse:
    message = await commands.drop_table(body.schema_name, body.table, body.dialect)
    return MessageResponse(message=message)


@router.post("/find", response_model=ArrowResponse, summary="Search names")
async def find(body: FindRequest) -> ArrowResponse:
    return await commands.find(body.value, body.path, body.dialect)


@router.post("/all_columns", response_model=list[ColumnMetadata], summary="Describe every column")
async def all_columns(body: DialectRequest) -> list[ColumnMetadata]:
    return await commands.all_columns(body.dialect)


@router.post("/format_sql", response_model=FormattedSqlResponse, summary="Pretty-print SQL")
async def format_sql(body: FormatSqlRequest) -> FormattedSqlResponse:
    return FormattedSqlResponse(sql=await commands.format_sql(body.sql))


@router.post("/opened_files", response_model=OpenedFilesResponse, summary="Most recently opened files")
async def opened_files() -> OpenedFilesResponse:
    return OpenedFilesResponse(files=await commands.opened_files())


@router.post("/open_path", status_code=status.HTTP_204_NO_CONTENT, summary="Reveal a path in the file browser")
async def open_path(body: OpenPathRequest) -> Response:
    await commands.open_path(body.path)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
