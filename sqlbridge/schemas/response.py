"""Columnar response envelope returned by the query commands."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from sqlbridge.data_connectors.types import RawArrowData, Title
from sqlbridge.exceptions.connector import ConnectorError
from sqlbridge.utils.arrow import table_titles, to_ipc_bytes

SUCCESS = 0
FAILURE = 1


class ArrowData(BaseModel):
    """Rows of a result serialized as an Arrow IPC stream."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    total: int = Field(..., description="Rows in the full result when known, else rows returned")
    data: bytes = Field(..., description="Arrow IPC stream (base64 in JSON)")
    titles: list[Title] = Field(default_factory=list, description="Column headers")
    sql: Optional[str] = Field(None, description="Statement that produced the rows")


class ArrowResponse(BaseModel):
    """Uniform envelope for query results.

    ``code`` is 0 on success; on failure ``message`` carries the backend's
    error text and ``data`` is empty. ``elapsed_ms`` is only present for the
    operations that time their execution.
    """

    code: int = Field(SUCCESS, description="0 on success, non-zero on failure")
    message: Optional[str] = Field(None, description="Error message when code is non-zero")
    data: Optional[ArrowData] = None
    elapsed_ms: Optional[int] = Field(None, description="Wall-clock time of the operation in milliseconds")

    @property
    def is_success(self) -> bool:
        return self.code == SUCCESS

    @classmethod
    def from_raw_data(
        cls,
        raw: Union[RawArrowData, ConnectorError],
        elapsed_ms: Optional[int] = None,
    ) -> ArrowResponse:
        """Wrap a backend result or a backend error.

        Args:
            raw: What the connection returned, or the error it raised
            elapsed_ms: Execution time to attach, if the operation was timed

        Returns:
            ArrowResponse with either data or an error message, never both

        """
        if isinstance(raw, ConnectorError):
            return cls(code=FAILURE, message=raw.message, data=None, elapsed_ms=elapsed_ms)

        batch = raw["batch"]
        titles = raw.get("titles") or table_titles(batch)
        return cls(
            code=SUCCESS,
            data=ArrowData(total=raw["total"], data=to_ipc_bytes(batch), titles=titles, sql=raw.get("sql")),
            elapsed_ms=elapsed_ms,
        )
