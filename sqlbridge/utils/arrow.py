"""Conversion of driver rows into Arrow tables."""

from collections.abc import Sequence
from typing import Any

import pyarrow as pa
import pyarrow.ipc

from sqlbridge.data_connectors.types import Title


def _column_array(values: list[Any]) -> pa.Array:
    try:
        return pa.array(values)
    except (pa.ArrowInvalid, pa.ArrowTypeError, pa.ArrowNotImplementedError):
        # Mixed or driver-specific values fall back to their text form
        return pa.array([None if value is None else str(value) for value in values], type=pa.string())


def rows_to_arrow(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> pa.Table:
    """Build an Arrow table from column names and row tuples.

    Duplicate column names (``SELECT a.id, b.id``) are kept; Arrow allows them.
    """
    arrays = [_column_array([row[index] for row in rows]) for index in range(len(columns))]
    return pa.Table.from_arrays(arrays, names=list(columns))


def table_titles(table: pa.Table) -> list[Title]:
    """Column headers derived from an Arrow schema."""
    return [Title(name=field.name, type=str(field.type)) for field in table.schema]


def to_ipc_bytes(table: pa.Table) -> bytes:
    """Serialize a table in the Arrow IPC stream format."""
    sink = pa.BufferOutputStream()
    with pa.ipc.new_stream(sink, table.schema) as writer:
        writer.write_table(table)
    return sink.getvalue().to_pybytes()
