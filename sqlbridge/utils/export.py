"""Writers that persist a result table to a file."""

import os
import tempfile
from pathlib import Path
from typing import Callable, Optional

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from sqlbridge.exceptions.connector import UnsupportedExportFormatError

DEFAULT_EXPORT_FORMAT = "csv"


def _write_csv(table: pa.Table, path: str) -> None:
    table.to_pandas().to_csv(path, index=False)


def _write_tsv(table: pa.Table, path: str) -> None:
    table.to_pandas().to_csv(path, index=False, sep="\t")


def _write_json(table: pa.Table, path: str) -> None:
    table.to_pandas().to_json(path, orient="records", date_format="iso", force_ascii=False)


def _write_json_lines(table: pa.Table, path: str) -> None:
    table.to_pandas().to_json(path, orient="records", lines=True, date_format="iso", force_ascii=False)


def _write_parquet(table: pa.Table, path: str) -> None:
    pq.write_table(table, path)


def _write_xlsx(table: pa.Table, path: str) -> None:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        table.to_pandas().to_excel(writer, index=False)


WRITERS: dict[str, Callable[[pa.Table, str], None]] = {
    "csv": _write_csv,
    "tsv": _write_tsv,
    "json": _write_json,
    "jsonl": _write_json_lines,
    "ndjson": _write_json_lines,
    "parquet": _write_parquet,
    "xlsx": _write_xlsx,
}


def infer_export_format(file: str, file_format: Optional[str] = None) -> str:
    """Resolve the export format for ``file``.

    An explicit format wins; otherwise the extension of the file name is used,
    and a name without extension falls back to CSV.

    Examples:
        >>> infer_export_format("out.json")
        'json'
        >>> infer_export_format("out")
        'csv'

    """
    if file_format:
        return file_format.lower()
    suffix = Path(file).suffix.lstrip(".").lower()
    return suffix or DEFAULT_EXPORT_FORMAT


def check_export_format(file_format: str, dialect: Optional[str] = None) -> str:
    """Raise if no writer handles ``file_format``."""
    normalized = file_format.lower()
    if normalized not in WRITERS:
        raise UnsupportedExportFormatError(file_format, sorted(WRITERS), dialect=dialect)
    return normalized


def write_table(table: pa.Table, file: str, file_format: str) -> None:
    """Write ``table`` to ``file`` atomically.

    The data goes to a temporary file beside the destination which replaces
    the destination only once writing finished; on failure the temporary file
    is removed and the destination is left untouched.
    """
    file_format = check_export_format(file_format)
    writer = WRITERS[file_format]
    destination = Path(file)
    # The temporary file carries the format's extension; the xlsx writer checks it
    fd, tmp_path = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.", suffix=f".partial.{file_format}")
    os.close(fd)
    try:
        writer(table, tmp_path)
        os.replace(tmp_path, destination)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
