"""Folder connection: a directory of data files queried through in-memory DuckDB."""

import asyncio
import os
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from sqlbridge.config import settings
from sqlbridge.data_connectors.duckdb import DuckDBConnection
from sqlbridge.data_connectors.types import ColumnMetadata, RawArrowData, TreeNode
from sqlbridge.exceptions.connector import ConnectionFailedError, OperationNotSupportedError, QueryExecutionError
from sqlbridge.logging import get_logger
from sqlbridge.utils.arrow import rows_to_arrow
from sqlbridge.utils.sql import quote_literal

logger = get_logger(__name__)

# File suffix -> DuckDB table function that reads it
READERS = {
    ".csv": "read_csv_auto",
    ".tsv": "read_csv_auto",
    ".txt": "read_csv_auto",
    ".parquet": "read_parquet",
    ".json": "read_json_auto",
    ".jsonl": "read_json_auto",
    ".ndjson": "read_json_auto",
}

ENTRY_COLUMNS = ["name", "path", "type", "size"]


def file_kind(path: Path) -> Optional[str]:
    """Node type of a data file, or None if DuckDB cannot read it."""
    suffix = path.suffix.lower()
    return suffix.lstrip(".") if suffix in READERS else None


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


# Directories first; symlinked directories are never descended into
def _entry_order(entry: os.DirEntry) -> tuple[bool, str]:
    return not entry.is_dir(follow_symlinks=False), entry.name.lower()


class FolderConnection(DuckDBConnection):
    """Every readable file below ``path`` is a table.

    Table names are file paths relative to the folder (absolute paths work
    too); they are rewritten into the matching ``read_*`` table function.
    Files are never modified, so ``drop_table`` is not supported.
    """

    DIALECT = "folder"
    REQUIRED_FIELDS = ("path",)

    @property
    def root(self) -> Path:
        return Path(self.path).expanduser()

    def _database(self) -> str:
        return ":memory:"

    def _search_path(self) -> Optional[str]:
        return self.cwd or str(self.root)

    def _check_root(self) -> None:
        if not self.root.is_dir():
            raise ConnectionFailedError(f"folder does not exist: {self.root}", dialect=self.DIALECT)

    async def _connect(self):
        self._check_root()
        return await super()._connect()

    def _display_name(self) -> str:
        return self.root.name or str(self.root)

    def _resolve(self, name: str, schema: Optional[str] = None) -> Path:
        path = Path(name).expanduser()
        if path.is_absolute():
            return path
        base = self._resolve(schema) if schema else self.root
        return base / path

    def _table_ref(self, table: str) -> str:
        path = self._resolve(table)
        reader = READERS.get(path.suffix.lower())
        if reader is None:
            # Not a file we know how to read: the caller wrote a relation
            return table
        return f"{reader}({quote_literal(str(path))})"

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)

    def _walk(self, directory: Path) -> Iterator[os.DirEntry]:
        """Yield every non-hidden entry below ``directory``, depth first."""
        with os.scandir(directory) as entries:
            for entry in sorted(entries, key=_entry_order):
                if _is_hidden(entry.name):
                    continue
                yield entry
                if entry.is_dir(follow_symlinks=False):
                    yield from self._walk(Path(entry.path))

    def _data_files(self) -> list[Path]:
        return [Path(entry.path) for entry in self._walk(self.root) if entry.is_file() and file_kind(Path(entry.path))]

    def _build_tree(self, directory: Path) -> list[TreeNode]:
        nodes = []
        with os.scandir(directory) as entries:
            for entry in sorted(entries, key=_entry_order):
                if _is_hidden(entry.name):
                    continue
                path = Path(entry.path)
                if entry.is_dir(follow_symlinks=False):
                    nodes.append(
                        TreeNode(
                            name=entry.name,
                            path=self._relative(path),
                            node_type="path",
                            icon="folder",
                            children=self._build_tree(path),
                        )
                    )
                elif entry.is_file() and (kind := file_kind(path)):
                    nodes.append(
                        TreeNode(
                            name=entry.name,
                            path=self._relative(path),
                            node_type=kind,
                            icon=kind,
                            size=entry.stat().st_size,
                        )
                    )
        return nodes

    async def _scan(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a filesystem walk in a worker thread, reporting OS errors as query failures."""
        try:
            return await asyncio.to_thread(func, *args)
        except OSError as e:
            raise QueryExecutionError(str(e), dialect=self.DIALECT) from e

    def _entry_row(self, path: Path) -> tuple:
        if path.is_dir():
            return path.name, self._relative(path), "path", None
        return path.name, self._relative(path), file_kind(path) or "file", path.stat().st_size

    async def get_db(self) -> TreeNode:
        """Walk the folder; hidden entries and unreadable file types are skipped."""
        self._check_root()
        children = await self._scan(self._build_tree, self.root)
        return TreeNode(name=self._display_name(), path=str(self.root), node_type="root", icon="folder", children=children)

    async def show_schema(self, schema: str) -> RawArrowData:
        """List the direct entries of a directory (``schema`` is relative to the folder)."""
        directory = self._resolve(schema) if schema else self.root
        if not directory.is_dir():
            raise ConnectionFailedError(f"folder does not exist: {directory}", dialect=self.DIALECT)

        def _list() -> list[tuple]:
            with os.scandir(directory) as entries:
                paths = sorted(Path(e.path) for e in entries if not _is_hidden(e.name))
            return [self._entry_row(path) for path in paths if path.is_dir() or file_kind(path)]

        rows = await self._scan(_list)
        return self._raw(rows_to_arrow(ENTRY_COLUMNS, rows), None)

    async def show_column(self, schema: Optional[str], table: str) -> RawArrowData:
        path = self._resolve(table, schema)
        sql = f"DESCRIBE SELECT * FROM {self._table_ref(str(path))}"
        return self._raw(await self._fetch(sql), sql)

    async def drop_table(self, schema: Optional[str], table: str) -> str:
        raise OperationNotSupportedError("drop_table", dialect=self.DIALECT)

    async def find(self, value: str, path: Optional[str] = None) -> RawArrowData:
        """Search file and directory names containing ``value`` (case-insensitive)."""
        directory = self._resolve(path) if path else self.root
        needle = value.lower()

        def _search() -> list[tuple]:
            matches = []
            for entry in self._walk(directory):
                if needle in entry.name.lower():
                    matches.append(self._entry_row(Path(entry.path)))
                    if len(matches) >= settings.FIND_MAX_RESULTS:
                        break
            return matches

        rows = await self._scan(_search)
        return self._raw(rows_to_arrow(ENTRY_COLUMNS, rows), None)

    async def all_columns(self) -> list[ColumnMetadata]:
        """Describe every readable file; any file that fails to parse fails the call."""
        files = await self._scan(self._data_files)
        columns = []
        for path in files:
            relative = self._relative(path)
            parent = Path(relative).parent.as_posix()
            for row in await self._describe(self._table_ref(str(path))):
                column_name, column_type, null = row[0], row[1], row[2]
                columns.append(
                    ColumnMetadata(
                        database=self._display_name(),
                        schema_name=None if parent == "." else parent,
                        table=relative,
                        column=column_name,
                        data_type=str(column_type),
                        nullable=str(null).upper() == "YES",
                    )
                )
        return columns
