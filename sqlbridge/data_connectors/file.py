"""Single-file connection."""

from pathlib import Path
from typing import Optional

from sqlbridge.data_connectors.folder import ENTRY_COLUMNS, FolderConnection, file_kind
from sqlbridge.data_connectors.types import ColumnMetadata, RawArrowData, TreeNode
from sqlbridge.exceptions.connector import ConnectionFailedError
from sqlbridge.utils.arrow import rows_to_arrow


class FileConnection(FolderConnection):
    """A folder connection restricted to one data file.

    The file is the only table; an empty table name or the file's own name
    both refer to it. Relative references in SQL resolve against the file's
    directory.
    """

    DIALECT = "file"
    REQUIRED_FIELDS = ("path",)

    @property
    def file(self) -> Path:
        return Path(self.path).expanduser()

    @property
    def root(self) -> Path:
        return self.file.parent

    def _search_path(self) -> Optional[str]:
        return str(self.root)

    def _check_root(self) -> None:
        if not self.file.is_file():
            raise ConnectionFailedError(f"file does not exist: {self.file}", dialect=self.DIALECT)

    def _display_name(self) -> str:
        return self.file.name

    def _table_ref(self, table: str) -> str:
        if not table or table in (self.file.name, str(self.file)):
            return super()._table_ref(str(self.file))
        return super()._table_ref(table)

    def _data_files(self) -> list[Path]:
        return [self.file] if file_kind(self.file) else []

    async def get_db(self) -> TreeNode:
        self._check_root()
        size = (await self._scan(self.file.stat)).st_size
        kind = file_kind(self.file) or "file"
        node = TreeNode(name=self.file.name, path=self.file.name, node_type=kind, icon=kind, size=size)
        return TreeNode(name=self.root.name, path=str(self.root), node_type="root", icon="folder", children=[node])

    async def show_schema(self, schema: str) -> RawArrowData:
        self._check_root()
        rows = [self._entry_row(self.file)]
        return self._raw(rows_to_arrow(ENTRY_COLUMNS, rows), None)

    async def show_column(self, schema: Optional[str], table: str) -> RawArrowData:
        sql = f"DESCRIBE SELECT * FROM {self._table_ref(table)}"
        return self._raw(await self._fetch(sql), sql)

    async def find(self, value: str, path: Optional[str] = None) -> RawArrowData:
        rows = [self._entry_row(self.file)] if value.lower() in self.file.name.lower() else []
        return self._raw(rows_to_arrow(ENTRY_COLUMNS, rows), None)

    async def all_columns(self) -> list[ColumnMetadata]:
        self._check_root()
        return await super().all_columns()
