"""Process-wide record of the files the client most recently opened."""

import threading
from typing import Iterable, Optional

from sqlbridge.logging import get_logger

logger = get_logger(__name__)


class OpenedFiles:
    """A single lock-guarded slot holding an ordered list of paths.

    The slot is empty until something writes it. Reads hand out a copy, so
    callers can never mutate the shared list.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._paths: Optional[list[str]] = None

    def get(self) -> list[str]:
        with self._lock:
            return list(self._paths) if self._paths is not None else []

    def set(self, paths: Iterable[str]) -> None:
        with self._lock:
            self._paths = [str(path) for path in paths]
            count = len(self._paths)
        logger.debug("Opened files updated", count=count)

    def reset(self) -> None:
        with self._lock:
            self._paths = None

    @property
    def is_set(self) -> bool:
        with self._lock:
            return self._paths is not None


opened_files_registry = OpenedFiles()
