"""Command layer and the process-wide services it relies on."""

from sqlbridge.services.opened_files import OpenedFiles, opened_files_registry

__all__ = ["OpenedFiles", "opened_files_registry"]
