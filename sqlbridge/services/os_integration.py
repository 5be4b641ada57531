"""Reveal paths in the operating system's file browser."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

from sqlbridge.exceptions.base import PathNotFoundError
from sqlbridge.logging import get_logger

logger = get_logger(__name__)


def reveal_command(path: Path, platform: Optional[str] = None) -> list[str]:
    """Command line that shows ``path`` in the platform's file browser.

    On Windows a file is selected inside Explorer; elsewhere the directory
    containing a file is opened.

    Examples:
        >>> reveal_command(Path("/tmp"), platform="linux")
        ['xdg-open', '/tmp']

    """
    platform = platform or sys.platform
    if platform.startswith("win"):
        if path.is_file():
            return ["explorer", f"/select,{path}"]
        return ["explorer", str(path)]

    target = path.parent if path.is_file() else path
    if platform == "darwin":
        return ["open", str(target)]
    return ["xdg-open", str(target)]


async def open_path(path: str) -> None:
    """Reveal ``path`` in the file browser.

    Raises:
        PathNotFoundError: If the path does not exist; nothing is launched

    """
    target = Path(path).expanduser()
    if not target.exists():
        raise PathNotFoundError(path)

    command = reveal_command(target)
    logger.info("Revealing path", path=str(target), command=command[0])
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        # A missing or broken launcher leaves nothing for the caller to fix
        logger.warning("Failed to launch file browser", path=str(target), command=command[0], error=str(e))
        return

    # Launchers hand off to the browser and exit; explorer reports 1 even on success
    returncode = await process.wait()
    logger.debug("File browser launcher exited", command=command[0], returncode=returncode)
