import sys
from pathlib import Path

import uvicorn

from sqlbridge.config import settings
from sqlbridge.services.opened_files import opened_files_registry


def seed_opened_files(argv: list[str]) -> list[str]:
    """Record the paths given on the command line as the opened files."""
    paths = [str(Path(arg).expanduser().resolve()) for arg in argv if not arg.startswith("-")]
    if paths:
        opened_files_registry.set(paths)
    return paths


if __name__ == "__main__":
    seed_opened_files(sys.argv[1:])

    from sqlbridge.server import app

    # The app object is passed directly so it shares this process's opened-files registry
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level="info" if settings.ENVIRONMENT == "development" else "warning",
    )
