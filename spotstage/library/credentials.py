"""
Single-use credential (cookie) files handed to one download job.
"""

import asyncio
import logging
import os
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiofiles.os

from spotstage.exceptions import FileOperationError

log = logging.getLogger(__name__)


async def stage_credential_file(source: Path) -> Path:
    """
    Copies a user's cookie file to a private temporary file owned by one job.
    The user's own file is never touched afterwards.
    """
    source = Path(source)
    if not await aiofiles.os.path.isfile(source):
        raise FileOperationError(f"Cookie file not found: '{source}'", source)

    fd, staged = tempfile.mkstemp(prefix="spotstage-cookies-", suffix=".txt")
    os.close(fd)
    try:
        await asyncio.to_thread(shutil.copyfile, source, staged)
    except OSError as e:
        await discard_credential_file(Path(staged))
        raise FileOperationError(
            f"Could not stage cookie file '{source}': {e.strerror or e}", source
        ) from e
    log.debug(f"Staged cookie file '{source}' as '{staged}'.")
    return Path(staged)


async def discard_credential_file(path: Path) -> None:
    """Deletes a staged credential file. Failures are logged, never raised."""
    try:
        await aiofiles.os.remove(path)
        log.debug(f"Removed cookie file '{path}'.")
    except FileNotFoundError:
        pass
    except OSError as e:
        log.error(f"[red]Could not remove cookie file '{path}': {e}[/red]")


@asynccontextmanager
async def credential_scope(path: Path | None) -> AsyncIterator[Path | None]:
    """Yields ``path`` and deletes it when the scope exits, however it exits."""
    try:
        yield path
    finally:
        if path is not None:
            await discard_credential_file(path)
