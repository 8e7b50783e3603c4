"""
Recursive deletion of files and directory trees.
"""

import logging
import stat
from pathlib import Path

import aiofiles.os

from spotstage.exceptions import FileOperationError

log = logging.getLogger(__name__)


async def erase(path: Path) -> None:
    """
    Deletes a file, or a directory and everything below it, depth-first.

    Symlinks are removed themselves and never followed. The first entry that
    cannot be removed aborts the call; what was already deleted stays deleted.

    Raises:
        FileOperationError: If an entry cannot be inspected or removed.
    """
    path = Path(path)
    try:
        st = await aiofiles.os.stat(path, follow_symlinks=False)
    except OSError as e:
        raise FileOperationError(
            f"Could not access '{path}': {e.strerror or e}", path
        ) from e

    if not stat.S_ISDIR(st.st_mode):
        await _remove(aiofiles.os.remove, path)
        return

    try:
        names = await aiofiles.os.listdir(path)
    except OSError as e:
        raise FileOperationError(
            f"Could not read directory '{path}': {e.strerror or e}", path
        ) from e

    for name in names:
        await erase(path / name)

    await _remove(aiofiles.os.rmdir, path)
    log.debug(f"Removed directory '{path}'.")


async def _remove(remover, path: Path) -> None:
    try:
        await remover(path)
    except OSError as e:
        raise FileOperationError(
            f"Could not remove '{path}': {e.strerror or e}", path
        ) from e
