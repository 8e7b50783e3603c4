"""
Builds the typed directory tree shown for the staging area.
"""

import logging
import stat
from pathlib import Path

import aiofiles.os

from spotstage.exceptions import FileOperationError
from spotstage.models.tree import FileTreeNode, NodeKind
from spotstage.utils.path import relative_to_root

log = logging.getLogger(__name__)

# Placeholder files that keep otherwise-empty directories under version control
HOUSEKEEPING_FILES = frozenset({".gitkeep", ".keep"})


async def list_tree(root: Path) -> list[FileTreeNode]:
    """
    Recursively lists ``root``.

    Empty directories (ignoring housekeeping files) are left out, directory
    sizes are the sum of all file sizes below them, and every level is sorted
    directories-first, then by name. Symlinks are listed as entries of their
    own and never followed.

    Raises:
        FileOperationError: If any directory or entry cannot be read. The whole
            listing is aborted.
    """
    root = Path(root)
    return await _list_directory(root, root)


async def _list_directory(directory: Path, root: Path) -> list[FileTreeNode]:
    try:
        names = await aiofiles.os.listdir(directory)
    except OSError as e:
        raise FileOperationError(
            f"Could not read directory '{directory}': {e.strerror or e}", directory
        ) from e

    nodes = []
    for name in names:
        if name in HOUSEKEEPING_FILES:
            continue

        full_path = directory / name
        try:
            st = await aiofiles.os.stat(full_path, follow_symlinks=False)
        except OSError as e:
            raise FileOperationError(
                f"Could not stat '{full_path}': {e.strerror or e}", full_path
            ) from e

        if stat.S_ISDIR(st.st_mode):
            children = await _list_directory(full_path, root)
            if not children:
                log.debug(f"Skipping empty directory '{full_path}'.")
                continue
            nodes.append(
                FileTreeNode(
                    kind=NodeKind.DIRECTORY,
                    path=str(full_path),
                    relative_path=relative_to_root(full_path, root),
                    name=name,
                    size=sum(child.size for child in children),
                    modified=st.st_mtime,
                    children=children,
                )
            )
        else:
            nodes.append(
                FileTreeNode(
                    kind=NodeKind.FILE,
                    path=str(full_path),
                    relative_path=relative_to_root(full_path, root),
                    name=name,
                    size=st.st_size,
                    modified=st.st_mtime,
                )
            )

    nodes.sort(key=FileTreeNode.sort_key)
    return nodes
