"""
Moves files and directory trees from the staging root into the music library.

Renames are tried first. When the two roots live on different devices the
move falls back to a chunked copy whose size is verified before the source is
deleted. Every step is safe to re-run: existing targets are never overwritten
and a vanished source counts as already moved.
"""

import asyncio
import errno
import logging
import shutil
import stat
from pathlib import Path

import aiofiles
import aiofiles.os

from spotstage.exceptions import FileOperationError, SizeMismatchError
from spotstage.models.stats import RelocationReport
from spotstage.utils.path import authorize_path, relative_to_root

log = logging.getLogger(__name__)


class Relocator:
    """Moves items from the staging root to the same relative place in the library."""

    CHUNK_SIZE = 1048576  # 1 MB

    def __init__(self, staging_root: Path, library_root: Path):
        self.staging_root = Path(staging_root)
        self.library_root = Path(library_root)

    def target_for(self, source: Path) -> Path:
        """Maps a path under the staging root to its place under the library root."""
        staging = authorize_path(
            self.staging_root, self.staging_root, allow_root=True
        )
        relative = Path(source).relative_to(staging)
        return self.library_root / relative

    async def promote(self, source_path: str | Path) -> RelocationReport:
        """
        Moves one staged file or directory into the library.

        Raises:
            InvalidPathError: If the path is not inside the staging root.
            FileOperationError: If a single-file move, or creating the target
                directory of a directory move, fails.
        """
        source = authorize_path(source_path, self.staging_root)
        target = self.target_for(source)
        return await self.relocate(source, target)

    async def relocate(self, source: Path, target: Path) -> RelocationReport:
        """Moves ``source`` to ``target`` and reports what happened."""
        source, target = Path(source), Path(target)
        report = RelocationReport(
            source=str(source),
            target=str(target),
            target_relative=relative_to_root(target, self.library_root),
        )
        if not await _lexists(source):
            log.warning(
                f"[yellow]Source path does not exist, skipping: {source}[/yellow]"
            )
            report.vanished = True
            return report

        await self._relocate(source, target, report)
        return report

    async def _relocate(
        self, source: Path, target: Path, report: RelocationReport
    ) -> None:
        try:
            st = await aiofiles.os.stat(source, follow_symlinks=False)
        except FileNotFoundError:
            log.warning(f"[yellow]Source disappeared, skipping: {source}[/yellow]")
            return
        except OSError as e:
            raise FileOperationError(
                f"Could not access '{source}': {e.strerror or e}", source, target
            ) from e

        if stat.S_ISDIR(st.st_mode):
            await self._relocate_directory(source, target, report)
        else:
            await self._relocate_file(source, target, report)

    async def _relocate_directory(
        self, source: Path, target: Path, report: RelocationReport
    ) -> None:
        if not await _lexists(target):
            await _makedirs(target.parent, source)
            try:
                await aiofiles.os.rename(source, target)
                report.moved.append(str(source))
                log.debug(f"Renamed directory '{source}' -> '{target}'.")
                return
            except FileNotFoundError:
                log.warning(f"[yellow]Source disappeared, skipping: {source}[/yellow]")
                return
            except OSError as e:
                log.debug(f"Directory rename failed ({e}), moving entries one by one.")

        await _makedirs(target, source)

        try:
            names = sorted(await aiofiles.os.listdir(source))
        except OSError as e:
            raise FileOperationError(
                f"Could not read directory '{source}': {e.strerror or e}", source
            ) from e

        for name in names:
            child_source, child_target = source / name, target / name
            try:
                await self._relocate(child_source, child_target, report)
            except FileOperationError as e:
                log.error(f"[red]✗ Error moving '{child_source}': {e}[/red]")
                report.failed.append((str(child_source), str(e)))

        await _remove_if_empty(source)

    async def _relocate_file(
        self, source: Path, target: Path, report: RelocationReport
    ) -> None:
        if await _lexists(target):
            log.info(f"File already exists at target path: {target}, skipping...")
            report.skipped.append(str(source))
            return

        await _makedirs(target.parent, source)
        try:
            await aiofiles.os.rename(source, target)
        except OSError as e:
            if e.errno == errno.EXDEV:
                log.debug(f"Cross-device move for '{source}', copying instead.")
                await self._copy_across_devices(source, target)
            elif e.errno == errno.ENOENT and not await _lexists(source):
                log.warning(
                    f"[yellow]Source file disappeared during move: {source}[/yellow]"
                )
                return
            else:
                raise FileOperationError(
                    f"Could not move '{source}' to '{target}': {e.strerror or e}",
                    source,
                    target,
                ) from e

        report.moved.append(str(source))

    async def _copy_across_devices(self, source: Path, target: Path) -> None:
        """
        Copies ``source`` to ``target`` and deletes the source once the sizes
        match. A partial or mismatched target is removed again.
        """
        try:
            async with aiofiles.open(source, "rb") as src:
                async with aiofiles.open(target, "xb") as dst:
                    while chunk := await src.read(self.CHUNK_SIZE):
                        await dst.write(chunk)
        except FileExistsError as e:
            raise FileOperationError(
                f"Target appeared while moving '{source}': {target}", source, target
            ) from e
        except OSError as e:
            await _discard_partial(target)
            raise FileOperationError(
                f"Could not copy '{source}' to '{target}': {e.strerror or e}",
                source,
                target,
            ) from e

        try:
            await asyncio.to_thread(shutil.copystat, source, target)
        except OSError as e:
            log.debug(f"Could not copy file metadata to '{target}': {e}")

        try:
            source_size = (await aiofiles.os.stat(source)).st_size
            target_size = (await aiofiles.os.stat(target)).st_size
        except OSError as e:
            raise FileOperationError(
                f"Could not verify copy of '{source}': {e.strerror or e}",
                source,
                target,
            ) from e
        if source_size != target_size:
            log.warning(f"[yellow]File size mismatch after copy: {source}[/yellow]")
            await _discard_partial(target)
            raise SizeMismatchError(str(source), str(target), source_size, target_size)

        try:
            await aiofiles.os.remove(source)
        except OSError as e:
            log.warning(f"[yellow]Could not remove source file {source}: {e}[/yellow]")


async def _lexists(path: Path) -> bool:
    try:
        await aiofiles.os.stat(path, follow_symlinks=False)
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError as e:
        raise FileOperationError(
            f"Could not access '{path}': {e.strerror or e}", path
        ) from e
    return True


async def _makedirs(directory: Path, source: Path) -> None:
    try:
        await aiofiles.os.makedirs(directory, exist_ok=True)
    except OSError as e:
        raise FileOperationError(
            f"Could not create directory '{directory}': {e.strerror or e}",
            source,
            directory,
        ) from e


async def _remove_if_empty(directory: Path) -> None:
    """Removes a source directory that was fully emptied; leaves it otherwise."""
    try:
        if await aiofiles.os.listdir(directory):
            log.warning(
                f"[yellow]Source directory not empty, leaving it: {directory}[/yellow]"
            )
            return
        await aiofiles.os.rmdir(directory)
    except FileNotFoundError:
        return
    except OSError as e:
        log.warning(
            f"[yellow]Could not remove source directory {directory}: {e}[/yellow]"
        )


async def _discard_partial(target: Path) -> None:
    try:
        await aiofiles.os.remove(target)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.error(f"[red]Error cleaning up partial file {target}: {e}[/red]")
