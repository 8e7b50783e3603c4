import asyncio
import errno
import os
from pathlib import Path

import aiofiles.os
import pytest

from conftest import write_file
from spotstage.exceptions import (
    FileOperationError,
    InvalidPathError,
    SizeMismatchError,
)
from spotstage.library import Relocator


@pytest.fixture
def relocator(staging, library) -> Relocator:
    return Relocator(staging, library)


@pytest.fixture
def cross_device(monkeypatch):
    """Makes every rename fail the way it does across filesystems."""

    async def rename(source, target, *args, **kwargs):
        raise OSError(errno.EXDEV, "Invalid cross-device link", str(source))

    monkeypatch.setattr(aiofiles.os, "rename", rename)


def test_promote_file_keeps_relative_location(relocator, staging, library):
    track = write_file(staging / "Artist" / "Album" / "01.mp3", 32)

    report = asyncio.run(relocator.promote("Artist/Album/01.mp3"))

    assert not track.exists()
    assert (library / "Artist" / "Album" / "01.mp3").stat().st_size == 32
    assert report.to_dict() == {
        "success": True,
        "targetPath": "Artist/Album/01.mp3",
        "moved": 1,
        "skipped": 0,
        "failed": 0,
    }


def test_promote_directory_into_empty_library(relocator, staging, library):
    write_file(staging / "Artist" / "Album" / "01.mp3", 4)
    write_file(staging / "Artist" / "Album" / "02.mp3", 4)

    report = asyncio.run(relocator.promote(staging / "Artist" / "Album"))

    assert sorted(p.name for p in (library / "Artist" / "Album").iterdir()) == [
        "01.mp3",
        "02.mp3",
    ]
    assert not (staging / "Artist" / "Album").exists()
    assert report.target_relative == "Artist/Album"
    assert not report.failed


def test_promote_merges_and_never_overwrites(relocator, staging, library):
    write_file(staging / "Album" / "01.mp3", 4)
    write_file(staging / "Album" / "02.mp3", 4)
    existing = library / "Album" / "01.mp3"
    existing.parent.mkdir()
    existing.write_bytes(b"original")

    report = asyncio.run(relocator.promote("Album"))

    assert existing.read_bytes() == b"original"
    assert (library / "Album" / "02.mp3").exists()
    assert report.skipped == [str(staging / "Album" / "01.mp3")]
    assert report.moved == [str(staging / "Album" / "02.mp3")]
    # the skipped file is left behind, so the source directory stays
    assert (staging / "Album" / "01.mp3").exists()


def test_promote_twice_is_a_no_op(relocator, staging, library):
    write_file(staging / "Album" / "01.mp3", 4)

    asyncio.run(relocator.promote("Album"))
    report = asyncio.run(relocator.promote("Album"))

    assert report.vanished
    assert report.moved == []
    assert (library / "Album" / "01.mp3").exists()


def test_promote_across_devices_copies_and_verifies(
    relocator, staging, library, cross_device
):
    track = write_file(staging / "Album" / "Disc 1" / "01.mp3", 3 * 1024 * 1024 + 5)
    os.utime(track, (1_000_000, 1_000_000))
    data = track.read_bytes()

    report = asyncio.run(relocator.promote("Album"))

    target = library / "Album" / "Disc 1" / "01.mp3"
    assert target.read_bytes() == data
    assert target.stat().st_mtime == 1_000_000
    assert not (staging / "Album").exists()
    assert report.moved == [str(track)]


def test_size_mismatch_keeps_source_and_removes_copy(
    relocator, staging, library, cross_device, monkeypatch
):
    track = write_file(staging / "01.mp3", 64)
    target = library / "01.mp3"
    real_stat = aiofiles.os.stat

    async def short_stat(path, *args, **kwargs):
        st = await real_stat(path, *args, **kwargs)
        if Path(path) == target:
            values = list(st[:10])
            values[6] = st.st_size - 1
            return os.stat_result(values)
        return st

    monkeypatch.setattr(aiofiles.os, "stat", short_stat)

    with pytest.raises(SizeMismatchError) as exc_info:
        asyncio.run(relocator.promote("01.mp3"))

    assert exc_info.value.source_size == 64
    assert exc_info.value.target_size == 63
    assert track.exists()
    assert not target.exists()


def test_directory_move_collects_child_failures(relocator, staging, library):
    write_file(staging / "Album" / "01.mp3", 4)
    write_file(staging / "Album" / "Disc 2" / "01.mp3", 4)
    (library / "Album").mkdir()
    # a file where the library expects a directory
    (library / "Album" / "Disc 2").write_bytes(b"in the way")

    report = asyncio.run(relocator.promote("Album"))

    assert report.moved == [str(staging / "Album" / "01.mp3")]
    assert [path for path, _ in report.failed] == [str(staging / "Album" / "Disc 2")]
    assert (staging / "Album" / "Disc 2" / "01.mp3").exists()
    assert report.to_dict()["failed"] == 1


def test_single_file_failure_raises(relocator, staging, library):
    write_file(staging / "Album" / "01.mp3", 4)
    (library / "Album").write_bytes(b"in the way")

    with pytest.raises(FileOperationError):
        asyncio.run(relocator.promote("Album/01.mp3"))
    assert (staging / "Album" / "01.mp3").exists()


@pytest.mark.parametrize("path", ["../music/x.mp3", "/etc/hosts", ""])
def test_promote_rejects_paths_outside_staging(relocator, path):
    with pytest.raises(InvalidPathError):
        asyncio.run(relocator.promote(path))


def test_promote_rejects_staging_root(relocator, staging):
    with pytest.raises(InvalidPathError):
        asyncio.run(relocator.promote(str(staging)))


def test_same_device_move_renames_in_place(relocator, staging, library):
    track = write_file(staging / "Album" / "01.mp3", 16)
    inode = track.stat().st_ino

    asyncio.run(relocator.promote("Album/01.mp3"))

    assert (library / "Album" / "01.mp3").stat().st_ino == inode


class FailingTarget:
    """Writes the first chunk, then fails like a full disk."""

    def __init__(self, path):
        self.file = open(path, "xb")
        self.writes = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.file.close()

    async def write(self, chunk):
        self.writes += 1
        if self.writes > 1:
            raise OSError(errno.ENOSPC, "No space left on device")
        self.file.write(chunk)


def test_failed_copy_removes_partial_target(
    relocator, staging, library, cross_device, monkeypatch
):
    track = write_file(staging / "01.mp3", 16)
    real_open = aiofiles.open

    def open_target(path, mode="r", *args, **kwargs):
        if mode == "xb":
            return FailingTarget(path)
        return real_open(path, mode, *args, **kwargs)

    monkeypatch.setattr(aiofiles, "open", open_target)
    monkeypatch.setattr(Relocator, "CHUNK_SIZE", 4)

    with pytest.raises(FileOperationError) as exc_info:
        asyncio.run(relocator.promote("01.mp3"))

    assert not isinstance(exc_info.value, SizeMismatchError)
    assert track.stat().st_size == 16
    assert not (library / "01.mp3").exists()


def test_source_vanishing_during_rename_counts_as_done(
    relocator, staging, library, monkeypatch
):
    track = write_file(staging / "01.mp3", 4)

    async def rename(source, target, *args, **kwargs):
        os.remove(source)
        raise FileNotFoundError(errno.ENOENT, "No such file or directory", str(source))

    monkeypatch.setattr(aiofiles.os, "rename", rename)

    report = asyncio.run(relocator.promote("01.mp3"))

    assert not track.exists()
    assert not (library / "01.mp3").exists()
    assert report.failed == []
    assert report.to_dict()["success"] is True
