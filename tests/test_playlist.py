import asyncio

from conftest import write_file
from spotstage.utils.playlist import build_m3u8, write_m3u8


def test_build_m3u8():
    assert build_m3u8("Road Trip", ["01 a.mp3", "02 b.mp3"]) == (
        "#EXTM3U\n#PLAYLIST:Road Trip\n01 a.mp3\n02 b.mp3"
    )


def test_write_m3u8_lists_sorted_audio_files_only(staging):
    directory = staging / "Various Artists" / "Road Trip"
    write_file(directory / "02 b.MP3")
    write_file(directory / "01 a.flac")
    write_file(directory / "cover.jpg")
    write_file(directory / "Bonus" / "03 c.mp3")

    manifest = asyncio.run(write_m3u8(directory, "Road Trip"))

    assert manifest == directory / "Road Trip.m3u8"
    assert manifest.read_text(encoding="utf-8") == (
        "#EXTM3U\n#PLAYLIST:Road Trip\n01 a.flac\n02 b.MP3"
    )


def test_write_m3u8_skips_directories_without_audio(staging):
    write_file(staging / "cover.jpg")

    assert asyncio.run(write_m3u8(staging, "Empty")) is None
    assert list(staging.glob("*.m3u8")) == []


def test_write_m3u8_sanitizes_the_file_name(staging):
    write_file(staging / "01.mp3")

    manifest = asyncio.run(write_m3u8(staging, "AC/DC Hits"))

    assert manifest.parent == staging
    assert manifest.name == "ACDC Hits.m3u8"
    assert "#PLAYLIST:AC/DC Hits" in manifest.read_text(encoding="utf-8")


def test_write_m3u8_missing_directory_returns_none(staging):
    assert asyncio.run(write_m3u8(staging / "missing", "Gone")) is None
