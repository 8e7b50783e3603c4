"""
Utility for generating M3U8 playlist files.
"""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os
from pathvalidate import sanitize_filename

log = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".mp3", ".m4a", ".opus", ".flac", ".ogg", ".wav")
MANIFEST_EXTENSION = "m3u8"


def build_m3u8(playlist_name: str, filenames: list[str]) -> str:
    """Renders the manifest: header, playlist directive, one file per line."""
    return "\n".join(["#EXTM3U", f"#PLAYLIST:{playlist_name}", *filenames])


async def write_m3u8(directory: Path, playlist_name: str) -> Path | None:
    """
    Generates an M3U8 playlist for the audio tracks directly inside ``directory``.

    Tracks are listed by file name, relative to the directory, in sorted order.
    Nothing is written when the directory holds no audio files. Failures are
    logged and never raised.

    Returns:
        The path of the written manifest, or None if none was written.
    """
    directory = Path(directory)
    try:
        entries = await aiofiles.os.listdir(directory)
    except OSError as e:
        log.error(f"[red]Could not read playlist directory '{directory}': {e}[/red]")
        return None

    audio_files = sorted(
        name for name in entries if name.lower().endswith(AUDIO_EXTENSIONS)
    )
    log.debug(f"Found {len(audio_files)} audio files in '{directory}'.")

    if not audio_files:
        log.info(f"No audio files found in '{directory}' to create playlist.")
        return None

    manifest_name = sanitize_filename(f"{playlist_name}.{MANIFEST_EXTENSION}")
    manifest_path = directory / manifest_name
    try:
        async with aiofiles.open(manifest_path, "w", encoding="utf-8") as f:
            await f.write(build_m3u8(playlist_name, audio_files))
    except OSError as e:
        log.error(f"[red]Failed to write playlist file '{manifest_path}': {e}[/red]")
        return None

    log.info(f"Generated playlist: '{manifest_path}'")
    return manifest_path
