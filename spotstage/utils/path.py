"""
Utilities for handling file paths, output templates, and query parsing.
"""

import os
import re
from pathlib import Path
from typing import Optional

from spotstage.exceptions import InvalidPathError

# Directory the download tool's default playlist template files compilations under
BULK_ARTIST_BUCKET = "Various Artists"

PLAYLIST_ANNOUNCEMENT = re.compile(r"Found \d+ songs in ([^\n]*?) \(Playlist\)")

SEARCH_PREFIXES = ("album:", "playlist:", "artist:")


def is_playlist_query(query: str, kind: str) -> bool:
    """Decides from the query shape whether the job downloads a playlist."""
    if "spotify.com/" in query:
        return "/playlist/" in query or kind == "playlist"
    return query.startswith("playlist:")


def infer_query_kind(query: str, selected_kind: str, special_queries) -> str:
    """
    Infers the kind of a queued query, falling back to the one the user picked.
    """
    if query in special_queries:
        return query
    if "|" in query:
        return "youtube-match"
    if query.startswith(SEARCH_PREFIXES):
        return "search"
    return selected_kind


def format_query(query: str, kind: str) -> str:
    """Shapes a raw user query into what the download tool expects for its kind."""
    query = query.strip()
    if kind == "youtube-match" and "|" in query:
        youtube_url, spotify_url = query.split("|", 1)
        return f"{youtube_url.strip()}|{spotify_url.strip()}"
    if (
        kind == "search"
        and not query.startswith(SEARCH_PREFIXES)
        and not (query.startswith("'") and query.endswith("'"))
    ):
        return f"'{query}'"
    return query


def match_playlist_name(text: str) -> Optional[str]:
    """Returns the playlist name from a 'Found N songs in X (Playlist)' line."""
    match = PLAYLIST_ANNOUNCEMENT.search(text)
    return match.group(1) if match else None


def playlist_directory(staging_root: Path, playlist_name: str) -> Path:
    """
    Where the download tool's default playlist template puts a playlist.
    Coupled to that template: a customised playlist template is not followed.
    """
    return Path(staging_root) / BULK_ARTIST_BUCKET / playlist_name


def output_argument(staging_root: Path, template: str) -> str:
    """Roots an output template at the staging directory."""
    return f"{Path(staging_root).as_posix().rstrip('/')}/{template}"


def authorize_path(
    path: str | Path, root: str | Path, allow_root: bool = False
) -> Path:
    """
    Normalizes ``path`` and checks that it lies inside ``root``.

    Relative paths are taken relative to the root. ``.``/``..`` segments and
    symlinked parent directories are resolved before comparing, so traversal
    out of the root is rejected. The final component is kept as-is so that a
    symlink is addressed itself rather than its target.

    Raises:
        InvalidPathError: If the normalized path is not under the root.
    """
    if not str(path).strip():
        raise InvalidPathError(str(path), str(root), reason="empty path for root")

    canonical_root = os.path.realpath(os.path.expanduser(str(root)))
    candidate = os.path.expanduser(str(path))
    if not os.path.isabs(candidate):
        candidate = os.path.join(canonical_root, candidate)
    candidate = os.path.normpath(candidate)
    parent, name = os.path.split(candidate)
    normalized = os.path.join(os.path.realpath(parent), name)

    if normalized == canonical_root or os.path.realpath(normalized) == canonical_root:
        if allow_root:
            return Path(canonical_root)
        raise InvalidPathError(
            str(path), str(root), reason="refusing to operate on root"
        )

    if not normalized.startswith(canonical_root.rstrip(os.sep) + os.sep):
        raise InvalidPathError(str(path), str(root))
    return Path(normalized)


def relative_to_root(path: str | Path, root: str | Path) -> str:
    """Returns ``path`` relative to ``root`` in POSIX form."""
    return Path(os.path.relpath(str(path), str(root))).as_posix()
