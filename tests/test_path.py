import os

import pytest

from spotstage.exceptions import InvalidPathError
from spotstage.utils.path import (
    authorize_path,
    format_query,
    infer_query_kind,
    is_playlist_query,
    match_playlist_name,
    output_argument,
    playlist_directory,
    relative_to_root,
)

SPECIALS = {"saved", "all-user-playlists"}


def test_authorize_path_accepts_paths_inside_root(staging):
    inside = staging / "Artist" / "Album"
    assert authorize_path(str(inside), staging) == inside


def test_authorize_path_joins_relative_paths_to_root(staging):
    expected = staging / "Artist" / "track.mp3"
    assert authorize_path("Artist/track.mp3", staging) == expected


@pytest.mark.parametrize("path", ["../outside", "Artist/../../outside", "/etc/passwd"])
def test_authorize_path_rejects_escapes(staging, path):
    with pytest.raises(InvalidPathError):
        authorize_path(path, staging)


def test_authorize_path_rejects_sibling_with_shared_prefix(tmp_path, staging):
    sibling = tmp_path / "downloads-other" / "track.mp3"
    with pytest.raises(InvalidPathError):
        authorize_path(str(sibling), staging)


def test_authorize_path_rejects_root_unless_allowed(staging):
    with pytest.raises(InvalidPathError):
        authorize_path(str(staging), staging)
    assert authorize_path(str(staging), staging, allow_root=True) == staging


def test_authorize_path_rejects_empty_path(staging):
    with pytest.raises(InvalidPathError):
        authorize_path("", staging)


def test_authorize_path_resolves_symlinked_parent(tmp_path, staging):
    outside = tmp_path / "elsewhere"
    outside.mkdir()
    os.symlink(outside, staging / "link")
    with pytest.raises(InvalidPathError):
        authorize_path(str(staging / "link" / "file.mp3"), staging)


def test_authorize_path_keeps_symlink_leaf(tmp_path, staging):
    outside = tmp_path / "elsewhere"
    outside.mkdir()
    os.symlink(outside, staging / "link")
    assert authorize_path(str(staging / "link"), staging) == staging / "link"


def test_relative_to_root_is_posix(staging):
    assert relative_to_root(staging / "A" / "b.mp3", staging) == "A/b.mp3"


@pytest.mark.parametrize(
    "query, kind, expected",
    [
        ("https://open.spotify.com/playlist/37i9dQZF1DX", "album", True),
        ("https://open.spotify.com/album/1DFixLWuPkv3KT3TnV35m3", "album", False),
        ("https://open.spotify.com/album/1DFixLWuPkv3KT3TnV35m3", "playlist", True),
        ("playlist:road trip", "search", True),
        ("album:road trip", "search", False),
        ("road trip", "playlist", False),
    ],
)
def test_is_playlist_query(query, kind, expected):
    assert is_playlist_query(query, kind) is expected


@pytest.mark.parametrize(
    "query, selected, expected",
    [
        ("saved", "album", "saved"),
        ("https://youtu.be/x|spotify:track:y", "song", "youtube-match"),
        ("artist:Daft Punk", "album", "search"),
        ("https://open.spotify.com/track/y", "song", "song"),
    ],
)
def test_infer_query_kind(query, selected, expected):
    assert infer_query_kind(query, selected, SPECIALS) == expected


def test_format_query_trims_youtube_match_parts():
    query = " https://youtu.be/x  |  https://open.spotify.com/track/y "
    assert (
        format_query(query, "youtube-match")
        == "https://youtu.be/x|https://open.spotify.com/track/y"
    )


def test_format_query_quotes_plain_search_terms():
    assert format_query("daft punk", "search") == "'daft punk'"
    assert format_query("'daft punk'", "search") == "'daft punk'"
    assert format_query("album:Discovery", "search") == "album:Discovery"
    assert format_query("daft punk", "album") == "daft punk"


def test_match_playlist_name():
    text = "Processing query\nFound 12 songs in Road Trip (Playlist)\nDownloading"
    assert match_playlist_name(text) == "Road Trip"
    assert match_playlist_name("Found 12 songs in Discovery (Album)") is None


def test_playlist_directory_and_output_argument(staging):
    assert playlist_directory(staging, "Road Trip") == (
        staging / "Various Artists" / "Road Trip"
    )
    assert output_argument(staging, "{title}.{output-ext}") == (
        f"{staging.as_posix()}/{{title}}.{{output-ext}}"
    )
