"""
Data models describing a queued download request and the job that runs it.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from spotstage.utils.path import is_playlist_query


class JobKind(str, Enum):
    """What a query denotes, as chosen by the user or inferred from its shape."""

    SONG = "song"
    ALBUM = "album"
    PLAYLIST = "playlist"
    ARTIST = "artist"
    SEARCH = "search"
    YOUTUBE_MATCH = "youtube-match"
    SAVED = "saved"
    ALL_USER_PLAYLISTS = "all-user-playlists"
    ALL_SAVED_PLAYLISTS = "all-saved-playlists"
    ALL_USER_FOLLOWED_ARTISTS = "all-user-followed-artists"
    ALL_USER_SAVED_ALBUMS = "all-user-saved-albums"

    @property
    def is_special(self) -> bool:
        """True for whole-account collections that need user authentication."""
        return self in SPECIAL_KINDS


SPECIAL_KINDS = frozenset(
    {
        JobKind.SAVED,
        JobKind.ALL_USER_PLAYLISTS,
        JobKind.ALL_SAVED_PLAYLISTS,
        JobKind.ALL_USER_FOLLOWED_ARTISTS,
        JobKind.ALL_USER_SAVED_ALBUMS,
    }
)
SPECIAL_QUERIES = frozenset(kind.value for kind in SPECIAL_KINDS)


class JobState(str, Enum):
    BUILT = "built"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class DownloadRequest:
    """A single entry of the download queue, as submitted by the caller."""

    query: str
    kind: JobKind = JobKind.ALBUM
    format: str | None = None
    bitrate: str | None = None
    cookie_file: Path | None = None
    premium: bool = False


@dataclass
class DownloadJob:
    """
    State of one external download invocation.

    ``is_playlist`` is fixed when the job is created. The inferred output
    directory and playlist name are written at most once, by the first
    playlist announcement seen on standard output.
    """

    query: str
    kind: JobKind
    output_format: str | None
    bitrate: str | None
    output_template: str
    cookie_file: Path | None = None
    premium: bool = False
    is_playlist: bool = field(init=False)

    state: JobState = JobState.BUILT
    stdout_text: str = ""
    stderr_text: str = ""
    exit_code: int | None = None
    output_directory: Path | None = None
    playlist_name: str | None = None
    manifest_path: Path | None = None

    def __post_init__(self):
        self.is_playlist = is_playlist_query(self.query, self.kind.value)

    @property
    def needs_user_auth(self) -> bool:
        return self.kind.is_special or self.query in SPECIAL_QUERIES

    @property
    def uses_cookie_file(self) -> bool:
        return self.premium and self.cookie_file is not None

    def record_playlist(self, name: str, directory: Path) -> bool:
        """Records the announced playlist. Returns False if one was already set."""
        if self.output_directory is not None:
            return False
        self.playlist_name = name
        self.output_directory = directory
        return True

    def finish(self, exit_code: int) -> None:
        self.exit_code = exit_code
        self.state = JobState.COMPLETED if exit_code == 0 else JobState.FAILED
