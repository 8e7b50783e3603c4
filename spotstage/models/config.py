"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import os
import re

from pydantic import BaseModel, Field, field_validator, model_validator

# Formats accepted by the download tool, with a display name for each
FORMAT_MAP = {
    "mp3": {"name": "MP3", "color": "yellow"},
    "flac": {"name": "FLAC (lossless)", "color": "green"},
    "ogg": {"name": "Ogg Vorbis", "color": "cyan"},
    "opus": {"name": "Opus", "color": "cyan"},
    "m4a": {"name": "AAC (m4a)", "color": "magenta"},
    "wav": {"name": "WAV (uncompressed)", "color": "green"},
}

BITRATE_PATTERN = re.compile(r"^(auto|disable|\d{1,3}k)$")

DEFAULT_ALBUM_OUTPUT = "{album-artist}/{album}/{title}.{output-ext}"
DEFAULT_PLAYLIST_OUTPUT = (
    "Various Artists/{list-name}/{list-position} {title}.{output-ext}"
)
FALLBACK_OUTPUT = "{artists} - {title}.{output-ext}"


def get_format_info(fmt: str) -> dict[str, str]:
    """Gets display information for an output format from the central map."""
    return FORMAT_MAP.get(fmt, {"name": "Unknown", "color": "white"})


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    # Download tool settings
    audio_providers: list[str] = Field(default_factory=lambda: ["youtube-music"])
    lyrics_providers: list[str] = Field(
        default_factory=lambda: ["genius", "azlyrics", "musixmatch"]
    )
    format: str = "mp3"
    bitrate: str = "auto"
    album_output: str = DEFAULT_ALBUM_OUTPUT
    playlist_output: str = DEFAULT_PLAYLIST_OUTPUT
    threads: int = 4
    spotdl_path: str = "spotdl"

    # Roots
    downloads_dir: str = "/downloads"
    music_dir: str = "/music"

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Ensures the output format is one the download tool understands."""
        v = v.lower()
        if v not in FORMAT_MAP:
            raise ValueError(f"Format must be one of: {', '.join(FORMAT_MAP)}.")
        return v

    @field_validator("bitrate")
    @classmethod
    def validate_bitrate(cls, v: str) -> str:
        v = v.lower()
        if not BITRATE_PATTERN.match(v):
            raise ValueError(
                "Bitrate must be 'auto', 'disable' or a value like '320k'."
            )
        return v

    @field_validator("threads")
    @classmethod
    def validate_threads(cls, v: int) -> int:
        """Ensures a reasonable number of download threads."""
        if v < 1 or v > 32:
            raise ValueError("Threads must be between 1 and 32.")
        return v

    @field_validator("album_output", "playlist_output")
    @classmethod
    def validate_template(cls, v: str) -> str:
        """Validates an output path template."""
        if not v:
            raise ValueError("Output template cannot be empty.")
        if ".." in v or v.startswith(("/", "\\")):
            raise ValueError(
                "Output template cannot contain relative '..' or absolute paths."
            )
        return v

    @field_validator("downloads_dir", "music_dir")
    @classmethod
    def validate_root(cls, v: str) -> str:
        if not v:
            raise ValueError("Directory roots cannot be empty.")
        return os.path.normpath(os.path.expanduser(v))

    @model_validator(mode="after")
    def validate_roots_are_disjoint(self) -> "AppConfig":
        """Checks that the staging and library roots do not overlap."""
        staging = os.path.abspath(self.downloads_dir)
        library = os.path.abspath(self.music_dir)
        if staging == library:
            raise ValueError("'downloads_dir' and 'music_dir' must be different.")
        for outer, inner in ((staging, library), (library, staging)):
            if inner.startswith(outer.rstrip(os.sep) + os.sep):
                raise ValueError(
                    "'downloads_dir' and 'music_dir' cannot be nested in each other."
                )
        return self

    @classmethod
    def get_config_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the JSON file."""
        return set(cls.model_fields)
