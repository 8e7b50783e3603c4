import json
import os
import stat
import sys
import textwrap
from pathlib import Path

import pytest

from spotstage.models.config import AppConfig


@pytest.fixture
def staging(tmp_path) -> Path:
    root = tmp_path / "downloads"
    root.mkdir()
    return root


@pytest.fixture
def library(tmp_path) -> Path:
    root = tmp_path / "music"
    root.mkdir()
    return root


@pytest.fixture
def config(staging, library) -> AppConfig:
    return AppConfig(downloads_dir=str(staging), music_dir=str(library), threads=2)


@pytest.fixture
def fake_tool(tmp_path):
    """
    Writes an executable Python script standing in for the download tool.

    The script records its arguments in ``calls.log`` next to itself, one
    JSON list per line, then runs ``body``. ``STAGING`` holds the downloads
    directory the test passes in.
    """

    def make(body: str, staging_dir: Path | None = None, name: str = "fake-spotdl"):
        tool_dir = tmp_path / "bin"
        tool_dir.mkdir(exist_ok=True)
        script = tool_dir / name
        header = textwrap.dedent(
            f"""\
            #!{sys.executable}
            import json, os, sys, time
            from pathlib import Path
            STAGING = Path({str(staging_dir or tmp_path)!r})
            with open({str(tool_dir / "calls.log")!r}, "a", encoding="utf-8") as log:
                log.write(json.dumps(sys.argv[1:]) + "\\n")
            """
        )
        script.write_text(header + textwrap.dedent(body), encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP)
        return script

    return make


def read_calls(tool: Path) -> list[list[str]]:
    log_file = tool.parent / "calls.log"
    if not log_file.exists():
        return []
    return [json.loads(line) for line in log_file.read_text().splitlines()]


def write_file(path: Path, size: int = 0) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(os.urandom(size))
    return path
