import asyncio

import pytest

from conftest import read_calls
from spotstage.core.passthrough import (
    meta_arguments,
    run_tool_command,
    save_arguments,
    sync_arguments,
    url_arguments,
)
from spotstage.core.sink import CollectingSink
from spotstage.exceptions import EmptyQueryError


def test_argument_builders():
    assert save_arguments(" saved ", "likes.spotdl") == [
        "save",
        "saved",
        "--save-file",
        "likes.spotdl",
    ]
    assert sync_arguments("likes.spotdl") == ["sync", "--save-file", "likes.spotdl"]
    assert meta_arguments("/music/Album") == ["meta", "/music/Album"]
    assert url_arguments("artist:Daft Punk") == ["url", "artist:Daft Punk"]


@pytest.mark.parametrize("builder", [meta_arguments, url_arguments])
def test_argument_builders_require_a_query(builder):
    with pytest.raises(EmptyQueryError):
        builder("  ")


def test_run_tool_command_streams_output(config, fake_tool):
    tool = fake_tool('print("https://music.youtube.com/watch?v=abc")\nsys.exit(0)\n')
    config.spotdl_path = str(tool)
    sink = CollectingSink()

    code = asyncio.run(run_tool_command(config, url_arguments("song"), sink))

    assert code == 0
    assert sink.text == "https://music.youtube.com/watch?v=abc\n"
    assert sink.closed
    assert read_calls(tool) == [["url", "song"]]
