"""
Pass-through commands of the download tool whose output is streamed as-is.
"""

import logging

from rich.markup import escape

from spotstage.exceptions import EmptyQueryError
from spotstage.models.config import AppConfig

from .process import stream_process
from .sink import OutputSink

log = logging.getLogger(__name__)


def save_arguments(query: str, save_file: str) -> list[str]:
    """Arguments to save a query's metadata to a sync file."""
    return ["save", _require(query), "--save-file", save_file]


def sync_arguments(save_file: str) -> list[str]:
    """Arguments to bring a directory in line with a sync file."""
    return ["sync", "--save-file", save_file]


def meta_arguments(query: str) -> list[str]:
    """Arguments to re-tag existing files."""
    return ["meta", _require(query)]


def url_arguments(query: str) -> list[str]:
    """Arguments to print the download URLs for a query."""
    return ["url", _require(query)]


def _require(query: str) -> str:
    if not query or not query.strip():
        raise EmptyQueryError()
    return query.strip()


async def run_tool_command(
    config: AppConfig, arguments: list[str], sink: OutputSink
) -> int:
    """
    Runs the tool with ``arguments``, streaming its output into ``sink``.

    Returns:
        The tool's exit code.

    Raises:
        ProcessStartError: If the tool cannot be started.
    """
    command = [config.spotdl_path, *arguments]
    log.debug(f"Running download tool with args: {escape(str(command))}")
    exit_code = await stream_process(command, sink)
    await sink.close()
    return exit_code
