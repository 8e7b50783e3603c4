"""
Runs the external download tool and streams its output as it arrives.
"""

import asyncio
import codecs
import logging
import os
from typing import Callable, Optional

from rich.markup import escape

from spotstage.exceptions import ProcessStartError

from .sink import OutputSink

log = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096

OutputObserver = Callable[[str], None]


def tool_environment(executable: str) -> dict[str, str]:
    """
    Environment for the tool. When the executable is given by path, its
    directory is added to PATH so helpers installed beside it are found.
    """
    env = dict(os.environ)
    directory = os.path.dirname(os.path.expanduser(executable))
    if directory:
        env["PATH"] = os.pathsep.join(filter(None, [env.get("PATH", ""), directory]))
    return env


async def stream_process(
    command: list[str],
    sink: OutputSink,
    on_stdout: Optional[OutputObserver] = None,
    on_stderr: Optional[OutputObserver] = None,
) -> int:
    """
    Starts ``command`` and copies its stdout and stderr into ``sink``.

    Both streams are drained concurrently. Each stream keeps its own order;
    the interleaving between them follows arrival. Observers see every
    decoded chunk before it is written to the sink. If either of them raises,
    or the caller is cancelled, the process is killed and reaped before the
    error propagates.

    Returns:
        The process exit code.

    Raises:
        ProcessStartError: If the process cannot be started.
    """
    executable = command[0]
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=tool_environment(executable),
        )
    except OSError as e:
        raise ProcessStartError(executable, e) from e

    log.debug(f"Started '{executable}' (pid {process.pid}).")
    pumps = [
        asyncio.ensure_future(_pump(process.stdout, sink, on_stdout, "stdout")),
        asyncio.ensure_future(_pump(process.stderr, sink, on_stderr, "stderr")),
    ]
    try:
        await asyncio.gather(*pumps)
        return await process.wait()
    finally:
        for pump in pumps:
            pump.cancel()
        await asyncio.gather(*pumps, return_exceptions=True)
        if process.returncode is None:
            log.debug(f"Killing '{executable}' (pid {process.pid}).")
            process.kill()
            await process.wait()


async def _pump(
    stream: asyncio.StreamReader,
    sink: OutputSink,
    observer: Optional[OutputObserver],
    label: str,
) -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        text = decoder.decode(chunk, final=not chunk)
        if text:
            log.debug(f"{label}: {escape(text.rstrip())}")
            if observer:
                observer(text)
            await sink.write(text)
        if not chunk:
            return
