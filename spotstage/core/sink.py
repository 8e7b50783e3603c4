"""
Destinations for the text a running download tool produces.
"""

import sys
from typing import Protocol, TextIO


class OutputSink(Protocol):
    """Ordered text sink that receives process output as it arrives."""

    async def write(self, text: str) -> None: ...

    async def close(self) -> None: ...


class ConsoleSink:
    """Writes output straight to a text stream (stdout by default), unbuffered."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream
        self.closed = False

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    async def write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    async def close(self) -> None:
        self.closed = True


class CollectingSink:
    """Keeps every chunk in memory, in arrival order."""

    def __init__(self):
        self.chunks: list[str] = []
        self.closed = False

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    async def write(self, text: str) -> None:
        if self.closed:
            raise RuntimeError("Write to a closed sink.")
        self.chunks.append(text)

    async def close(self) -> None:
        self.closed = True
