"""Shared fixtures: scripted in-memory log streams standing in for WebSockets."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Sequence, Tuple, Union

import pytest

from logview.services.logs import LogStreamRequest, TransportError


Event = Tuple[str, Union[str, bytes, None]]


class FakeStream:
    """One scripted connection; the test pushes chunks, closes or fails it."""

    def __init__(self, request: LogStreamRequest, script: Sequence[Event] = ()) -> None:
        self.request = request
        self.closed = False
        self._events: asyncio.Queue = asyncio.Queue()
        for event in script:
            self._events.put_nowait(event)

    def push(self, chunk: Union[str, bytes]) -> None:
        self._events.put_nowait(("chunk", chunk))

    def finish(self) -> None:
        self._events.put_nowait(("close", None))

    def fail(self, reason: str) -> None:
        self._events.put_nowait(("error", reason))

    async def iterate(self) -> AsyncIterator[Union[str, bytes]]:
        while True:
            kind, value = await self._events.get()
            if kind == "chunk":
                yield value
            elif kind == "error":
                raise TransportError(str(value))
            else:
                return


class FakeTransport:
    """Drop-in replacement for ``open_websocket_stream``."""

    def __init__(self, *, connect_error: Optional[str] = None, script: Sequence[Event] = ()) -> None:
        self.connect_error = connect_error
        self.script = list(script)
        self.streams: List[FakeStream] = []

    @property
    def requests(self) -> List[LogStreamRequest]:
        return [stream.request for stream in self.streams]

    @property
    def latest(self) -> FakeStream:
        return self.streams[-1]

    @asynccontextmanager
    async def open(self, request: LogStreamRequest):
        if self.connect_error is not None:
            raise TransportError(self.connect_error)
        stream = FakeStream(request, self.script)
        self.streams.append(stream)
        try:
            yield stream.iterate()
        finally:
            stream.closed = True


async def settle(rounds: int = 20) -> None:
    """Let pending session tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
