"""WebSocket transport that delivers raw log chunks."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncContextManager, AsyncIterable, AsyncIterator, Callable, Dict, Union

from websockets.asyncio.client import connect
from websockets.exceptions import WebSocketException

from ...logging_config import logger
from .errors import TransportError


RawChunk = Union[str, bytes]


@dataclass(frozen=True)
class LogStreamRequest:
    url: str
    headers: Dict[str, str] = field(default_factory=dict)


LogTransport = Callable[[LogStreamRequest], AsyncContextManager[AsyncIterable[RawChunk]]]


@asynccontextmanager
async def open_websocket_stream(request: LogStreamRequest) -> AsyncIterator[AsyncIterable[RawChunk]]:
    """Open *request* and yield the connection as an async iterable of frames.

    Iteration ends on a normal close; connection failures and abnormal
    closes surface as :class:`TransportError`.
    """

    try:
        async with connect(request.url, additional_headers=request.headers, max_size=None) as websocket:
            logger.info("log stream connected", extra={"url": request.url})
            yield websocket
    except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
        reason = str(exc) or exc.__class__.__name__
        logger.warning("log stream failed", extra={"url": request.url, "error": reason})
        raise TransportError(reason) from exc
    logger.info("log stream closed", extra={"url": request.url})


__all__ = ["LogStreamRequest", "LogTransport", "RawChunk", "open_websocket_stream"]
