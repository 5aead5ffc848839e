"""A single live log stream and the rendered output it has produced."""

from __future__ import annotations

import asyncio
import codecs
from dataclasses import dataclass
from datetime import tzinfo
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ...logging_config import logger
from .errors import TransportError
from .parser import split_complete_lines
from .renderer import RenderedRecord, render_lines
from .transport import LogStreamRequest, LogTransport, RawChunk, open_websocket_stream


CONNECTING_PLACEHOLDER = "Connecting to log stream..."
CONNECTED_PLACEHOLDER = "Connected. Waiting for logs..."
STREAM_ENDED_MARKER = "--- Log stream ended ---"


class SessionState(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECEIVING = "receiving"
    CLOSED = "closed"


class CloseReason(str, Enum):
    NORMAL = "normal"
    ERROR = "error"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class SessionConfig:
    source_id: str
    tail_depth: int
    server_hint: Optional[str] = None
    show_timestamps: bool = False


SessionListener = Callable[["StreamSession"], None]


class StreamSession:
    """Tails one source and keeps the rendered rows for everything received.

    All events are handled on a single asyncio task. Only the text after the
    last complete line is re-parsed when a chunk arrives, which yields the same
    rows as reprocessing the whole buffer.
    """

    def __init__(
        self,
        config: SessionConfig,
        request: LogStreamRequest,
        *,
        generation: int = 0,
        transport: LogTransport = open_websocket_stream,
        listener: Optional[SessionListener] = None,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self.config = config
        self.request = request
        self.generation = generation
        self._transport = transport
        self._listener = listener
        self._tz = tz
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._chunks: List[str] = []
        self._pending = ""
        self._records: List[RenderedRecord] = []
        self._state = SessionState.CONNECTING
        self._close_reason: Optional[CloseReason] = None
        self._error: Optional[str] = None
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def close_reason(self) -> Optional[CloseReason]:
        return self._close_reason

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def buffer(self) -> str:
        return "".join(self._chunks)

    @property
    def records(self) -> Tuple[RenderedRecord, ...]:
        return tuple(self._records)

    @property
    def task(self) -> Optional[asyncio.Task[None]]:
        return self._task

    @property
    def closed(self) -> bool:
        return self._state is SessionState.CLOSED

    @property
    def display_state(self) -> str:
        if self._state is SessionState.CONNECTING:
            return "connecting"
        if self._state is SessionState.CLOSED:
            return "error" if self._close_reason is CloseReason.ERROR else "ended"
        return "receiving"

    @property
    def placeholder(self) -> Optional[str]:
        """Transient status line shown while nothing has been rendered."""
        if self._records:
            return None
        if self._state is SessionState.CONNECTING:
            return CONNECTING_PLACEHOLDER
        if self._state in (SessionState.CONNECTED, SessionState.RECEIVING):
            return CONNECTED_PLACEHOLDER
        return None

    def start(self) -> asyncio.Task[None]:
        """Schedule the connection and return without waiting for it."""
        if self._task is None:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(
                self._run(), name=f"log-session-{self.config.source_id}-{self.generation}"
            )
            self._notify()
        return self._task

    def discard(self) -> None:
        """Stop delivering events and release the connection (best effort)."""
        if self._close_reason is CloseReason.DISCARDED:
            return
        if self._state is not SessionState.CLOSED:
            self._state = SessionState.CLOSED
            self._close_reason = CloseReason.DISCARDED
        self._listener = None
        if self._task and not self._task.done():
            self._task.cancel()

    async def wait_closed(self) -> None:
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        try:
            async with self._transport(self.request) as stream:
                if self.closed:
                    return
                self._handle_open()
                async for chunk in stream:
                    if self.closed:
                        return
                    self._handle_chunk(chunk)
        except asyncio.CancelledError:
            raise
        except TransportError as exc:
            self._handle_error(str(exc))
            return
        except Exception as exc:  # pragma: no cover
            logger.exception(
                "log session crashed",
                extra={"source_id": self.config.source_id, "generation": self.generation},
            )
            self._handle_error(str(exc) or exc.__class__.__name__)
            return
        self._handle_close()

    def _handle_open(self) -> None:
        self._state = SessionState.CONNECTED
        logger.debug(
            "log session connected",
            extra={"source_id": self.config.source_id, "generation": self.generation},
        )
        self._notify()

    def _handle_chunk(self, chunk: RawChunk) -> None:
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        self._state = SessionState.RECEIVING
        if not text:
            return
        self._append_text(text)
        self._notify()

    def _append_text(self, text: str) -> None:
        self._chunks.append(text)
        lines, self._pending = split_complete_lines(self._pending + text)
        if lines:
            self._records.extend(self._render(lines))

    def _flush_pending(self) -> None:
        tail = self._decoder.decode(b"", final=True)
        if tail:
            self._chunks.append(tail)
            self._pending += tail
        if self._pending:
            line = self._pending[:-1] if self._pending.endswith("\r") else self._pending
            self._pending = ""
            self._records.extend(self._render([line]))

    def _handle_error(self, reason: str) -> None:
        if self.closed:
            return
        self._flush_pending()
        self._error = reason
        self._records[:0] = self._render([f"Connection error: {reason}", ""])
        self._state = SessionState.CLOSED
        self._close_reason = CloseReason.ERROR
        logger.warning(
            "log session closed with error",
            extra={"source_id": self.config.source_id, "generation": self.generation, "error": reason},
        )
        self._notify()

    def _handle_close(self) -> None:
        if self.closed:
            return
        self._flush_pending()
        if self._chunks:
            self._records.extend(self._render(["", STREAM_ENDED_MARKER]))
        self._state = SessionState.CLOSED
        self._close_reason = CloseReason.NORMAL
        logger.info(
            "log session ended",
            extra={"source_id": self.config.source_id, "generation": self.generation},
        )
        self._notify()

    def _render(self, lines: List[str]) -> List[RenderedRecord]:
        return render_lines(lines, show_timestamps=self.config.show_timestamps, tz=self._tz)

    def _notify(self) -> None:
        if self._listener is None:
            return
        try:
            self._listener(self)
        except Exception:  # pragma: no cover
            logger.exception("log session listener failed", extra={"source_id": self.config.source_id})


__all__ = [
    "CONNECTED_PLACEHOLDER",
    "CONNECTING_PLACEHOLDER",
    "CloseReason",
    "STREAM_ENDED_MARKER",
    "SessionConfig",
    "SessionListener",
    "SessionState",
    "StreamSession",
]
