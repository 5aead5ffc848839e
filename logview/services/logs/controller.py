"""Owns the active log session for one view and replaces it on reconfiguration."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import tzinfo
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple

from ...logging_config import logger
from .errors import ConfigurationError, SourceResolutionError
from .renderer import RenderedRecord, render_records_html
from .session import SessionConfig, StreamSession
from .transport import LogStreamRequest, LogTransport, open_websocket_stream


_SUBSCRIBER_QUEUE_SIZE = 64


@dataclass(frozen=True)
class SourceInfo:
    source_id: str
    name: str
    state: str = ""
    log_path: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.name} ({self.state})" if self.state else self.name


SourceResolver = Callable[[], Awaitable[List[SourceInfo]]]
RequestBuilder = Callable[[SessionConfig, SourceInfo], LogStreamRequest]


class ControllerState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    NO_SOURCE = "no_source"
    CLOSED = "closed"


@dataclass(frozen=True)
class ControllerSnapshot:
    title: str
    state: str
    generation: int
    sources: Tuple[SourceInfo, ...]
    source_id: Optional[str]
    tail_depth: Optional[int]
    records: Tuple[RenderedRecord, ...]
    placeholder: Optional[str]
    detail: Optional[str]

    @property
    def content_html(self) -> str:
        return render_records_html(self.records, self.placeholder)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "state": self.state,
            "generation": self.generation,
            "sources": [
                {"source_id": s.source_id, "name": s.name, "state": s.state, "label": s.label}
                for s in self.sources
            ],
            "source_id": self.source_id,
            "tail_depth": self.tail_depth,
            "records": [record.to_dict() for record in self.records],
            "placeholder": self.placeholder,
            "detail": self.detail,
            "content_html": self.content_html,
        }


def parse_tail_depth(value: Any, *, maximum: int) -> int:
    """Validate a requested tail depth, raising ConfigurationError when malformed."""
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid tail depth: {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            raise ConfigurationError(f"Invalid tail depth: {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise ConfigurationError(f"Invalid tail depth: {value!r}")
    if value < 1 or value > maximum:
        raise ConfigurationError(f"Tail depth must be between 1 and {maximum}")
    return value


class SourceController:
    """Tracks which source and tail depth a view shows and owns its session.

    Every reconfiguration discards the running session and starts a new one
    with an empty buffer. Sessions are tagged with a generation number so
    late events from a discarded session never reach subscribers.
    """

    def __init__(
        self,
        title: str,
        *,
        resolve_sources: SourceResolver,
        build_request: RequestBuilder,
        transport: LogTransport = open_websocket_stream,
        tail_depth: int = 100,
        max_tail_depth: int = 10000,
        tail_depth_options: Sequence[int] = (),
        supports_tail: bool = True,
        show_timestamps: bool = False,
        server_hint: Optional[str] = None,
        tz_provider: Optional[Callable[[], tzinfo]] = None,
    ) -> None:
        self.title = title
        self._resolve_sources = resolve_sources
        self._build_request = build_request
        self._transport = transport
        self._max_tail_depth = max_tail_depth
        self.tail_depth_options: Tuple[int, ...] = tuple(tail_depth_options)
        self.supports_tail = supports_tail
        self._show_timestamps = show_timestamps
        self._server_hint = server_hint
        self._tz_provider = tz_provider
        self._tail_depth = parse_tail_depth(tail_depth, maximum=max_tail_depth)

        self._state = ControllerState.IDLE
        self._sources: List[SourceInfo] = []
        self._config: Optional[SessionConfig] = None
        self._session: Optional[StreamSession] = None
        self._generation = 0
        self._detail: Optional[str] = None
        self._lock = asyncio.Lock()
        self._retired: Set[asyncio.Task[None]] = set()
        self._subscribers: List[asyncio.Queue[ControllerSnapshot]] = []

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def session(self) -> Optional[StreamSession]:
        return self._session

    @property
    def config(self) -> Optional[SessionConfig]:
        return self._config

    @property
    def sources(self) -> Tuple[SourceInfo, ...]:
        return tuple(self._sources)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def tail_depth(self) -> int:
        return self._tail_depth

    def snapshot(self) -> ControllerSnapshot:
        session = self._session
        if self._state is ControllerState.NO_SOURCE:
            state = "no_source"
        elif session is not None:
            state = session.display_state
        elif self._state is ControllerState.CLOSED:
            state = "ended"
        else:
            state = "connecting"

        return ControllerSnapshot(
            title=self.title,
            state=state,
            generation=self._generation,
            sources=tuple(self._sources),
            source_id=self._config.source_id if self._config else None,
            tail_depth=self._tail_depth if self.supports_tail else None,
            records=session.records if session else (),
            placeholder=session.placeholder if session else None,
            detail=self._detail,
        )

    # Subscriptions

    def subscribe(self) -> asyncio.Queue[ControllerSnapshot]:
        queue: asyncio.Queue[ControllerSnapshot] = asyncio.Queue(maxsize=_SUBSCRIBER_QUEUE_SIZE)
        self._subscribers.append(queue)
        queue.put_nowait(self.snapshot())
        return queue

    def unsubscribe(self, queue: asyncio.Queue[ControllerSnapshot]) -> None:
        try:
            self._subscribers.remove(queue)
        except ValueError:
            pass

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for queue in list(self._subscribers):
            if queue.full():
                # Snapshots are complete states, so an unread older one can go
                queue.get_nowait()
            queue.put_nowait(snapshot)

    def _on_session_update(self, session: StreamSession) -> None:
        if session is not self._session or session.generation != self._generation:
            logger.debug(
                "dropping stale log session event",
                extra={"generation": session.generation, "current": self._generation},
            )
            return
        self._publish()

    # Intents

    async def open(self) -> ControllerSnapshot:
        """Resolve the selectable sources and start tailing the first one."""
        async with self._lock:
            self._ensure_open()
            self._retire_session()
            await self._resolve_and_start()
            return self.snapshot()

    async def select_source(self, source_id: str) -> ControllerSnapshot:
        async with self._lock:
            self._ensure_open()
            source = self._find_source(source_id)
            if source is None:
                raise ConfigurationError(f"Unknown log source: {source_id}")
            self._retire_session()
            self._start_session(source)
            return self.snapshot()

    async def set_tail_depth(self, depth: Any) -> ControllerSnapshot:
        async with self._lock:
            self._ensure_open()
            if not self.supports_tail:
                raise ConfigurationError("Tail depth cannot be changed for this view")
            self._tail_depth = parse_tail_depth(depth, maximum=self._max_tail_depth)
            current = self._find_source(self._config.source_id) if self._config else None
            if current is not None:
                self._retire_session()
                self._start_session(current)
            else:
                self._publish()
            return self.snapshot()

    async def refresh(self) -> ControllerSnapshot:
        """Drop the current session, re-list sources and reconnect from scratch."""
        async with self._lock:
            self._ensure_open()
            self._retire_session()
            await self._resolve_and_start()
            return self.snapshot()

    async def close(self) -> None:
        async with self._lock:
            if self._state is ControllerState.CLOSED:
                return
            self._retire_session()
            self._state = ControllerState.CLOSED
            self._publish()
            self._subscribers.clear()
            retired = list(self._retired)
        if retired:
            await asyncio.gather(*retired, return_exceptions=True)
        logger.info("log view closed", extra={"title": self.title})

    # Internals

    def _ensure_open(self) -> None:
        if self._state is ControllerState.CLOSED:
            raise ConfigurationError("Log view is closed")

    def _find_source(self, source_id: str) -> Optional[SourceInfo]:
        for source in self._sources:
            if source.source_id == source_id:
                return source
        return None

    async def _resolve_and_start(self) -> None:
        try:
            sources = await self._resolve_sources()
        except SourceResolutionError as exc:
            logger.warning("log source resolution failed", extra={"title": self.title, "error": str(exc)})
            self._enter_no_source(str(exc))
            return
        except Exception as exc:
            logger.exception("log source resolver crashed", extra={"title": self.title})
            self._enter_no_source(str(exc) or exc.__class__.__name__)
            return

        self._sources = list(sources)
        if not self._sources:
            self._enter_no_source(None)
            return

        self._detail = None
        self._start_session(self._sources[0])

    def _enter_no_source(self, detail: Optional[str]) -> None:
        self._sources = []
        self._config = None
        self._detail = detail
        self._state = ControllerState.NO_SOURCE
        logger.info("no log sources available", extra={"title": self.title})
        self._publish()

    def _retire_session(self) -> None:
        session = self._session
        if session is None:
            return
        self._session = None
        session.discard()
        task = session.task
        if task is not None and not task.done():
            self._retired.add(task)
            task.add_done_callback(self._retired.discard)

    def _start_session(self, source: SourceInfo) -> None:
        self._generation += 1
        self._config = SessionConfig(
            source_id=source.source_id,
            tail_depth=self._tail_depth,
            server_hint=self._server_hint,
            show_timestamps=self._show_timestamps,
        )
        self._state = ControllerState.ACTIVE
        session = StreamSession(
            self._config,
            self._build_request(self._config, source),
            generation=self._generation,
            transport=self._transport,
            listener=self._on_session_update,
            tz=self._tz_provider() if self._tz_provider else None,
        )
        self._session = session
        logger.info(
            "starting log session",
            extra={
                "title": self.title,
                "source_id": source.source_id,
                "tail": self._tail_depth,
                "generation": self._generation,
            },
        )
        session.start()


__all__ = [
    "ControllerSnapshot",
    "ControllerState",
    "RequestBuilder",
    "SourceController",
    "SourceInfo",
    "SourceResolver",
    "parse_tail_depth",
]
