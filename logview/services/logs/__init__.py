"""Log-stream pipeline: parse, classify, render and session management."""

from .classifier import ClassifiedLine, RuleGroup, Severity, classify, classify_line
from .controller import (
    ControllerSnapshot,
    ControllerState,
    SourceController,
    SourceInfo,
    parse_tail_depth,
)
from .errors import ConfigurationError, SourceResolutionError, TransportError
from .parser import ParsedLine, parse, parse_line, split_complete_lines
from .renderer import (
    RenderedRecord,
    SEVERITY_STYLES,
    render,
    render_empty_state,
    render_page,
    render_text,
)
from .session import (
    CONNECTED_PLACEHOLDER,
    CONNECTING_PLACEHOLDER,
    STREAM_ENDED_MARKER,
    CloseReason,
    SessionConfig,
    SessionState,
    StreamSession,
)
from .transport import LogStreamRequest, LogTransport, open_websocket_stream

__all__ = [
    "CONNECTED_PLACEHOLDER",
    "CONNECTING_PLACEHOLDER",
    "CloseReason",
    "STREAM_ENDED_MARKER",
    "ClassifiedLine",
    "ConfigurationError",
    "ControllerSnapshot",
    "ControllerState",
    "LogStreamRequest",
    "LogTransport",
    "ParsedLine",
    "RenderedRecord",
    "RuleGroup",
    "SEVERITY_STYLES",
    "SessionConfig",
    "SessionState",
    "Severity",
    "SourceController",
    "SourceInfo",
    "SourceResolutionError",
    "StreamSession",
    "TransportError",
    "classify",
    "classify_line",
    "open_websocket_stream",
    "parse",
    "parse_line",
    "parse_tail_depth",
    "render",
    "render_empty_state",
    "render_page",
    "render_text",
    "split_complete_lines",
]
