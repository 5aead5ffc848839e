"""Turn classified log lines into HTML-ready records and pages."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, tzinfo
from html import escape
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .ansi import ansi_to_html, strip_ansi
from .classifier import ClassifiedLine, Severity, classify_line
from .parser import parse_line, split_complete_lines


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
BLANK_ROW_HTML = '<div class="log-line log-empty">&nbsp;</div>'


@dataclass(frozen=True)
class SeverityStyle:
    label: str
    css_class: str
    border_color: str
    badge_bg: str
    badge_text: str


SEVERITY_STYLES: Dict[Severity, SeverityStyle] = {
    Severity.ERROR: SeverityStyle(
        label="error",
        css_class="log-error",
        border_color="#f44336",
        badge_bg="rgba(244, 67, 54, 0.4)",
        badge_text="#ff6b6b",
    ),
    Severity.WARNING: SeverityStyle(
        label="warning",
        css_class="log-warning",
        border_color="#ff9800",
        badge_bg="rgba(255, 152, 0, 0.4)",
        badge_text="#ffb74d",
    ),
    Severity.SUCCESS: SeverityStyle(
        label="success",
        css_class="log-success",
        border_color="#4caf50",
        badge_bg="rgba(76, 175, 80, 0.4)",
        badge_text="#81c784",
    ),
    Severity.INFO: SeverityStyle(
        label="info",
        css_class="log-info",
        border_color="#2196f3",
        badge_bg="rgba(33, 150, 243, 0.4)",
        badge_text="#64b5f6",
    ),
    Severity.DEBUG: SeverityStyle(
        label="debug",
        css_class="log-debug",
        border_color="#9e9e9e",
        badge_bg="rgba(158, 158, 158, 0.3)",
        badge_text="#bdbdbd",
    ),
}


@dataclass(frozen=True)
class RenderedRecord:
    """One display row. Blank rows carry no severity, style or message."""

    blank: bool
    severity: Optional[Severity] = None
    timestamp: Optional[str] = None
    message_html: str = ""
    message_text: str = ""

    @property
    def style(self) -> Optional[SeverityStyle]:
        return SEVERITY_STYLES[self.severity] if self.severity is not None else None

    def to_html(self) -> str:
        style = self.style
        if self.blank or style is None:
            return BLANK_ROW_HTML

        parts = [
            f'<div class="log-line {style.css_class}">',
            f'<div class="log-border" style="background-color: {style.border_color}"></div>',
        ]
        if self.timestamp is not None:
            parts.append(f'<span class="log-timestamp">{self.timestamp}</span>')
        parts.append(
            f'<span class="log-badge" style="background-color: {style.badge_bg}; '
            f'color: {style.badge_text}">{style.label}</span>'
        )
        parts.append(f'<span class="log-message">{self.message_html}</span>')
        parts.append("</div>")
        return "".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        if self.blank:
            return {"blank": True}
        payload: Dict[str, Any] = {
            "blank": False,
            "severity": self.severity.value if self.severity else None,
            "message_html": self.message_html,
            "message_text": self.message_text,
        }
        if self.timestamp is not None:
            payload["timestamp"] = self.timestamp
        return payload


BLANK_RECORD = RenderedRecord(blank=True)


def format_timestamp(value: datetime, tz: Optional[tzinfo] = None) -> str:
    """Format an instant as ``YYYY-MM-DD HH:MM:SS`` in the display timezone."""
    return value.astimezone(tz).strftime(TIMESTAMP_FORMAT)


def render(line: ClassifiedLine, *, show_timestamps: bool = False, tz: Optional[tzinfo] = None) -> RenderedRecord:
    parsed = line.parsed
    if parsed.is_blank:
        return BLANK_RECORD

    timestamp = None
    if show_timestamps and parsed.timestamp is not None:
        timestamp = format_timestamp(parsed.timestamp, tz)

    return RenderedRecord(
        blank=False,
        severity=line.severity,
        timestamp=timestamp,
        message_html=ansi_to_html(parsed.message),
        message_text=strip_ansi(parsed.message),
    )


def render_lines(
    lines: Iterable[str], *, show_timestamps: bool = False, tz: Optional[tzinfo] = None
) -> List[RenderedRecord]:
    """Run complete raw lines through parse, classify and render."""
    return [
        render(classify_line(parse_line(line)), show_timestamps=show_timestamps, tz=tz)
        for line in lines
    ]


def render_text(text: str, *, show_timestamps: bool = False, tz: Optional[tzinfo] = None) -> List[RenderedRecord]:
    """Fully reprocess *text*; the unterminated last line is not rendered."""
    lines, _ = split_complete_lines(text)
    return render_lines(lines, show_timestamps=show_timestamps, tz=tz)


def render_records_html(records: Sequence[RenderedRecord], placeholder: Optional[str] = None) -> str:
    if not records and placeholder:
        return render_lines_html([placeholder])
    return "\n".join(record.to_html() for record in records)


def render_lines_html(lines: Iterable[str]) -> str:
    return "\n".join(record.to_html() for record in render_lines(lines))


_BASE_STYLES = """
    * { box-sizing: border-box; }
    body {
      background-color: #1e1e1e;
      color: #d4d4d4;
      font-family: 'Consolas', 'Courier New', monospace;
      font-size: 12px;
      line-height: 1.4;
      padding: 0;
      margin: 0;
    }
    .toolbar {
      position: fixed; top: 0; right: 0; left: 0;
      padding: 8px 16px;
      background: #252526;
      border-bottom: 1px solid #3c3c3c;
      z-index: 100;
      display: flex;
      justify-content: space-between;
      gap: 8px;
    }
    .toolbar-left, .toolbar-right { display: flex; gap: 8px; align-items: center; }
    .toolbar label { font-size: 11px; color: #9d9d9d; }
    .toolbar button, .empty-state button {
      background: #0e639c; color: #ffffff; border: none;
      padding: 4px 12px; cursor: pointer; border-radius: 2px; font-size: 12px;
    }
    .toolbar select {
      background: #3c3c3c; color: #cccccc; border: 1px solid #3c3c3c;
      padding: 4px 8px; border-radius: 2px; font-size: 12px;
    }
    .session-state { font-size: 11px; color: #9d9d9d; text-transform: uppercase; }
    #log-content { padding: 48px 8px 16px 8px; }
    .log-line {
      display: flex; align-items: start; gap: 8px;
      padding: 3px 8px; border-radius: 3px; margin-bottom: 1px; min-height: 22px;
    }
    .log-empty { height: 22px; }
    .log-border { width: 3px; flex-shrink: 0; border-radius: 2px; align-self: stretch; }
    .log-timestamp { width: 140px; flex-shrink: 0; color: #9d9d9d; font-size: 11px; }
    .log-badge {
      width: 54px; flex-shrink: 0; text-align: center; padding: 1px 4px;
      border-radius: 3px; font-size: 10px; font-weight: 600; text-transform: uppercase;
    }
    .log-message { flex: 1; white-space: pre-wrap; word-break: break-all; }
    .log-error { background-color: rgba(244, 67, 54, 0.1); }
    .log-warning { background-color: rgba(255, 152, 0, 0.1); }
    .log-success { background-color: rgba(76, 175, 80, 0.1); }
    .log-info { background-color: rgba(33, 150, 243, 0.1); }
    .log-debug { background-color: transparent; }
    .empty-state {
      display: flex; flex-direction: column; align-items: center; justify-content: center;
      height: 80vh; gap: 16px; color: #9d9d9d;
    }
    .empty-state h2 { margin: 0; font-weight: 500; color: #d4d4d4; }
"""

_PAGE_SCRIPT = """
    const streamUrl = %(stream_url)s;
    const pageState = %(state)s;
    let socket = null;
    function send(payload) {
      if (socket && socket.readyState === WebSocket.OPEN) {
        socket.send(JSON.stringify(payload));
      }
    }
    function changeContainer(containerId) { send({ command: 'changeContainer', containerId }); }
    function changeTail(tail) { send({ command: 'changeTail', tail: parseInt(tail, 10) }); }
    function refresh() { send({ command: 'refresh' }); }
    function scrollToBottom() { window.scrollTo(0, document.body.scrollHeight); }
    function copyLogs() {
      const lines = document.querySelectorAll('.log-message');
      navigator.clipboard.writeText(Array.from(lines).map(el => el.innerText).join('\\n'));
    }
    if (streamUrl) {
      const scheme = window.location.protocol === 'https:' ? 'wss://' : 'ws://';
      socket = new WebSocket(scheme + window.location.host + streamUrl);
      socket.onmessage = (event) => {
        const snapshot = JSON.parse(event.data);
        if ((snapshot.state === 'no_source') !== (pageState === 'no_source')) {
          window.location.reload();
          return;
        }
        if (pageState === 'no_source') { return; }
        const select = document.getElementById('containerSelect');
        if (select) {
          select.innerHTML = '';
          for (const source of snapshot.sources) {
            const option = document.createElement('option');
            option.value = source.source_id;
            option.textContent = source.label;
            option.selected = source.source_id === snapshot.source_id;
            select.appendChild(option);
          }
        }
        document.getElementById('log-content').innerHTML = snapshot.content_html;
        document.getElementById('session-state').textContent = snapshot.state;
        scrollToBottom();
      };
    }
    scrollToBottom();
"""


def _select_options(options: Sequence[Tuple[str, str]], selected: Optional[str]) -> str:
    rendered = []
    for value, label in options:
        marker = " selected" if value == selected else ""
        rendered.append(f'<option value="{escape(value)}"{marker}>{escape(label)}</option>')
    return "".join(rendered)


def _document(title: str, body: str, state: str, stream_url: Optional[str]) -> str:
    script = _PAGE_SCRIPT % {"stream_url": json.dumps(stream_url), "state": json.dumps(state)}
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<title>{escape(title)}</title>\n<style>{_BASE_STYLES}</style>\n</head>\n"
        f"<body>\n{body}\n<script>{script}</script>\n</body>\n</html>"
    )


def render_page(
    content_html: str,
    *,
    title: str,
    state: str,
    stream_url: Optional[str] = None,
    sources: Sequence[Tuple[str, str]] = (),
    selected_source_id: Optional[str] = None,
    tail_depth: Optional[int] = None,
    tail_options: Sequence[int] = (),
) -> str:
    """Build the full log page: toolbar with selectors plus the rendered rows."""

    controls = []
    if sources:
        controls.append("<label>Source:</label>")
        controls.append(
            '<select id="containerSelect" onchange="changeContainer(this.value)">'
            f"{_select_options(sources, selected_source_id)}</select>"
        )
    if tail_depth is not None and tail_options:
        depths = sorted(set(tail_options) | {tail_depth})
        tail_choices = [(str(depth), f"{depth} lines") for depth in depths]
        controls.append("<label>Tail:</label>")
        controls.append(
            '<select id="tailSelect" onchange="changeTail(this.value)">'
            f"{_select_options(tail_choices, str(tail_depth))}</select>"
        )

    body = (
        '<div class="toolbar">'
        f'<div class="toolbar-left">{"".join(controls)}</div>'
        '<div class="toolbar-right">'
        f'<span id="session-state" class="session-state">{escape(state)}</span>'
        '<button onclick="refresh()">Reconnect</button>'
        '<button onclick="scrollToBottom()">Scroll to Bottom</button>'
        '<button onclick="copyLogs()">Copy</button>'
        "</div></div>\n"
        f'<div id="log-content">{content_html}</div>'
    )
    return _document(title, body, state, stream_url)


def render_empty_state(app_name: str, *, detail: Optional[str] = None, stream_url: Optional[str] = None) -> str:
    """Page shown when an application has no selectable log source."""

    reason = escape(detail) if detail else "The application may be stopped or not yet deployed."
    body = (
        '<div class="empty-state">'
        "<h2>No Running Containers</h2>"
        f"<p>There are no log sources for <strong>{escape(app_name)}</strong>.<br>{reason}</p>"
        '<button onclick="refresh()">Refresh</button>'
        "</div>"
    )
    return _document(f"Logs: {app_name}", body, "no_source", stream_url)


__all__ = [
    "BLANK_RECORD",
    "BLANK_ROW_HTML",
    "RenderedRecord",
    "SEVERITY_STYLES",
    "SeverityStyle",
    "format_timestamp",
    "render",
    "render_empty_state",
    "render_lines",
    "render_lines_html",
    "render_page",
    "render_records_html",
    "render_text",
]
