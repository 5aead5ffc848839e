"""Terminal escape sequence handling for log messages."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from html import escape
from typing import List, Optional


ANSI_PALETTE = (
    "#000000",
    "#cd3131",
    "#0dbc79",
    "#e5e510",
    "#2472c8",
    "#bc3fbc",
    "#11a8cd",
    "#e5e5e5",
    "#666666",
    "#f14c4c",
    "#23d18b",
    "#f5f543",
    "#3b8eea",
    "#d670d6",
    "#29b8db",
    "#e5e5e5",
)

# CSI sequences first (group 1 = parameters, group 2 = final byte), then OSC
# strings, then any other two-byte escape or a stray ESC.
_ESCAPE_PATTERN = re.compile(
    r"\x1b\[([0-9;:?<=>]*)[ -/]*([@-~])"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)?"
    r"|\x1b[@-_]?"
)


@dataclass(frozen=True)
class _TextStyle:
    fg: Optional[int] = None
    bg: Optional[int] = None
    bold: bool = False
    italic: bool = False
    underline: bool = False

    def css(self) -> str:
        parts: List[str] = []
        if self.fg is not None:
            parts.append(f"color:{ANSI_PALETTE[self.fg]}")
        if self.bg is not None:
            parts.append(f"background-color:{ANSI_PALETTE[self.bg]}")
        if self.bold:
            parts.append("font-weight:bold")
        if self.italic:
            parts.append("font-style:italic")
        if self.underline:
            parts.append("text-decoration:underline")
        return ";".join(parts)


_PLAIN = _TextStyle()


def strip_ansi(text: str) -> str:
    """Remove every terminal escape sequence from *text*."""
    return _ESCAPE_PATTERN.sub("", text)


def _sgr_codes(params: str) -> Optional[List[int]]:
    if any(ch in params for ch in "?<=>:"):
        return None
    if not params:
        return [0]
    return [int(token) if token else 0 for token in params.split(";")]


def _apply_sgr(style: _TextStyle, codes: List[int]) -> _TextStyle:
    index = 0
    while index < len(codes):
        code = codes[index]
        index += 1
        if code == 0:
            style = _PLAIN
        elif code == 1:
            style = replace(style, bold=True)
        elif code == 3:
            style = replace(style, italic=True)
        elif code == 4:
            style = replace(style, underline=True)
        elif code == 22:
            style = replace(style, bold=False)
        elif code == 23:
            style = replace(style, italic=False)
        elif code == 24:
            style = replace(style, underline=False)
        elif 30 <= code <= 37:
            style = replace(style, fg=code - 30)
        elif code == 39:
            style = replace(style, fg=None)
        elif 40 <= code <= 47:
            style = replace(style, bg=code - 40)
        elif code == 49:
            style = replace(style, bg=None)
        elif 90 <= code <= 97:
            style = replace(style, fg=code - 90 + 8)
        elif 100 <= code <= 107:
            style = replace(style, bg=code - 100 + 8)
        elif code in (38, 48):
            mode = codes[index] if index < len(codes) else None
            if mode == 5:
                color = codes[index + 1] if index + 1 < len(codes) else None
                index += 2
                if color is not None and color < len(ANSI_PALETTE):
                    style = replace(style, fg=color) if code == 38 else replace(style, bg=color)
            elif mode == 2:
                # 24-bit colors fall outside the palette
                index += 4
            else:
                index += 1
    return style


def ansi_to_html(text: str) -> str:
    """Convert raw *text* to HTML, turning SGR color sequences into inline spans.

    Escape sequences are matched on the raw text and only the text between
    them is HTML-escaped. Style state lives for one call only, so every span
    is closed before returning. Sequences other than supported SGR codes are
    dropped.
    """

    if "\x1b" not in text:
        return escape(text)

    pieces: List[str] = []
    style = _PLAIN
    position = 0

    def _emit(segment: str) -> None:
        if not segment:
            return
        css = style.css()
        segment = escape(segment)
        pieces.append(f'<span style="{css}">{segment}</span>' if css else segment)

    for match in _ESCAPE_PATTERN.finditer(text):
        _emit(text[position : match.start()])
        position = match.end()
        if match.group(2) == "m":
            codes = _sgr_codes(match.group(1))
            if codes is not None:
                style = _apply_sgr(style, codes)

    _emit(text[position:])
    return "".join(pieces)


__all__ = ["ANSI_PALETTE", "ansi_to_html", "strip_ansi"]
