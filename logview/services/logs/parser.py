"""Split raw log text into lines and extract leading timestamps."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from ...logging_config import logger


UTC = timezone.utc

_TIMESTAMP_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z| UTC)?)\s+(.*)$"
)


@dataclass(frozen=True)
class ParsedLine:
    timestamp: Optional[datetime]
    message: str
    # Decided on the raw line: a timestamp with an empty message is not blank
    raw_blank: bool = False

    @property
    def is_blank(self) -> bool:
        return self.raw_blank


def _parse_timestamp(raw: str) -> Optional[datetime]:
    """Return the UTC instant for a matched timestamp, or None if it is not a real date."""
    value = raw
    if value.endswith(" UTC"):
        value = value[: -len(" UTC")]
    elif value.endswith("Z"):
        value = value[:-1]
    value = value.replace(" ", "T", 1)

    if "." in value:
        head, fraction = value.split(".", 1)
        # datetime only carries microseconds; container runtimes emit nanoseconds
        value = f"{head}.{fraction[:6].ljust(6, '0')}"
        fmt = "%Y-%m-%dT%H:%M:%S.%f"
    else:
        fmt = "%Y-%m-%dT%H:%M:%S"

    try:
        parsed = datetime.strptime(value, fmt)
    except ValueError:
        return None
    return parsed.replace(tzinfo=UTC)


def parse_line(line: str) -> ParsedLine:
    """Parse one complete line into its timestamp and message parts."""
    match = _TIMESTAMP_PATTERN.match(line)
    if not match:
        return ParsedLine(timestamp=None, message=line, raw_blank=not line.strip())

    timestamp = _parse_timestamp(match.group(1))
    if timestamp is None:
        logger.debug("discarding invalid leading timestamp", extra={"timestamp": match.group(1)})
        return ParsedLine(timestamp=None, message=line)

    return ParsedLine(timestamp=timestamp, message=match.group(2).strip())


def split_complete_lines(text: str) -> Tuple[List[str], str]:
    """Split *text* into terminated lines and the unterminated remainder."""
    if not text:
        return [], ""
    pieces = text.split("\n")
    remainder = pieces.pop()
    return [piece[:-1] if piece.endswith("\r") else piece for piece in pieces], remainder


def parse(raw_text: str) -> List[ParsedLine]:
    """Parse every complete line of *raw_text*; a trailing partial line is left out."""
    lines, _ = split_complete_lines(raw_text)
    return [parse_line(line) for line in lines]


__all__ = ["ParsedLine", "parse", "parse_line", "split_complete_lines"]
