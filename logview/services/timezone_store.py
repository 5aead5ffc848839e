"""Display timezone for log timestamps, persisted across restarts."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..config import get_settings
from ..logging_config import logger


TIMEZONE_FILENAME = "timezone.txt"


class TimezoneStore:
    """Keeps the IANA timezone name that rendered timestamps are shown in.

    The value is read once from *path* and cached; updates are validated and
    written back before the cache changes. Sessions pick the zone up when
    they start, so a change only affects streams opened afterwards.
    """

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()
        self._cached: Optional[str] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Optional[str]:
        try:
            value = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("failed to read timezone file", extra={"path": str(self._path), "error": str(exc)})
            return None
        return value or None

    def get_timezone(self, default: str = "UTC") -> str:
        with self._lock:
            return self._cached or default

    def set_timezone(self, timezone_name: str) -> str:
        """Validate, persist and return the canonical name of *timezone_name*."""
        zone = parse_timezone(timezone_name)
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(zone.key, encoding="utf-8")
            self._cached = zone.key
        logger.info("display timezone changed", extra={"timezone": zone.key})
        return zone.key


def parse_timezone(timezone_name: str) -> ZoneInfo:
    candidate = (timezone_name or "").strip()
    if not candidate:
        raise ValueError("timezone must be a non-empty string")
    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {candidate}") from exc


_timezone_store: Optional[TimezoneStore] = None


def get_timezone_store() -> TimezoneStore:
    global _timezone_store
    if _timezone_store is None:
        _timezone_store = TimezoneStore(Path(get_settings().data_dir) / TIMEZONE_FILENAME)
    return _timezone_store


__all__ = ["TimezoneStore", "get_timezone_store", "parse_timezone"]
