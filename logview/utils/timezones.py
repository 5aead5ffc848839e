"""Helpers for the timezone log timestamps are displayed in."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

from ..logging_config import logger
from ..services.timezone_store import get_timezone_store, parse_timezone


LOCAL_TIMEZONE_NAME = "local"


def local_timezone() -> tzinfo:
    """Return the host's local timezone."""
    return datetime.now().astimezone().tzinfo


def get_display_timezone_name(default: str = LOCAL_TIMEZONE_NAME) -> str:
    """Return the stored timezone preference or a default."""

    store = get_timezone_store()
    return store.get_timezone(default)


def resolve_display_timezone(default: Optional[str] = None) -> tzinfo:
    """Resolve the stored timezone for rendering.

    Without a stored preference timestamps are shown in the host's local
    time, or in *default* when one is given. An unusable stored name falls
    back the same way.
    """

    tz_name = get_display_timezone_name("")
    if tz_name:
        try:
            return parse_timezone(tz_name)
        except ValueError as exc:
            logger.warning(
                "unusable display timezone; falling back",
                extra={"timezone": tz_name, "error": str(exc)},
            )
    return parse_timezone(default) if default else local_timezone()


__all__ = [
    "LOCAL_TIMEZONE_NAME",
    "get_display_timezone_name",
    "local_timezone",
    "resolve_display_timezone",
]
