from .responses import error_response
from .timezones import (
    get_display_timezone_name,
    resolve_display_timezone,
)

__all__ = [
    "error_response",
    "get_display_timezone_name",
    "resolve_display_timezone",
]
