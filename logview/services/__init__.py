"""Service layer components."""

from .dokploy import DokployClient, DokployError, get_dokploy_client
from .log_views import LogView, LogViewRegistry, get_log_view_registry
from .timezone_store import TimezoneStore, get_timezone_store


__all__ = [
    "DokployClient",
    "DokployError",
    "get_dokploy_client",
    "LogView",
    "LogViewRegistry",
    "get_log_view_registry",
    "TimezoneStore",
    "get_timezone_store",
]
