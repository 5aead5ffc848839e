"""Error types raised by the log-stream pipeline."""

from __future__ import annotations


class TransportError(RuntimeError):
    """Raised when a log stream connection cannot be opened or drops."""


class ConfigurationError(ValueError):
    """Raised when a reconfiguration intent carries invalid input."""


class SourceResolutionError(RuntimeError):
    """Raised when the selectable log sources cannot be listed."""


__all__ = ["ConfigurationError", "SourceResolutionError", "TransportError"]
