"""Simplified configuration management."""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


def _load_env_file() -> None:
    """Load .env from root directory if present."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                key, value = stripped.split("=", 1)
                key, value = key.strip(), value.strip().strip("'\"")
                if key and value and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_env_file()


DEFAULT_APP_NAME = "Dokploy Log Viewer"
DEFAULT_APP_VERSION = "0.1.0"

DEFAULT_TAIL_DEPTH = 100
DEFAULT_TAIL_OPTIONS = (100, 500, 1000, 5000)
DEFAULT_MAX_TAIL_DEPTH = 10000


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_flag(name: str, fallback: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return fallback
    return raw.strip().lower() not in {"", "0", "false", "no", "off"}


def _get_port() -> int:
    """Get server port, checking PORT first, then LOGVIEW_PORT."""
    port = os.getenv("PORT") or os.getenv("LOGVIEW_PORT")
    if port:
        try:
            return int(port)
        except ValueError:
            pass
    return 8010


class Settings(BaseModel):
    """Application settings with lightweight env fallbacks."""

    # App metadata
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)

    # Server runtime
    server_host: str = Field(default=os.getenv("LOGVIEW_HOST", "127.0.0.1"))
    server_port: int = Field(default_factory=_get_port)

    # Dokploy instance
    dokploy_endpoint: Optional[str] = Field(default=os.getenv("DOKPLOY_ENDPOINT"))
    dokploy_api_key: Optional[str] = Field(default=os.getenv("DOKPLOY_API_KEY"))
    request_timeout_seconds: float = Field(default=30.0)

    # Local state
    data_dir: str = Field(default=os.getenv("LOGVIEW_DATA_DIR", str(Path(__file__).parent / "data")))

    # Log view behaviour
    default_tail_depth: int = Field(default_factory=lambda: _env_int("LOGVIEW_DEFAULT_TAIL", DEFAULT_TAIL_DEPTH))
    max_tail_depth: int = Field(default_factory=lambda: _env_int("LOGVIEW_MAX_TAIL", DEFAULT_MAX_TAIL_DEPTH))
    tail_depth_options: List[int] = Field(default_factory=lambda: list(DEFAULT_TAIL_OPTIONS))
    show_timestamps: bool = Field(default_factory=lambda: _env_flag("LOGVIEW_SHOW_TIMESTAMPS", False))

    # HTTP behaviour
    cors_allow_origins_raw: str = Field(default=os.getenv("LOGVIEW_CORS_ALLOW_ORIGINS", "*"))
    enable_docs: bool = Field(default=os.getenv("LOGVIEW_ENABLE_DOCS", "1") != "0")
    docs_url: Optional[str] = Field(default=os.getenv("LOGVIEW_DOCS_URL", "/docs"))

    @property
    def cors_allow_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_allow_origins_raw.strip() in {"", "*"}:
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins_raw.split(",") if origin.strip()]

    @property
    def resolved_docs_url(self) -> Optional[str]:
        """Return documentation URL when docs are enabled."""
        return (self.docs_url or "/docs") if self.enable_docs else None

    @property
    def dokploy_configured(self) -> bool:
        return bool(self.dokploy_endpoint and self.dokploy_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
