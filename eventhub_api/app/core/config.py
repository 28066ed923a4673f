"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API can be started locally without any setup; in a production
deployment override them via environment variables (for example from
a ``.env`` file loaded by the process manager).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

# Directory holding the ``eventhub_api`` package; relative paths in the
# settings are resolved against it.
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _env_list(name: str, default: str = "") -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def resolve_project_path(value: str) -> Path:
    """Return ``value`` as an absolute path, relative paths taken from the project root."""
    path = Path(value)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path.resolve()


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "EventHub API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    environment: str = os.getenv("ENVIRONMENT", "development")
    debug: bool = _env_flag("DEBUG", "false")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional path of a log file in addition to console output.
    log_file: str = os.getenv("LOG_FILE", "")

    # Path of the SQLite database file.  A relative path is resolved
    # against the project root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "eventhub.db")

    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "auth_session")
    session_expire_days: int = int(os.getenv("SESSION_EXPIRE_DAYS", "30"))
    # Browsers only send Secure cookies over HTTPS; disable for plain
    # HTTP local development.
    session_cookie_secure: bool = _env_flag("SESSION_COOKIE_SECURE", "true")

    frontend_url: str = os.getenv("FRONTEND_URL", "")
    cors_origins: List[str] = field(
        default_factory=lambda: _env_list("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")
    )

    # Banner images are written below ``media_root`` and served under
    # ``media_base_url``.  A relative ``media_root`` is resolved against
    # the project root, like ``database_url``.
    media_root: str = os.getenv("MEDIA_ROOT", "media")
    media_base_url: str = os.getenv("MEDIA_BASE_URL", "/media")
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

    @property
    def allowed_origins(self) -> List[str]:
        origins = list(self.cors_origins)
        if self.frontend_url and self.frontend_url not in origins:
            origins.append(self.frontend_url)
        return origins


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must therefore be set before importing this module.
settings = Settings()
