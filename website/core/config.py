"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- ENV determines which .env file to load (APP_ENV is accepted as a fallback)
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Durations (timeouts) accept Go-style strings such as ``15s``, ``1m30s`` or
``500ms`` as well as plain numbers of seconds.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("ENV") or os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


DEFAULT_CSP = (
    "default-src 'self'; "
    "script-src 'self'; "
    "style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data: https:; "
    "font-src 'self'; "
    "connect-src 'self'; "
    "media-src 'self'; "
    "object-src 'none'; "
    "child-src 'none'; "
    "frame-src 'none'; "
    "worker-src 'none'; "
    "frame-ancestors 'none'; "
    "form-action 'self'; "
    "base-uri 'self'; "
    "manifest-src 'self'"
)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|us|µs|ns|h|m|s)")
_DURATION_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}


def parse_duration(value: str | int | float) -> float:
    """Parse a duration into seconds.

    Args:
        value: Number of seconds, or a Go-style duration string made of one or
            more ``<number><unit>`` parts (units: h, m, s, ms, us, ns).

    Returns:
        Duration in seconds.

    Raises:
        ValueError: If the value is malformed or negative.

    Examples:
        >>> parse_duration("15s")
        15.0
        >>> parse_duration("1m30s")
        90.0
        >>> parse_duration(2)
        2.0
    """
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        if not text:
            raise ValueError("duration must not be empty")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    raise ValueError(f"invalid duration: {value!r}")
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos != len(text):
                raise ValueError(f"invalid duration: {value!r}")

    if seconds < 0:
        raise ValueError("duration must be positive")
    return seconds


def _build_server_settings() -> "ServerSettings":
    """Build server settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    Nested settings are built through factories so each picks up its own
    env prefix at construction time.
    """

    return ServerSettings()


def _build_tls_settings() -> "TLSSettings":
    return TLSSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_app_settings() -> "AppSettings":
    return AppSettings()


class ServerSettings(BaseSettings):
    """Transport-level configuration for the HTTP server."""

    host: str = Field("0.0.0.0", description="Interface to bind")
    port: int = Field(8080, ge=1, le=65535, description="TCP port to listen on")
    read_timeout: float = Field(15.0, description="Request read timeout (seconds)")
    write_timeout: float = Field(15.0, description="Response write timeout (seconds)")
    idle_timeout: float = Field(60.0, description="Keep-alive idle timeout (seconds)")
    shutdown_timeout: float = Field(
        30.0,
        description="Deadline for graceful shutdown on SIGINT/SIGTERM (seconds)",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "read_timeout", "write_timeout", "idle_timeout", "shutdown_timeout", mode="before"
    )
    @classmethod
    def _parse_duration(cls, value: str | int | float) -> float:
        return parse_duration(value)


class TLSSettings(BaseSettings):
    """TLS/HTTPS configuration. TLS is enabled only when both files are set."""

    cert_file: str = Field("", description="Path to PEM certificate")
    key_file: str = Field("", description="Path to PEM private key")

    model_config = SettingsConfigDict(
        env_prefix="TLS_",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def enabled(self) -> bool:
        return bool(self.cert_file and self.key_file)


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("info", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log sink: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate file after N bytes (0 disables)")
    backup_count: int = Field(5, description="Number of rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
        extra="ignore",
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    version: str = Field("1.0.0", description="Version reported by /health")
    csp_policy: str = Field(
        DEFAULT_CSP,
        validation_alias=AliasChoices("CSP_POLICY", "APP_CSP_POLICY"),
        description="Content-Security-Policy header value",
    )
    blog_dir: str = Field("content/blog", description="Directory holding markdown posts")
    static_dir: str = Field("static", description="Directory served under /static")
    templates_dir: str = Field(
        str(Path(__file__).resolve().parents[1] / "templates"),
        description="Directory holding Jinja2 page templates",
    )
    max_body_bytes: int = Field(
        10 * 1024 * 1024,
        description="Maximum declared Content-Length before rejecting with 413",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-IP rate limiting",
    )
    rate_limit_requests: int = Field(
        100,
        description="Maximum number of requests allowed per window (per IP)",
        ge=1,
    )
    rate_limit_window_seconds: float = Field(
        60.0,
        description="Rate limit window size in seconds",
        gt=0,
    )
    rate_limit_cleanup_interval_seconds: float = Field(
        300.0,
        description="Interval between sweeps of idle rate limit buckets",
        gt=0,
    )
    rate_limit_idle_ttl_seconds: float = Field(
        3600.0,
        description="Buckets untouched for longer than this are evicted",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    server: ServerSettings = Field(default_factory=_build_server_settings)
    tls: TLSSettings = Field(default_factory=_build_tls_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
