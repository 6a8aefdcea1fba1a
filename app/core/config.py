"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

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
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_store_settings() -> "StoreSettings":
    """Build document store settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return StoreSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_store_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field(
        "json",
        description="Log format: 'json' for structured logs, 'plain' for humans",
    )
    output: str = Field("stdout", description="Log destination: 'stdout' or 'file'")
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file' (default logs/app.log)",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Document store configuration.

    The Firestore backend authenticates with a service account JSON blob when
    one is provided, and falls back to Application Default Credentials
    otherwise (which also covers FIRESTORE_EMULATOR_HOST).
    """

    backend: str = Field(
        "firestore",
        description="Document store backend: 'firestore' or 'memory'",
    )
    project_id: str | None = Field(
        None,
        description="Google Cloud project id (defaults to the one in the credentials)",
    )
    credentials_json: str | None = Field(
        None,
        description="Service account JSON used to authenticate against Firestore",
        validation_alias=AliasChoices("STORE_CREDENTIALS_JSON", "FIREBASE_CONFIG_JSON"),
    )
    database: str | None = Field(
        None,
        description="Firestore database id (None uses the default database)",
    )
    collection: str = Field("people", description="Collection holding the document")
    document: str = Field("associates", description="Id of the shared friends document")

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
        populate_by_name=True,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field("0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(8383, description="Port for the HTTP server")
    cors_origins: str | None = Field(
        "http://localhost:3000",
        description="Comma-separated list of origins allowed to call the API",
    )
    index_file: str | None = Field(
        None,
        description="Path to the front end's index.html served at '/'",
    )
    max_name_bytes: int = Field(
        1500,
        description="Maximum UTF-8 size of a friend name (Firestore field name limit)",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_trust_forwarded_for: bool = Field(
        False,
        description="Use the first X-Forwarded-For address as the client identity",
    )

    global_rate_limit_requests: int = Field(
        100,
        description="Requests per window for reads (global class)",
        ge=1,
    )
    global_rate_limit_window_seconds: int = Field(
        15 * 60,
        description="Window size in seconds for the global class",
        ge=1,
    )
    strict_rate_limit_requests: int = Field(
        10,
        description="Requests per window for add/delete (strict class)",
        ge=1,
    )
    strict_rate_limit_window_seconds: int = Field(
        5 * 60,
        description="Window size in seconds for the strict class",
        ge=1,
    )
    like_rate_limit_requests: int = Field(
        30,
        description="Requests per window for value/like updates (like class)",
        ge=1,
    )
    like_rate_limit_window_seconds: int = Field(
        60,
        description="Window size in seconds for the like class",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
