"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

The two historical deployments of the proxy (100 requests/hour with wildcard
CORS, and 20 requests/hour with an origin allow-list) are just different
values of the settings below.
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


class LLMSettings(BaseSettings):
    """Upstream chat-completion provider configuration.

    The credential is deliberately optional here: a missing key is reported
    per request as a server misconfiguration rather than failing at import.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (only 'openai' is supported)",
    )
    model: str = Field(
        "gpt-4o-mini",
        description="Default model used when the client does not pick one",
    )
    api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("LLM_API_KEY", "OPENAI_API_KEY"),
        description="Server-side credential for the upstream API (never sent to clients)",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (defaults to the public OpenAI API)",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Upstream request timeout in seconds",
        gt=0,
    )
    default_max_tokens: int = Field(
        1500,
        description="max_tokens sent upstream when the request omits it",
        ge=1,
    )
    default_temperature: float = Field(
        0.85,
        description="temperature sent upstream when the request omits it",
    )
    allow_model_override: bool = Field(
        True,
        description="Whether clients may choose the upstream model",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
        populate_by_name=True,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting",
    )
    rate_limit_requests: int = Field(
        20,
        description="Maximum number of requests allowed per window (per client key)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        3600,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_sweep_interval_seconds: int | None = Field(
        None,
        description="How often expired rate limit records are evicted (defaults to the window size)",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers when throttling",
    )
    include_remaining: bool = Field(
        True,
        description="Report remaining quota in successful chat responses",
    )

    cors_allow_any_origin: bool = Field(
        False,
        description="Answer every request with Access-Control-Allow-Origin: *",
    )
    cors_allowed_origins: str = Field(
        "https://www.propertyfinder.ae,chrome-extension://",
        description=(
            "Comma-separated origin prefixes allowed to call the proxy. "
            "The first entry is returned for origins that do not match."
        ),
    )
    cors_max_age_seconds: int | None = Field(
        86400,
        description="Access-Control-Max-Age value for preflight caching (unset to omit)",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (defaults to logs/chat_proxy.log)",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size; 0 disables rotation",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_llm_settings() -> LLMSettings:
    return LLMSettings()


def _build_app_settings() -> AppSettings:
    return AppSettings()


def _build_log_settings() -> LogSettings:
    return LogSettings()


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


def load_llm_settings() -> LLMSettings:
    """Read upstream settings from the current process environment.

    Called per request so that a credential rotated into the environment is
    picked up without restarting the process.
    """

    return LLMSettings()


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
