"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
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


# Gemini exposes an OpenAI-compatible endpoint, so the openai SDK can talk to it
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def parse_model_list(models: str | None) -> list[str]:
    """Parse a comma-separated list of model identifiers.

    Order is preserved (it is the fallback priority) and duplicates are
    dropped, keeping the first occurrence.

    Examples:
        >>> parse_model_list("gemini-2.5-pro, gemini-2.5-flash")
        ['gemini-2.5-pro', 'gemini-2.5-flash']
        >>> parse_model_list(None)
        []
    """
    if not models:
        return []

    parsed: list[str] = []
    for model in models.split(","):
        model = model.strip()
        if model and model not in parsed:
            parsed.append(model)
    return parsed


def _build_llm_settings() -> "LLMSettings":
    """Build LLM settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return LLMSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_llm_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class LLMSettings(BaseSettings):
    """Generative backend configuration.

    The backend is reached through an OpenAI-compatible API. ``models`` is the
    ordered candidate list tried by the fallback dispatcher.
    """

    provider: str = Field(
        "openai",
        description="Backend protocol (currently only 'openai'-compatible APIs)",
    )
    api_key: str | None = Field(
        None,
        description="API key for the generative backend (e.g. a Gemini API key)",
    )
    base_url: str | None = Field(
        GEMINI_OPENAI_BASE_URL,
        description="OpenAI-compatible API endpoint",
    )
    models: str = Field(
        "gemini-2.5-pro,gemini-2.5-flash,gemini-2.0-flash",
        description="Comma-separated model identifiers, highest priority first",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Timeout for a single candidate attempt in seconds",
        gt=0,
    )
    temperature: float = Field(
        0.7,
        description="Sampling temperature sent with every generation request",
    )
    max_tokens: int | None = Field(
        None,
        description="Optional cap on generated tokens",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )

    def candidate_models(self) -> list[str]:
        """Return the parsed, ordered candidate model list."""
        return parse_model_list(self.models)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field(
        "0.0.0.0",
        description="Interface the HTTP server binds to",
    )
    port: int = Field(
        8080,
        description="Port the HTTP server listens on",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on mutating endpoints",
    )
    rate_limit_requests: int = Field(
        5,
        description="Maximum number of requests allowed per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Sliding window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers when throttling",
    )
    rate_limit_max_clients: int = Field(
        10000,
        description="Maximum number of client identities tracked before LRU eviction",
        ge=1,
    )
    trust_forwarded_for: bool = Field(
        False,
        description="Use X-Forwarded-For for client identity (only behind a trusted proxy)",
    )

    persist_content: bool = Field(
        True,
        description="Write generated content to output_dir",
    )
    output_dir: str = Field(
        "generated_content",
        description="Directory generated content is written to",
    )
    cors_allow_origin: str = Field(
        "*",
        description="Value of the Access-Control-Allow-Origin header",
    )
    disconnect_poll_seconds: float = Field(
        0.5,
        description="How often an in-flight generation checks for client disconnect",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
