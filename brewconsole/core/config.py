"""
Configuration management for BrewConsole.

Provides centralized, validated configuration from environment variables
with proper type checking and defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_flag(v) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "y")
    return bool(v)


class ApiConfig(BaseSettings):
    """Backend REST API configuration."""

    base_url: str = Field(default="http://localhost:8000", alias="BREWCONSOLE_API_BASE_URL")
    timeout: float = Field(default=10.0, alias="BREWCONSOLE_API_TIMEOUT")
    max_retries: int = Field(default=2, alias="BREWCONSOLE_API_MAX_RETRIES")
    backoff_max: float = Field(default=4.0, alias="BREWCONSOLE_API_BACKOFF_MAX")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("max_retries")
    @classmethod
    def at_least_one_attempt(cls, v: int) -> int:
        return max(1, v)

    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)


class SessionConfig(BaseSettings):
    """Persistent session storage configuration."""

    storage_path: Path = Field(
        default=Path.home() / ".brewconsole" / "session.json",
        alias="BREWCONSOLE_SESSION_PATH",
    )

    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)


class CacheConfig(BaseSettings):
    """Query cache configuration."""

    eager_refetch: bool = Field(default=True, alias="BREWCONSOLE_CACHE_EAGER_REFETCH")

    @field_validator("eager_refetch", mode="before")
    @classmethod
    def parse_eager_refetch(cls, v):
        return _parse_flag(v)

    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: str = Field(default="production", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # Component configurations
    api: ApiConfig = Field(default_factory=ApiConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v):
        return _parse_flag(v)

    @field_validator("log_json", mode="before")
    @classmethod
    def parse_log_json(cls, v):
        return _parse_flag(v)

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global settings
    settings = None


def validate_required_settings(config: Optional[Settings] = None) -> List[str]:
    """
    Validate that settings needed to talk to the backend are usable.

    Returns:
        List of problems, empty when the configuration is usable
    """
    problems = []
    try:
        config = config or get_settings()

        if not config.api.base_url.startswith(("http://", "https://")):
            problems.append("BREWCONSOLE_API_BASE_URL must be an http(s) URL")
        if config.api.timeout <= 0:
            problems.append("BREWCONSOLE_API_TIMEOUT must be positive")

    except Exception as e:
        problems.append(f"Configuration error: {e}")

    return problems


def print_configuration_summary(config: Optional[Settings] = None) -> None:
    """Print a summary of the current configuration for debugging."""
    try:
        config = config or get_settings()
        print("=== BrewConsole Configuration Summary ===")
        print(f"Environment: {config.environment}")
        print(f"Debug Mode: {config.debug}")
        print(f"API Base URL: {config.api.base_url}")
        print(f"API Timeout: {config.api.timeout}s")
        print(f"GET Attempts: {config.api.max_retries}")
        print(f"Session File: {config.session.storage_path}")
        print(f"Eager Refetch: {'✓' if config.cache.eager_refetch else '✗'}")

        problems = validate_required_settings(config)
        if problems:
            print("Status: ⚠ Problems found")
            for problem in problems:
                print(f"  - {problem}")
        else:
            print("Status: ✓ Ready")
        print("=" * 41)
    except Exception as e:
        print(f"Error loading configuration: {e}")
