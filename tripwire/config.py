"""Configuration loading for the Tripwire error-reporting pipeline.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
- Support multiple environments (development, staging, production)
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tripwire.core.reporter import ReporterConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Runtime environment; reporting only runs in production
    environment: str = Field(
        default="development",
        description="Deployment environment name",
    )

    # Issue tracker configuration
    error_tracker_backend: Literal["linear", "github"] = Field(
        default="linear",
        description="Issue tracker backend type",
    )
    error_tracker_api_key: str = Field(
        default="",
        description="Issue tracker API credential (required to enable reporting)",
    )
    error_tracker_team: str = Field(
        default="",
        description="Team name/key/id (Linear) or owner/repo (GitHub)",
    )
    error_tracker_label: str = Field(
        default="",
        description="Optional label attached to created issues",
    )
    linear_api_url: str = Field(
        default="https://api.linear.app/graphql",
        description="Linear GraphQL endpoint URL",
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    tracker_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for each issue tracker call in seconds",
    )

    # Dedup cache configuration
    cache_ttl_hours: float = Field(
        default=24.0,
        description="Hours since last occurrence after which a cache entry expires",
    )
    cache_sweep_interval_seconds: int = Field(
        default=3600,
        description="Interval between cache sweeps in seconds",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Intake server configuration
    intake_host: str = Field(
        default="0.0.0.0",
        description="Host to listen on for the error intake server",
    )
    intake_port: int = Field(
        default=8080,
        description="Port to listen on for the error intake server",
    )

    @field_validator("tracker_timeout_seconds")
    @classmethod
    def validate_tracker_timeout(cls, v: float) -> float:
        """Ensure tracker timeout is positive."""
        if v <= 0:
            raise ValueError("tracker_timeout_seconds must be positive")
        return v

    @field_validator("cache_ttl_hours")
    @classmethod
    def validate_cache_ttl(cls, v: float) -> float:
        """Ensure cache TTL is positive."""
        if v <= 0:
            raise ValueError("cache_ttl_hours must be positive")
        return v

    @field_validator("cache_sweep_interval_seconds")
    @classmethod
    def validate_sweep_interval(cls, v: int) -> int:
        """Ensure sweep interval is positive."""
        if v <= 0:
            raise ValueError("cache_sweep_interval_seconds must be positive")
        return v

    @field_validator("intake_port")
    @classmethod
    def validate_intake_port(cls, v: int) -> int:
        """Ensure intake port is in valid range."""
        if v <= 0 or v > 65535:
            raise ValueError("intake_port must be between 1 and 65535")
        return v

    def reporter_config(self) -> ReporterConfig:
        """The subset of settings the core reporter needs."""
        return ReporterConfig(
            api_key=self.error_tracker_api_key,
            team=self.error_tracker_team,
            label=self.error_tracker_label,
            environment=self.environment,
        )


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
