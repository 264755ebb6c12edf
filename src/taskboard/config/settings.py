"""
Pydantic settings model for Taskboard configuration.

This module defines the configuration schema using pydantic-settings for
validation and type safety. Every group reads its own environment prefix.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Task store settings."""

    path: str | None = Field(
        default=None,
        description="JSON file backing the task collection (memory only when unset)",
    )

    model_config = SettingsConfigDict(env_prefix="STORE_")


class APISettings(BaseSettings):
    """API configuration settings."""

    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=5000, description="API port")
    reload: bool = Field(default=False, description="Enable auto-reload in development")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API from a browser",
    )

    model_config = SettingsConfigDict(env_prefix="API_")


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format (text or json)")
    dir: str | None = Field(default=None, description="Directory for rotating log files")
    backup_count: int = Field(default=30, description="Number of daily files to keep")

    model_config = SettingsConfigDict(env_prefix="LOG_")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = ["text", "json"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of {valid_formats}")
        return v.lower()


class ClientSettings(BaseSettings):
    """Settings for the HTTP client and its query cache."""

    base_url: str = Field(
        default="http://localhost:5000", description="Base URL of the task API"
    )
    timeout: float = Field(default=10.0, description="Request timeout in seconds")
    read_retries: int = Field(default=3, ge=0, description="Retries for failed reads")
    mutation_retries: int = Field(
        default=2, ge=0, description="Retries for failed mutations"
    )
    retry_backoff: float = Field(
        default=0.5, ge=0, description="Seconds added to the wait after each failure"
    )
    stale_time: float = Field(
        default=120.0, description="Seconds a cached query stays fresh"
    )
    gc_time: float = Field(
        default=600.0, description="Seconds an unused cache entry is kept"
    )

    model_config = SettingsConfigDict(env_prefix="CLIENT_")


class Settings(BaseSettings):
    """Main application settings."""

    environment: str = Field(default="development", description="Environment name")
    service_name: str = Field(default="taskboard-api", description="Service name")

    store: StoreSettings = Field(default_factory=StoreSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid_environments = ["development", "testing", "staging", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of {valid_environments}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"
