"""
Configuration manager for Taskboard.

Holds the single Settings instance shared by the API, the client and the CLI.
"""

import os

from .settings import Settings


class ConfigManager:
    """Manages configuration loading and access."""

    def __init__(self, environment: str | None = None):
        """Initialize the configuration manager.

        Args:
            environment: Environment name (development, testing, production).
                        If None, the ENVIRONMENT env var or the default is used.
        """
        self.environment = environment or os.getenv("ENVIRONMENT")
        self._settings: Settings | None = None

    def load_config(self) -> Settings:
        """Load configuration for the current environment.

        Raises:
            pydantic.ValidationError: If configuration validation fails
        """
        if self._settings is not None:
            return self._settings

        if self.environment:
            self._settings = Settings(environment=self.environment)
        else:
            self._settings = Settings()
        return self._settings

    def reload_config(self) -> Settings:
        """Drop the cached settings and load them again."""
        self._settings = None
        return self.load_config()


_config_manager: ConfigManager | None = None


def get_config_manager(environment: str | None = None) -> ConfigManager:
    """Get the global configuration manager."""
    global _config_manager
    if _config_manager is None or (
        environment is not None and environment != _config_manager.environment
    ):
        _config_manager = ConfigManager(environment)
    return _config_manager


def get_settings(environment: str | None = None) -> Settings:
    """Get the current settings."""
    return get_config_manager(environment).load_config()


def reload_settings(environment: str | None = None) -> Settings:
    """Reload settings from the environment."""
    return get_config_manager(environment).reload_config()
