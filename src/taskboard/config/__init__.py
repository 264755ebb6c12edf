"""
Configuration management for Taskboard.

This module provides a centralized configuration system that:
- Loads settings from environment variables and an optional .env file
- Provides type-safe configuration access
- Validates configuration values
"""

from .config_manager import ConfigManager, get_settings, reload_settings
from .settings import (
    APISettings,
    ClientSettings,
    LoggingSettings,
    Settings,
    StoreSettings,
)

__all__ = [
    "APISettings",
    "ClientSettings",
    "ConfigManager",
    "LoggingSettings",
    "Settings",
    "StoreSettings",
    "get_settings",
    "reload_settings",
]
