"""
Configuration management for the development environment manager.

This module provides centralized configuration management using Pydantic
for type safety, validation, and environment-based settings.
"""

from .settings import AppSettings, get_settings, reload_settings
from .store import ConfigurationError, read_hub_repo, save_hub_repo

__all__ = [
    "AppSettings",
    "ConfigurationError",
    "get_settings",
    "read_hub_repo",
    "reload_settings",
    "save_hub_repo",
]
