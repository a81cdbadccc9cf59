"""Configuration package."""

from .settings import Environment, LogLevel, Settings, get_settings, settings

__all__ = ["Settings", "Environment", "LogLevel", "get_settings", "settings"]
