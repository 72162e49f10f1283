"""Infrastructure helpers."""

from .settings import AppSettings, ConfigurationError, get_settings, load_settings

__all__ = ["AppSettings", "ConfigurationError", "get_settings", "load_settings"]
