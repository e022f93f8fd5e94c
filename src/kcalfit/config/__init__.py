"""Configuration loading for kcalfit."""

from kcalfit.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
