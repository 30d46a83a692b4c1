"""Runtime configuration."""

from mission_control.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
