"""Configuration module for AI Tool Intelligence."""

from tool_intel.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
