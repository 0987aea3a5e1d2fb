"""
Configuration module for nestmap.

Uses pydantic-settings for environment variable loading and layered YAML.
"""

from nestmap.config.settings import Settings
from nestmap.config.sources import ConfigFileError

__all__ = ["ConfigFileError", "Settings"]
