"""Configuration files (YAML) and the loader that merges them with user overrides."""

from .manager import ConfigManager

__all__ = [
    "ConfigManager",
]
