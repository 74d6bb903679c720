"""Packaged YAML configuration files and the helper that reads them.

`ConfigManager` loads the default files from this folder and merges them
with user overrides.
"""

from .manager import ConfigManager

__all__ = [
    "ConfigManager",
]
