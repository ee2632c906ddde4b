"""Configuration error definitions.

All of these are startup errors: they abort a run before any I/O happens.
"""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class PluginLoadError(ConfigurationError):
    """Raised when a parser or post-processor plugin cannot be loaded."""
