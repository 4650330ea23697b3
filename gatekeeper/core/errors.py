from __future__ import annotations


class ConfigurationError(Exception):
    """Fatal configuration problem; the process cannot start with these settings."""


class ConfigLoadError(ConfigurationError):
    """The structured configuration file could not be read or decoded."""
