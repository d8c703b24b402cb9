"""Configuration loading and validation module."""

from cosmos_probe.config.errors import (
    ConfigError,
    ConfigValidationError,
    MissingSettingError,
)
from cosmos_probe.config.loader import ENV_MAPPING, load_settings, settings_from_env
from cosmos_probe.config.models import LoggingSettings, ProbeSettings

__all__ = [
    "ENV_MAPPING",
    "ConfigError",
    "ConfigValidationError",
    "LoggingSettings",
    "MissingSettingError",
    "ProbeSettings",
    "load_settings",
    "settings_from_env",
]
