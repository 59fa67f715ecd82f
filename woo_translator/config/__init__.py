"""Configuration loading."""

from .loader import AppConfig, ConfigError, MissingConfiguration, load_config

__all__ = [
    "AppConfig",
    "ConfigError",
    "MissingConfiguration",
    "load_config",
]
