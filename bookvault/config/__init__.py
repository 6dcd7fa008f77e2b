"""
bookvault.config - Configuration management module

Contains configuration loading, validation, and default settings.
"""

from bookvault.config.loader import (
    DEFAULT_CONFIG_FILE,
    AppConfig,
    ConfigError,
    ConfigLoader,
    load_config,
)

__all__ = [
    "AppConfig",
    "ConfigError",
    "ConfigLoader",
    "DEFAULT_CONFIG_FILE",
    "load_config",
]
