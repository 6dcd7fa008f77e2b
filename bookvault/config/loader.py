"""
Configuration loader module for bookvault.

Provides YAML-based configuration file loading with support for:
- Loading configuration from the config directory or a custom path
- Graceful handling of missing configuration files
- Validation of known keys, including the nested remote section
- A typed view of the settings with defaults applied

Example config.yaml:

    data_dir: ~/.bookvault/data
    log_level: INFO
    workers: 2
    history_limit: 100
    remote:
      api_url: https://api.github.com
      timeout: 30
      description: Student planner backup
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from bookvault.utils.paths import resolve_config_dir

# Default configuration file name
DEFAULT_CONFIG_FILE = "config.yaml"

DEFAULT_WORKERS = 2
MAX_WORKERS = 16

DEFAULT_REMOTE_TIMEOUT = 30.0

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def _type_name(expected: type[Any] | tuple[type[Any], ...]) -> str:
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


def _check_types(
    config: dict[str, Any],
    valid_keys: dict[str, type[Any] | tuple[type[Any], ...]],
    prefix: str = "",
) -> None:
    for key, value in config.items():
        if key not in valid_keys:
            logger.warning(f"Ignoring unknown configuration key '{prefix}{key}'")
            continue
        expected = valid_keys[key]
        # bool is an int subclass; reject it for numeric settings
        if isinstance(value, bool) and bool not in (
            expected if isinstance(expected, tuple) else (expected,)
        ):
            raise ConfigError(
                f"Invalid type for '{prefix}{key}': expected "
                f"{_type_name(expected)}, got bool"
            )
        if not isinstance(value, expected):
            raise ConfigError(
                f"Invalid type for '{prefix}{key}': expected "
                f"{_type_name(expected)}, got {type(value).__name__}"
            )


class ConfigLoader:
    """
    YAML configuration file loader.

    Attributes:
        config_dir: Directory containing the configuration file
        config_file: Name of the configuration file

    Usage:
        loader = ConfigLoader()
        config = loader.load_and_validate()

        # With custom path
        loader = ConfigLoader(config_dir=Path("/custom/path"))
        config = loader.load()

        # Load from specific file
        config = loader.load_from_file("/path/to/config.yaml")
    """

    def __init__(
        self, config_dir: Path | None = None, config_file: str = DEFAULT_CONFIG_FILE
    ):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing the configuration file.
                       Defaults to ~/.bookvault/ or $BOOKVAULT_CONFIG_DIR
            config_file: Name of the configuration file (default: config.yaml)
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.config_file = config_file

    def _get_config_path(self) -> Path:
        return self.config_dir / self.config_file

    def load(self) -> dict[str, Any]:
        """
        Load configuration from the default configuration file.

        Returns:
            Dictionary containing configuration values, or empty dict if file
            doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        return self.load_from_file(self._get_config_path())

    def load_from_file(self, path: Path | str) -> dict[str, Any]:
        """
        Load configuration from a specific file.

        Returns an empty dict if the file doesn't exist, allowing
        graceful operation with CLI defaults.

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        path = Path(path)

        if not path.exists():
            logger.debug(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}") from e

        if config is None:
            logger.debug(f"Configuration file is empty: {path}")
            return {}

        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(config).__name__}"
            )

        logger.debug(f"Loaded configuration from {path}")
        return config

    def validate(self, config: dict[str, Any]) -> None:
        """
        Validate configuration structure and values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ConfigError: If configuration is invalid
        """
        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration must be a dictionary, got {type(config).__name__}"
            )

        _check_types(
            config,
            {
                "data_dir": str,
                "log_level": str,
                "log_dir": str,
                "workers": int,
                "history_limit": int,
                "remote": dict,
            },
        )

        if "log_level" in config and config["log_level"].upper() not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"Invalid log_level '{config['log_level']}'. "
                f"Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )

        if "workers" in config and not 1 <= config["workers"] <= MAX_WORKERS:
            raise ConfigError(
                f"workers must be between 1 and {MAX_WORKERS}, got {config['workers']}"
            )

        if "history_limit" in config and config["history_limit"] < 0:
            raise ConfigError(
                f"history_limit must be >= 0, got {config['history_limit']}"
            )

        remote = config.get("remote")
        if remote:
            _check_types(
                remote,
                {"api_url": str, "timeout": (int, float), "description": str},
                prefix="remote.",
            )
            if "timeout" in remote and remote["timeout"] <= 0:
                raise ConfigError(f"remote.timeout must be > 0, got {remote['timeout']}")
            if "api_url" in remote and not remote["api_url"].startswith(
                ("http://", "https://")
            ):
                raise ConfigError(
                    f"remote.api_url must be an http(s) URL, got {remote['api_url']!r}"
                )

    def load_and_validate(self) -> dict[str, Any]:
        """
        Load configuration and validate it.

        Raises:
            ConfigError: If configuration cannot be loaded or is invalid
        """
        config = self.load()
        if config:  # Only validate if config is not empty
            self.validate(config)
        return config


@dataclass
class AppConfig:
    """
    Validated settings with defaults applied.

    Attributes:
        data_dir: Directory for data files and default backups
        log_level: Console log level name, or None for the environment default
        log_dir: Directory for log files, or None for the default
        workers: Size of the remote backup worker pool
        history_limit: Snapshots kept per document, or None for unbounded
        api_url: Remote API base URL, or None for the service default
        remote_timeout: Per-request timeout for remote calls, in seconds
        remote_description: Description attached to remote backups
    """

    data_dir: Path
    log_level: str | None = None
    log_dir: Path | None = None
    workers: int = DEFAULT_WORKERS
    history_limit: int | None = None
    api_url: str | None = None
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT
    remote_description: str | None = None

    @classmethod
    def from_dict(cls, config: dict[str, Any], config_dir: Path) -> AppConfig:
        """Build settings from a validated config dict."""
        remote = config.get("remote") or {}
        data_dir = config.get("data_dir")
        log_dir = config.get("log_dir")
        return cls(
            data_dir=Path(data_dir).expanduser() if data_dir else config_dir / "data",
            log_level=config.get("log_level"),
            log_dir=Path(log_dir).expanduser() if log_dir else None,
            workers=config.get("workers", DEFAULT_WORKERS),
            history_limit=config.get("history_limit") or None,
            api_url=remote.get("api_url"),
            remote_timeout=float(remote.get("timeout", DEFAULT_REMOTE_TIMEOUT)),
            remote_description=remote.get("description"),
        )

    @property
    def remote_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"timeout": self.remote_timeout}
        if self.api_url:
            options["api_url"] = self.api_url
        return options


def load_config(config_dir: Path | None = None) -> AppConfig:
    """
    Load, validate and type the configuration in config_dir.

    Raises:
        ConfigError: If configuration cannot be loaded or is invalid
    """
    loader = ConfigLoader(config_dir)
    return AppConfig.from_dict(loader.load_and_validate(), loader.config_dir)
