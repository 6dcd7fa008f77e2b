"""
Tests for the config module.

Tests configuration loading and validation, including YAML parsing, the
nested remote section and the typed AppConfig view.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from bookvault.config.loader import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_REMOTE_TIMEOUT,
    DEFAULT_WORKERS,
    AppConfig,
    ConfigError,
    ConfigLoader,
    load_config,
)
from bookvault.utils.paths import DEFAULT_CONFIG_DIR


class TestConfigLoaderInitialization:
    """Tests for ConfigLoader initialization."""

    def test_default_config_dir(self):
        """Test that default config dir is used when no argument provided."""
        with patch.dict(os.environ, {}, clear=True):
            loader = ConfigLoader()
            assert loader.config_dir == DEFAULT_CONFIG_DIR.resolve()

    def test_custom_config_dir_via_argument(self, tmp_path):
        """Test that custom config dir can be passed as argument."""
        loader = ConfigLoader(config_dir=tmp_path / "custom")
        assert loader.config_dir == (tmp_path / "custom").resolve()

    def test_config_dir_from_environment_variable(self, tmp_path):
        """Test that config dir can be set via environment variable."""
        env_dir = tmp_path / "env_config"
        with patch.dict(os.environ, {"BOOKVAULT_CONFIG_DIR": str(env_dir)}):
            assert ConfigLoader().config_dir == env_dir.resolve()

    def test_default_config_file_name(self):
        """Test the default configuration file name."""
        assert DEFAULT_CONFIG_FILE == "config.yaml"


class TestConfigLoading:
    """Tests for loading configuration files."""

    @pytest.fixture
    def loader(self, tmp_path):
        return ConfigLoader(config_dir=tmp_path)

    def test_load_nonexistent_file_returns_empty_dict(self, loader):
        """Test that a missing file yields an empty config."""
        assert loader.load() == {}

    def test_load_valid_yaml_file(self, loader, tmp_path):
        """Test loading a valid YAML file."""
        config_data = {"workers": 4, "remote": {"timeout": 10}}
        (tmp_path / "config.yaml").write_text(yaml.dump(config_data))

        assert loader.load() == config_data

    def test_load_empty_yaml_file_returns_empty_dict(self, loader, tmp_path):
        """Test that an empty file yields an empty config."""
        (tmp_path / "config.yaml").write_text("# only a comment\n")
        assert loader.load() == {}

    def test_load_invalid_yaml_raises_config_error(self, loader, tmp_path):
        """Test that invalid YAML raises ConfigError."""
        (tmp_path / "config.yaml").write_text("workers: [unclosed")
        with pytest.raises(ConfigError, match="Failed to parse"):
            loader.load()

    def test_load_non_dict_yaml_raises_config_error(self, loader, tmp_path):
        """Test that a YAML list is rejected."""
        (tmp_path / "config.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="YAML dictionary"):
            loader.load()

    def test_load_from_file_with_string_path(self, loader, tmp_path):
        """Test loading from an explicit string path."""
        path = tmp_path / "other.yaml"
        path.write_text("log_level: DEBUG\n")
        assert loader.load_from_file(str(path)) == {"log_level": "DEBUG"}

    def test_load_permission_error_raises_config_error(self, loader, tmp_path):
        """Test that OS errors are wrapped in ConfigError."""
        (tmp_path / "config.yaml").write_text("workers: 2\n")
        with patch("builtins.open", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigError, match="Failed to read"):
                loader.load()


class TestConfigValidation:
    """Tests for ConfigLoader.validate()."""

    @pytest.fixture
    def loader(self, tmp_path):
        return ConfigLoader(config_dir=tmp_path)

    def test_validate_full_config(self, loader):
        """Test that every known key with a valid value passes."""
        loader.validate(
            {
                "data_dir": "~/planner",
                "log_level": "warning",
                "log_dir": "/tmp/logs",
                "workers": 16,
                "history_limit": 0,
                "remote": {
                    "api_url": "https://api.github.com",
                    "timeout": 2.5,
                    "description": "Backup",
                },
            }
        )

    def test_validate_non_dict_raises_error(self, loader):
        """Test that a non-dictionary config is rejected."""
        with pytest.raises(ConfigError, match="must be a dictionary"):
            loader.validate(["workers"])

    @pytest.mark.parametrize(
        "config",
        [
            {"workers": "two"},
            {"workers": True},
            {"history_limit": 1.5},
            {"data_dir": 3},
            {"remote": "github"},
            {"remote": {"timeout": "fast"}},
        ],
    )
    def test_validate_wrong_types(self, loader, config):
        """Test that wrongly typed values are rejected."""
        with pytest.raises(ConfigError, match="Invalid type"):
            loader.validate(config)

    @pytest.mark.parametrize("workers", [0, 17, -1])
    def test_validate_workers_range(self, loader, workers):
        """Test that the worker count must be between 1 and 16."""
        with pytest.raises(ConfigError, match="workers"):
            loader.validate({"workers": workers})

    def test_validate_negative_history_limit(self, loader):
        """Test that a negative history limit is rejected."""
        with pytest.raises(ConfigError, match="history_limit"):
            loader.validate({"history_limit": -1})

    def test_validate_invalid_log_level(self, loader):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ConfigError, match="log_level"):
            loader.validate({"log_level": "LOUD"})

    @pytest.mark.parametrize("timeout", [0, -5])
    def test_validate_remote_timeout_positive(self, loader, timeout):
        """Test that the remote timeout must be positive."""
        with pytest.raises(ConfigError, match="remote.timeout"):
            loader.validate({"remote": {"timeout": timeout}})

    def test_validate_remote_api_url_scheme(self, loader):
        """Test that the API URL must be http(s)."""
        with pytest.raises(ConfigError, match="remote.api_url"):
            loader.validate({"remote": {"api_url": "ftp://example.com"}})

    def test_unknown_keys_are_ignored(self, loader):
        """Test that unknown keys only produce a warning."""
        with patch("bookvault.config.loader.logger") as mock_logger:
            loader.validate({"colour": "blue"})
        mock_logger.warning.assert_called_once()

    def test_load_and_validate(self, loader, tmp_path):
        """Test that load_and_validate rejects invalid files."""
        (tmp_path / "config.yaml").write_text("workers: 99\n")
        with pytest.raises(ConfigError):
            loader.load_and_validate()


class TestAppConfig:
    """Tests for the typed configuration view."""

    def test_defaults(self, tmp_path):
        """Test the settings used without a config file."""
        config = AppConfig.from_dict({}, tmp_path)

        assert config.data_dir == tmp_path / "data"
        assert config.workers == DEFAULT_WORKERS
        assert config.history_limit is None
        assert config.log_dir is None
        assert config.remote_options == {"timeout": DEFAULT_REMOTE_TIMEOUT}

    def test_values_from_dict(self, tmp_path):
        """Test that configured values are applied."""
        config = AppConfig.from_dict(
            {
                "data_dir": str(tmp_path / "books"),
                "workers": 4,
                "history_limit": 50,
                "log_level": "DEBUG",
                "remote": {"api_url": "http://localhost:8080", "timeout": 5},
            },
            tmp_path,
        )

        assert config.data_dir == tmp_path / "books"
        assert config.workers == 4
        assert config.history_limit == 50
        assert config.log_level == "DEBUG"
        assert config.remote_options == {
            "timeout": 5.0,
            "api_url": "http://localhost:8080",
        }

    def test_zero_history_limit_is_unbounded(self, tmp_path):
        """Test that history_limit 0 means no limit."""
        assert AppConfig.from_dict({"history_limit": 0}, tmp_path).history_limit is None

    def test_load_config(self, tmp_path):
        """Test loading a typed config from a directory."""
        (tmp_path / "config.yaml").write_text("workers: 3\n")
        config = load_config(tmp_path)
        assert config.workers == 3
        assert config.data_dir == Path(tmp_path).resolve() / "data"
