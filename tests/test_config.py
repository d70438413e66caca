"""Tests for configuration manager."""

import tempfile
from pathlib import Path

import pytest  # type: ignore[import-not-found]
import yaml  # type: ignore[import-untyped]

from tji.core.config import ConfigManager
from tji.core.exceptions import ConfigurationError


@pytest.fixture
def temp_config_path():
    """Create a temporary config file path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "config.yml"


class TestConfigManager:
    """Test ConfigManager."""

    def test_initialization_creates_default_config(self, temp_config_path: Path) -> None:
        """Test that initialization creates default configuration."""
        assert not temp_config_path.exists()

        config = ConfigManager(temp_config_path)

        assert temp_config_path.exists()
        assert config.get("version") == "1.0"
        assert config.get("toggl.session_url") == "https://www.toggl.com/api/v8/sessions"
        assert config.get("toggl.entries_url") == "https://toggl.com/api/v8/time_entries"
        assert config.get("toggl.timeout") == 30
        assert config.get("toggl.api_token") is None
        assert config.get("logging.level") == "INFO"

    def test_merge_with_defaults(self, temp_config_path: Path) -> None:
        """Test that partial config is merged with defaults."""
        config_data = {
            "version": "1.0",
            "toggl": {"api_token": "abc123"},
        }

        with open(temp_config_path, "w") as f:
            yaml.dump(config_data, f)

        config = ConfigManager(temp_config_path)

        assert config.get("toggl.api_token") == "abc123"
        assert config.get("toggl.timeout") == 30
        assert config.get("logging.level") == "INFO"

    def test_get_nonexistent_key_returns_default(self, temp_config_path: Path) -> None:
        """Test getting nonexistent key returns default."""
        config = ConfigManager(temp_config_path)

        assert config.get("nonexistent.key") is None
        assert config.get("nonexistent.key", "default") == "default"
        assert config.get("toggl.api_token", "fallback") == "fallback"

    def test_set_value_persists(self, temp_config_path: Path) -> None:
        """Test setting a value is saved to disk."""
        config = ConfigManager(temp_config_path)

        config.set("toggl.timeout", 60)

        assert config.get("toggl.timeout") == 60
        assert ConfigManager(temp_config_path).get("toggl.timeout") == 60

    def test_invalid_value_raises_and_is_not_kept(self, temp_config_path: Path) -> None:
        """Test that an out-of-range value is rejected and rolled back."""
        config = ConfigManager(temp_config_path)

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            config.set("toggl.timeout", 500)

        assert config.get("toggl.timeout") == 30
        assert ConfigManager(temp_config_path).get("toggl.timeout") == 30

    def test_configuration_error_is_value_error(self, temp_config_path: Path) -> None:
        """Test that callers catching ValueError still see config errors."""
        config = ConfigManager(temp_config_path)

        with pytest.raises(ValueError):
            config.set("logging.level", "TRACE")

    def test_log_level_validation(self, temp_config_path: Path) -> None:
        """Test log level enum validation."""
        config = ConfigManager(temp_config_path)

        for level in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            config.set("logging.level", level)
            assert config.get("logging.level") == level

    def test_reset_to_defaults(self, temp_config_path: Path) -> None:
        """Test resetting configuration to defaults."""
        config = ConfigManager(temp_config_path)
        config.set("toggl.api_token", "abc123")

        config.reset()

        assert config.get("toggl.api_token") is None

    def test_to_dict_returns_copy(self, temp_config_path: Path) -> None:
        """Test converting config to dictionary."""
        config = ConfigManager(temp_config_path)

        config_dict = config.to_dict()
        config_dict["toggl"]["timeout"] = 99

        assert config.get("toggl.timeout") == 30

    def test_get_all_keys(self, temp_config_path: Path) -> None:
        """Test getting all configuration keys."""
        config = ConfigManager(temp_config_path)

        keys = config.get_all_keys()

        assert keys == [
            "version",
            "toggl.api_token",
            "toggl.session_url",
            "toggl.entries_url",
            "toggl.timeout",
            "logging.level",
            "logging.file",
        ]

    def test_corrupted_config_creates_backup(self, temp_config_path: Path) -> None:
        """Test that invalid config is backed up and defaults used."""
        with open(temp_config_path, "w") as f:
            yaml.dump({"version": "1.0", "toggl": {"timeout": 0}}, f)

        backup_path = temp_config_path.with_suffix(".yml.backup")

        with pytest.raises(ConfigurationError, match="Config validation failed"):
            ConfigManager(temp_config_path)

        assert backup_path.exists()
        with open(temp_config_path) as f:
            new_config = yaml.safe_load(f)
        assert new_config["toggl"]["timeout"] == 30

    def test_empty_file_uses_defaults(self, temp_config_path: Path) -> None:
        """Test an empty YAML file loads as the defaults."""
        temp_config_path.write_text("")

        config = ConfigManager(temp_config_path)

        assert config.get("toggl.timeout") == 30
        assert config.get("logging.level") == "INFO"

    def test_set_creates_missing_section(self, temp_config_path: Path) -> None:
        """Test setting a key under a section that does not exist yet."""
        config = ConfigManager(temp_config_path)

        config.set("display.color", False)

        assert config.get_all_keys()[-1] == "display.color"
        with open(temp_config_path) as f:
            assert yaml.safe_load(f)["display"] == {"color": False}
