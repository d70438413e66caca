"""Configuration management for TJI."""

import copy
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

from tji.core.exceptions import ConfigurationError


class ConfigManager:
    """Manage application configuration."""

    DEFAULT_CONFIG = {
        "version": "1.0",
        "toggl": {
            "api_token": None,
            "session_url": "https://www.toggl.com/api/v8/sessions",
            "entries_url": "https://toggl.com/api/v8/time_entries",
            "timeout": 30,
        },
        "logging": {
            "level": "INFO",
            "file": None,
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "toggl": {
                "type": "object",
                "properties": {
                    "api_token": {"type": ["string", "null"]},
                    "session_url": {"type": "string", "minLength": 1},
                    "entries_url": {"type": "string", "minLength": 1},
                    "timeout": {"type": "integer", "minimum": 1, "maximum": 300},
                },
            },
            "logging": {
                "type": "object",
                "properties": {
                    "level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                    "file": {"type": ["string", "null"]},
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Load the configuration, writing defaults if the file is missing.

        Args:
            config_path: Path to config file. Defaults to ~/.tji/config.yml

        Raises:
            ConfigurationError: If the file on disk fails validation. It is
                moved to ``config.yml.backup`` and replaced by defaults first.
        """
        self.config_path = config_path or Path.home() / ".tji" / "config.yml"
        self._config: dict[str, Any] = copy.deepcopy(self.DEFAULT_CONFIG)

        if not self.config_path.exists():
            self.save()
            return

        with open(self.config_path, encoding="utf-8") as f:
            _merge_into(self._config, yaml.safe_load(f) or {})

        try:
            self.validate()
        except ConfigurationError as e:
            backup_path = self.config_path.with_suffix(".yml.backup")
            self.config_path.rename(backup_path)
            self.reset()
            raise ConfigurationError(
                f"Config validation failed, backed up to {backup_path}. Using defaults. Error: {e}"
            )

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dot-notation key such as ``toggl.timeout``.

        Missing keys and null values both give ``default``.
        """
        value: Any = self._config
        for part in key.split("."):
            value = value.get(part) if isinstance(value, dict) else None
            if value is None:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a dot-notation key and save.

        Raises:
            ConfigurationError: If the new value fails validation; the
                previous configuration is kept
        """
        updated = copy.deepcopy(self._config)
        *parents, leaf = key.split(".")
        section = updated
        for part in parents:
            if not isinstance(section.get(part), dict):
                section[part] = {}
            section = section[part]
        section[leaf] = value

        _check(updated)
        self._config = updated
        self.save()

    def validate(self) -> bool:
        """Check the loaded configuration against CONFIG_SCHEMA.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        _check(self._config)
        return True

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._config, f, sort_keys=False, allow_unicode=True)

    def reset(self) -> None:
        """Reset to default configuration."""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)

    def get_all_keys(self) -> list[str]:
        """All leaf keys in dot notation, in file order."""
        return list(_leaf_keys(self._config))


def _check(config: dict[str, Any]) -> None:
    try:
        validate(instance=config, schema=ConfigManager.CONFIG_SCHEMA)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e.message}")


def _merge_into(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Recursively overlay ``override`` onto ``base`` in place."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge_into(base[key], value)
        else:
            base[key] = value


def _leaf_keys(config: dict[str, Any], prefix: str = "") -> Iterator[str]:
    for key, value in config.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _leaf_keys(value, f"{full_key}.")
        else:
            yield full_key
