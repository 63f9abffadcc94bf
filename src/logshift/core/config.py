"""Configuration management for LogShift."""

import copy
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]


def default_config_path() -> Path:
    """Get the default config file location (~/.logshift/config.yml)."""
    return Path.home() / ".logshift" / "config.yml"


class ConfigManager:
    """Manage application configuration."""

    DEFAULT_CONFIG = {
        "version": "1.0",
        "general": {
            "data_dir": "~/.logshift/data",
            "database": "logshift.db",
            "date_format": "%Y-%m-%d",
            "week_start": "monday",
        },
        "export": {
            "directory": "~/Documents",
            "filename": "workentries.csv",
        },
        "display": {
            "hours_precision": 2,
        },
        "advanced": {
            "log_level": "WARNING",
            "log_file": "logshift.log",
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "general": {
                "type": "object",
                "properties": {
                    "data_dir": {"type": "string"},
                    "database": {"type": "string", "minLength": 1},
                    "date_format": {"type": "string"},
                    "week_start": {"type": "string", "enum": ["monday", "sunday"]},
                },
            },
            "export": {
                "type": "object",
                "properties": {
                    "directory": {"type": "string"},
                    "filename": {"type": "string", "minLength": 1},
                },
            },
            "display": {
                "type": "object",
                "properties": {
                    "hours_precision": {"type": "integer", "minimum": 0, "maximum": 4},
                },
            },
            "advanced": {
                "type": "object",
                "properties": {
                    "log_level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                    "log_file": {"type": "string", "minLength": 1},
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. Defaults to ~/.logshift/config.yml
        """
        if config_path is None:
            config_path = default_config_path()
        self.config_path = Path(config_path)
        self._config: dict[str, Any] = {}
        self._load_or_create()

    def _load_or_create(self) -> None:
        """Load existing config or create default."""
        if self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    loaded_config = yaml.safe_load(f) or {}
                if not isinstance(loaded_config, dict):
                    raise ValueError("Invalid configuration: top level must be a mapping")
                # Merge with defaults to ensure all keys exist
                self._config = self._merge_with_defaults(loaded_config)
                self.validate()
            except (yaml.YAMLError, ValueError) as e:
                # Keep the broken file for the user and fall back to defaults
                backup_path = self.config_path.with_suffix(".yml.backup")
                self.config_path.replace(backup_path)
                self._config = copy.deepcopy(self.DEFAULT_CONFIG)
                self.save()
                raise ValueError(
                    f"Config validation failed, backed up to {backup_path}. "
                    f"Using defaults. Error: {e}"
                ) from e
        else:
            self._config = copy.deepcopy(self.DEFAULT_CONFIG)
            self.save()

    def _merge_with_defaults(self, config: dict[str, Any]) -> dict[str, Any]:
        """Merge config with defaults to ensure all keys exist."""
        result = copy.deepcopy(self.DEFAULT_CONFIG)
        self._deep_merge(result, config)
        return result

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> None:
        """Deep merge override into base dictionary (in-place)."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., 'export.filename')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get('general.week_start')
            'monday'
            >>> config.get('nonexistent.key', 'default')
            'default'
        """
        keys = key.split(".")
        value: Any = self._config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation.

        The previous value is restored if the new one fails validation.

        Args:
            key: Configuration key in dot notation
            value: Value to set

        Raises:
            ValueError: If configuration is invalid after setting
        """
        previous = copy.deepcopy(self._config)
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value
        try:
            self.validate()
        except ValueError:
            self._config = previous
            raise
        self.save()

    def validate(self) -> bool:
        """Validate configuration against schema.

        Returns:
            True if valid

        Raises:
            ValueError: If configuration is invalid
        """
        try:
            validate(instance=self._config, schema=self.CONFIG_SCHEMA)
            return True
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e.message}")

    def save(self) -> None:
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self._config, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

    def reset(self) -> None:
        """Reset to default configuration."""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        """Get full configuration as dictionary."""
        return copy.deepcopy(self._config)

    def get_all_keys(self, prefix: str = "") -> list[str]:
        """Get all configuration keys in dot notation.

        Example:
            >>> config.get_all_keys()
            ['version', 'general.data_dir', 'general.database', ...]
        """
        keys = []
        config = self._config if not prefix else self.get(prefix, {})

        if isinstance(config, dict):
            for key, value in config.items():
                full_key = f"{prefix}.{key}" if prefix else key
                if isinstance(value, dict):
                    keys.extend(self.get_all_keys(full_key))
                else:
                    keys.append(full_key)
        return keys

    # Resolved paths

    @property
    def data_dir(self) -> Path:
        """Data directory with ~ expanded."""
        return Path(self.get("general.data_dir")).expanduser()

    @property
    def database_path(self) -> Path:
        """Full path of the SQLite database file."""
        return self.data_dir / self.get("general.database")

    @property
    def export_path(self) -> Path:
        """Full path of the CSV export file."""
        return Path(self.get("export.directory")).expanduser() / self.get("export.filename")

    @property
    def log_path(self) -> Path:
        """Full path of the log file (relative names live in the data dir)."""
        log_file = Path(self.get("advanced.log_file")).expanduser()
        if log_file.is_absolute():
            return log_file
        return self.data_dir / log_file
