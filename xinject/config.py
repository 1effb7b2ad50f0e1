"""
Config system - Layered runtime settings with validation.

Merge order (later overrides earlier):
defaults < config files (JSON/YAML) < .env file < environment variables < overrides
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, fields
from glob import glob
from pathlib import Path
import json
import logging
import os

from dotenv import dotenv_values

from .di.scopes import InjectionScope, to_scope

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings.

    Attributes:
        default_scope: Scope of modules which do not set one
        log_level: Level of the ``xinject`` logger
        diagnostics: Log container events through a ConsoleDiagnosticListener
    """
    default_scope: InjectionScope = InjectionScope.SINGLETON
    log_level: str = "WARNING"
    diagnostics: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """
        Build validated settings from raw values.

        Raises:
            ConfigError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

        values = dict(data)

        if "default_scope" in values:
            try:
                values["default_scope"] = to_scope(values["default_scope"])
            except ValueError as e:
                raise ConfigError(f"Invalid default_scope: {values['default_scope']!r}") from e

        if "log_level" in values:
            level = str(values["log_level"]).upper()
            if level not in _LOG_LEVELS:
                raise ConfigError(f"Invalid log_level: {values['log_level']!r}")
            values["log_level"] = level

        if "diagnostics" in values and not isinstance(values["diagnostics"], bool):
            raise ConfigError(f"Invalid diagnostics flag: {values['diagnostics']!r}")

        return cls(**values)


class ConfigLoader:
    """Loads and merges runtime settings from multiple sources."""

    def __init__(self, env_prefix: str = "XI_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = "XI_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Settings:
        """
        Load settings from every source.

        Args:
            paths: Config file paths (glob patterns supported, .json/.yaml/.yml)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Validated Settings
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader.config_data.update(overrides)

        return Settings.from_dict(loader.config_data)

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        for path_str in sorted(glob(pattern)):
            path = Path(path_str)

            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                raise ConfigError(f"Unsupported config file: {path}")

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        with open(path) as f:
            data = json.load(f)
        self._merge(data, path)

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        import yaml

        with open(path) as f:
            data = yaml.safe_load(f)
        if data:
            self._merge(data, path)

    def _merge(self, data: Any, source: Path):
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {source} must contain a mapping")
        # Settings may be nested under an `xinject` section
        section = data.get("xinject", data)
        self.config_data.update(section)

    def _load_env_file(self, path: str):
        """Load config from .env file."""
        if not Path(path).exists():
            return

        for key, value in dotenv_values(path).items():
            if key.startswith(self.env_prefix) and value is not None:
                self._set(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set(key, value)

    def _set(self, key: str, value: str):
        """XI_DEFAULT_SCOPE=transient -> {"default_scope": "transient"}"""
        self.config_data[key[len(self.env_prefix):].lower()] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "1"):
            return True
        if value.lower() in ("false", "no", "0"):
            return False
        return value


def configure_logging(settings: Settings) -> logging.Logger:
    """Apply ``settings.log_level`` to the package logger."""
    logger = logging.getLogger("xinject")
    logger.setLevel(settings.log_level)
    return logger
