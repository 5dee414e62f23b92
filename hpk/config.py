"""Launcher configuration loading and strict validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from hpk.exceptions import ConfigValidationError, ValidationError
from hpk.process.environment import EnvironmentOverlay
from hpk.process.launcher import CommandLauncher


LOG_LEVELS = ("debug", "info", "warn", "error")


@dataclass
class LauncherConfig:
    """Validated launcher configuration."""
    overlay: EnvironmentOverlay = field(default_factory=EnvironmentOverlay)
    log_level: str = "info"
    source: Optional[Path] = None

    def with_environment(self, entries: List[str]) -> "LauncherConfig":
        """Return a copy with extra overlay entries appended (they win on conflicts)."""
        return LauncherConfig(
            overlay=self.overlay.extend(entries),
            log_level=self.log_level,
            source=self.source,
        )

    def create_launcher(self) -> CommandLauncher:
        return CommandLauncher(overlay=self.overlay)


class ConfigLoader:
    """Loads and validates launcher configuration YAML."""

    SUPPORTED_VERSIONS = {"1"}
    KNOWN_KEYS = {"version", "environment", "log_level"}

    def __init__(self):
        self.errors: List[ValidationError] = []

    def load(self, config_path: Path) -> LauncherConfig:
        """Load and validate a configuration file."""
        self.errors = []
        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            self._add_error(f"Failed to load configuration: {e}")
            self._raise_validation_errors()

        if data is None:
            data = {}
        if not isinstance(data, dict):
            self._add_error("Configuration must be a YAML object/dictionary")
            self._raise_validation_errors()

        config = self.validate(data)
        config.source = Path(config_path)
        return config

    def validate(self, data: Dict[str, Any]) -> LauncherConfig:
        """Validate an already parsed configuration mapping."""
        self.errors = []

        for key in data:
            if key not in self.KNOWN_KEYS:
                self._add_error(f"Unknown field '{key}'", str(key))

        version = data.get('version', '1')
        if str(version) not in self.SUPPORTED_VERSIONS:
            self._add_error(
                f"Unsupported version '{version}'. Supported: {', '.join(sorted(self.SUPPORTED_VERSIONS))}",
                "version",
            )

        entries = self._validate_environment(data.get('environment'))

        log_level = data.get('log_level', 'info')
        if not isinstance(log_level, str) or log_level.lower() not in LOG_LEVELS:
            self._add_error(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}", "log_level")
            log_level = 'info'

        if self.errors:
            self._raise_validation_errors()

        return LauncherConfig(overlay=EnvironmentOverlay(entries), log_level=log_level.lower())

    def _validate_environment(self, environment: Any) -> List[str]:
        if environment is None:
            return []

        entries: List[str] = []
        if isinstance(environment, dict):
            for key, value in environment.items():
                if not isinstance(key, str) or not key or '=' in key:
                    self._add_error(f"Invalid environment variable name {key!r}", f"environment.{key}")
                    continue
                if isinstance(value, (dict, list)):
                    self._add_error(f"Environment value for '{key}' must be a scalar", f"environment.{key}")
                    continue
                # Non-string scalars are passed through str()
                entries.append(f"{key}={'' if value is None else value}")
        elif isinstance(environment, list):
            for i, entry in enumerate(environment):
                if not isinstance(entry, str) or '=' not in entry or entry.startswith('='):
                    self._add_error(f"Invalid environment entry {entry!r}. Expected KEY=VALUE", f"environment[{i}]")
                    continue
                entries.append(entry)
        else:
            self._add_error("environment must be a list of KEY=VALUE entries or a mapping", "environment")

        return entries

    def _add_error(self, message: str, path: str = "") -> None:
        self.errors.append(ValidationError(message=message, path=path))

    def _raise_validation_errors(self) -> None:
        raise ConfigValidationError(self.errors)


def load_config(config_path: Optional[Path] = None) -> LauncherConfig:
    """Load configuration from a file, or return defaults when no path is given."""
    if config_path is None:
        return LauncherConfig()
    return ConfigLoader().load(Path(config_path))
