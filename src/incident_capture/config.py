"""
Configuration management for Incident Capture.

Supports configuration via YAML files, environment variables, and programmatic access.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from incident_capture.atomic import atomic_write

DEFAULT_CONFIG_PATHS = [
    Path("/etc/incident-capture/config.yaml"),
    Path.home() / ".config" / "incident-capture" / "config.yaml",
    Path("incap-config.yaml"),
]

DEFAULT_OUTPUT_DIR = str(Path.home() / ".local" / "share" / "incident-capture")


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping, got {type(data).__name__}: {path}")
    return data


@dataclass
class Config:
    """
    Configuration container for Incident Capture.

    Priority (highest to lowest):
    1. Programmatic values passed to __init__
    2. Environment variables (prefixed with INCAP_)
    3. Config file values
    4. Default values

    A Config must not be changed while a capture is running.
    """

    # Capture settings
    dry_run: bool = False
    command_timeout: int = 30
    platform: str | None = None

    # Output settings
    output_dir: str = DEFAULT_OUTPUT_DIR

    # Redaction
    extra_redaction_patterns: list[str] = field(default_factory=list)

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def incidents_dir(self) -> Path:
        return Path(self.output_dir).expanduser() / "incidents"

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        return cls.from_dict(_read_yaml(path))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create config from a dictionary."""
        # Sections are only for readability, flatten them
        flat = {}
        for key, value in data.items():
            if isinstance(value, dict):
                for subkey, subvalue in value.items():
                    flat[subkey] = subvalue
            else:
                flat[key] = value

        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in flat.items() if k in known_fields}

        return cls(**filtered)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> Config:
        """
        Load configuration with full resolution order.

        Args:
            config_path: Explicit path to config file. If None, searches
                        default locations.

        Returns:
            Fully resolved Config instance.
        """
        base_config: dict[str, Any] = {}

        if config_path:
            path = Path(config_path)
            if path.exists():
                base_config = _read_yaml(path)
        else:
            for path in DEFAULT_CONFIG_PATHS:
                if path.exists():
                    base_config = _read_yaml(path)
                    break

        config = cls.from_dict(base_config) if base_config else cls()
        config._apply_env_overrides()

        return config

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        env_mappings = {
            "INCAP_DRY_RUN": "dry_run",
            "INCAP_COMMAND_TIMEOUT": "command_timeout",
            "INCAP_PLATFORM": "platform",
            "INCAP_OUTPUT_DIR": "output_dir",
            "INCAP_LOG_LEVEL": "log_level",
            "INCAP_LOG_FILE": "log_file",
        }

        for env_var, attr in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                current = getattr(self, attr)
                if isinstance(current, bool):
                    setattr(self, attr, value.lower() in ("true", "1", "yes"))
                elif isinstance(current, int):
                    try:
                        setattr(self, attr, int(value))
                    except ValueError:
                        raise ValueError(f"{env_var} must be an integer, got {value!r}") from None
                else:
                    setattr(self, attr, value)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "capture": {
                "dry_run": self.dry_run,
                "command_timeout": self.command_timeout,
                "platform": self.platform,
            },
            "output": {
                "output_dir": self.output_dir,
            },
            "redaction": {
                "extra_redaction_patterns": self.extra_redaction_patterns,
            },
            "logging": {
                "log_level": self.log_level,
                "log_file": self.log_file,
            },
        }

    def save(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        atomic_write(path, yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False))
