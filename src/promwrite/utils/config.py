"""Configuration loading and validation."""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from promwrite.errors import ConfigError

DEFAULT_TIMEOUT_SECONDS = 60.0


def _string_map(section: str, value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{section} must be a mapping, got {type(value).__name__}")
    # YAML hands back ints and bools for unquoted scalars
    return {str(k): str(v) for k, v in value.items()}


def _timeout_seconds(value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"remote_write.timeout_seconds must be a number, got {value!r}")
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"remote_write.timeout_seconds must be a number, got {value!r}"
        ) from None
    if seconds <= 0 or math.isnan(seconds):
        raise ConfigError("remote_write.timeout_seconds must be a positive number of seconds")
    return seconds


@dataclass
class RemoteWriteConfig:
    """Remote write endpoint configuration."""

    url: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    headers: dict[str, str] = field(default_factory=dict)  # applied last, override defaults
    labels: dict[str, str] = field(default_factory=dict)  # added to every series

    def __post_init__(self) -> None:
        self.url = "" if self.url is None else str(self.url)
        self.headers = _string_map("remote_write.headers", self.headers)
        self.labels = _string_map("remote_write.labels", self.labels)
        self.timeout_seconds = _timeout_seconds(self.timeout_seconds)


@dataclass
class AppConfig:
    """Application configuration."""

    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        self.log_level = str(self.log_level)


@dataclass
class Config:
    """Root configuration object."""

    app: AppConfig = field(default_factory=AppConfig)
    remote_write: RemoteWriteConfig = field(default_factory=RemoteWriteConfig)


def _dict_to_dataclass(cls: type, data: dict[str, Any], section: str) -> Any:
    """Recursively convert a dictionary to a dataclass instance."""
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise ConfigError(f"{section} must be a mapping, got {type(data).__name__}")

    field_types = {f.name: f.type for f in cls.__dataclass_fields__.values()}
    kwargs = {}

    for key, value in data.items():
        if key not in field_types:
            continue

        field_type = field_types[key]

        # Handle nested dataclasses
        if hasattr(field_type, "__dataclass_fields__"):
            kwargs[key] = _dict_to_dataclass(field_type, value, f"{section}.{key}")
        else:
            kwargs[key] = value

    return cls(**kwargs)


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to config file. If None, searches default locations.

    Returns:
        Config object with all settings. Defaults if no file is found.

    Raises:
        FileNotFoundError: If config_path is given but does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ConfigError: If a section or setting has the wrong shape or value.
    """
    if config_path is not None and not Path(config_path).exists():
        raise FileNotFoundError(f"config file not found: {config_path}")

    search_paths = [
        Path(config_path) if config_path else None,
        Path("prom-write.yaml"),
        Path.home() / ".config" / "prom-write" / "config.yaml",
        Path("/etc/prom-write/config.yaml"),
    ]

    config_file = None
    for path in search_paths:
        if path and path.exists():
            config_file = path
            break

    if config_file is None:
        return Config()

    with open(config_file) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, Mapping):
        raise ConfigError(f"{config_file}: top level must be a mapping")

    return Config(
        app=_dict_to_dataclass(AppConfig, data.get("app"), "app"),
        remote_write=_dict_to_dataclass(
            RemoteWriteConfig, data.get("remote_write"), "remote_write"
        ),
    )
