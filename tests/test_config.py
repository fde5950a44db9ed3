"""Tests for YAML configuration loading."""

import pytest

from promwrite.errors import ConfigError
from promwrite.utils.config import (
    DEFAULT_TIMEOUT_SECONDS,
    Config,
    RemoteWriteConfig,
    load_config,
)


def test_defaults_without_config_file() -> None:
    """No file anywhere yields the built-in defaults."""
    config = load_config()

    assert config == Config()
    assert config.remote_write.url == ""
    assert config.remote_write.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert config.app.log_level == "WARNING"


def test_load_explicit_file(tmp_path) -> None:
    """Values from an explicit file are loaded and scalars stringified."""
    path = tmp_path / "custom.yaml"
    path.write_text(
        "app:\n"
        "  log_level: DEBUG\n"
        "remote_write:\n"
        "  url: http://example.test/api/v1/write\n"
        "  timeout_seconds: 10\n"
        "  headers:\n"
        "    X-Scope-OrgID: 42\n"
        "  labels:\n"
        "    instance: laptop\n"
        "  unknown_key: ignored\n"
    )

    config = load_config(path)

    assert config.app.log_level == "DEBUG"
    assert config.remote_write.url == "http://example.test/api/v1/write"
    assert config.remote_write.timeout_seconds == 10.0
    assert config.remote_write.headers == {"X-Scope-OrgID": "42"}
    assert config.remote_write.labels == {"instance": "laptop"}


def test_discovers_file_in_working_directory(isolated_config) -> None:
    """./prom-write.yaml is picked up when no path is given."""
    (isolated_config / "prom-write.yaml").write_text(
        "remote_write:\n  url: http://cwd.test/write\n"
    )

    assert load_config().remote_write.url == "http://cwd.test/write"


def test_empty_file_gives_defaults(tmp_path) -> None:
    """An empty YAML document is treated as no settings."""
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert load_config(path) == Config()


def test_missing_explicit_file_raises(tmp_path) -> None:
    """An explicit path that does not exist is an error, not a silent default."""
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "contents, message",
    [
        ("remote_write:\n  timeout_seconds: soon\n", "timeout_seconds"),
        ("remote_write:\n  timeout_seconds: 0\n", "positive"),
        ("remote_write:\n  timeout_seconds: -3\n", "positive"),
        ("remote_write:\n  timeout_seconds: true\n", "timeout_seconds"),
        ("remote_write:\n  headers: [a]\n", "remote_write.headers"),
        ("remote_write:\n  labels: env\n", "remote_write.labels"),
        ("remote_write: [url]\n", "remote_write"),
        ("app: verbose\n", "app"),
        ("- just\n- a list\n", "top level"),
    ],
)
def test_invalid_settings_raise_config_error(tmp_path, contents, message) -> None:
    """Settings of the wrong shape or value raise ConfigError naming them."""
    path = tmp_path / "bad.yaml"
    path.write_text(contents)

    with pytest.raises(ConfigError, match=message):
        load_config(path)


def test_timeout_validated_on_construction() -> None:
    """RemoteWriteConfig rejects an unusable timeout built in code too."""
    with pytest.raises(ConfigError):
        RemoteWriteConfig(timeout_seconds=float("nan"))

    assert RemoteWriteConfig(timeout_seconds="2.5").timeout_seconds == 2.5
