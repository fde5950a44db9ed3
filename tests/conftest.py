"""Shared pytest fixtures for prom-write tests."""

import pytest

from promwrite.utils.config import RemoteWriteConfig

WRITE_URL = "http://prometheus.test:9090/api/v1/write"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep config discovery away from the real home and working directories."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def remote_write_config():
    """A RemoteWriteConfig pointing at a fake endpoint."""
    return RemoteWriteConfig(url=WRITE_URL, timeout_seconds=5.0)


@pytest.fixture
def exposition_text():
    """A small exposition document mixing typed and untyped metrics."""
    return (
        "# HELP http_requests_total The total number of HTTP requests.\n"
        "# TYPE http_requests_total counter\n"
        "# TYPE mygauge gauge\n"
        "\n"
        "mygauge 100 100\n"
        'http_requests_total{method="post",code="200"} 1027 1395066363000\n'
        "mycounter_total 100 100\n"
        "alpha 10 1000\n"
        'http_requests_total{code="200",method="post"} 50 1000\n'
    )
