"""Tests for MetricPusher, the single-request write pipeline."""

from unittest.mock import MagicMock

import pytest

from promwrite.errors import InvalidNameError, NoSamplesError, ParseError
from promwrite.metrics.models import LABEL_NAME, Label, MetricType
from promwrite.sync.prometheus_write import decode_write_request
from promwrite.sync.pusher import MetricPusher
from promwrite.sync.remote_write import RemoteWriteClient, RemoteWriteResponse


def _make_pusher(config) -> tuple:
    client = MagicMock(spec=RemoteWriteClient)
    client.send.return_value = RemoteWriteResponse(status_code=204, body="", duration_ms=1.0)
    return MetricPusher(config, client=client), client


def test_samples_from_text_resolves_types(remote_write_config, exposition_text) -> None:
    """Declared types are kept and the rest are guessed from names."""
    pusher, _ = _make_pusher(remote_write_config)

    samples = pusher.samples_from_text(exposition_text)

    types = {s.metric_name: s.type for s in samples}
    assert types == {
        "mygauge": MetricType.GAUGE,
        "http_requests_total": MetricType.COUNTER,
        "mycounter_total": MetricType.COUNTER,
        "alpha": MetricType.GAUGE,
    }


def test_samples_from_text_propagates_parse_errors(remote_write_config) -> None:
    """A malformed file never reaches the client."""
    pusher, client = _make_pusher(remote_write_config)

    with pytest.raises(ParseError):
        pusher.samples_from_text("ok 1\nbad{label value\n")

    client.send.assert_not_called()


def test_sample_from_fields_guesses_type(remote_write_config) -> None:
    """Single samples get a type from --type or from the name."""
    pusher, _ = _make_pusher(remote_write_config)

    assert pusher.sample_from_fields("jobs_total", 1.0).type == MetricType.COUNTER
    assert pusher.sample_from_fields("temp", 1.0).type == MetricType.GAUGE
    assert (
        pusher.sample_from_fields("temp", 1.0, MetricType.COUNTER).type
        == MetricType.COUNTER
    )


def test_sample_from_fields_rejects_bad_name(remote_write_config) -> None:
    """Invalid metric names are rejected up front."""
    pusher, _ = _make_pusher(remote_write_config)

    with pytest.raises(InvalidNameError):
        pusher.sample_from_fields("not-valid", 1.0)


def test_prepare_applies_configured_labels(remote_write_config) -> None:
    """Configured labels are added to every series from both input modes."""
    remote_write_config.labels = {"instance": "localhost"}
    pusher, _ = _make_pusher(remote_write_config)

    text_request = pusher.prepare(
        pusher.samples_from_text('requests{method="GET"} 1\n'), now_ms=1000
    )
    field_request = pusher.prepare([pusher.sample_from_fields("up", 1.0)], now_ms=1000)

    assert text_request.series[0].labels == [
        Label(LABEL_NAME, "requests"),
        Label("instance", "localhost"),
        Label("method", "GET"),
    ]
    assert field_request.series[0].labels == [
        Label(LABEL_NAME, "up"),
        Label("instance", "localhost"),
    ]


def test_prepare_rejects_empty_input(remote_write_config) -> None:
    """A document with only comments has nothing to send."""
    pusher, _ = _make_pusher(remote_write_config)

    with pytest.raises(NoSamplesError):
        pusher.prepare(pusher.samples_from_text("# TYPE a counter\n"))


def test_push_sends_encoded_request(remote_write_config) -> None:
    """push() hands the client a payload that decodes to the request."""
    pusher, client = _make_pusher(remote_write_config)
    request = pusher.prepare(pusher.samples_from_text("errors_total 5 1690000000000\n"))

    response = pusher.push(request)

    client.send.assert_called_once()
    payload = client.send.call_args.args[0]
    decoded = decode_write_request(payload)
    assert decoded.series[0].labels == [Label(LABEL_NAME, "errors_total")]
    assert decoded.series[0].samples == [(5.0, 1690000000000)]
    assert response.status_code == 204


def test_samples_from_text_keeps_help(remote_write_config) -> None:
    """HELP text is kept on the pusher for display."""
    pusher, _ = _make_pusher(remote_write_config)

    pusher.samples_from_text("# HELP up Target is up.\nup 1\n")

    assert pusher.help == {"up": "Target is up."}
