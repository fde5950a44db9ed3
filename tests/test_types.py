"""Tests for metric type autodetection."""

import pytest

from promwrite.metrics.models import MetricType, Sample
from promwrite.metrics.parser import parse_text
from promwrite.metrics.types import resolve_type, resolve_types


@pytest.mark.parametrize(
    "name, expected",
    [
        ("http_requests_total", MetricType.COUNTER),
        ("queue_depth", MetricType.GAUGE),
        ("rpc_duration_seconds_count", MetricType.COUNTER),
        ("rpc_duration_seconds_sum", MetricType.COUNTER),
        ("rpc_duration_seconds_bucket", MetricType.HISTOGRAM),
        ("HTTP_REQUESTS_TOTAL", MetricType.GAUGE),  # case-sensitive
        ("total", MetricType.GAUGE),
    ],
)
def test_suffix_heuristics(name, expected) -> None:
    """Naming conventions decide the type when nothing is declared."""
    assert resolve_type(name) == expected


def test_declared_type_beats_suffix() -> None:
    """Declared metadata wins over the _total heuristic."""
    declared = {"odd_total": MetricType.GAUGE}
    assert resolve_type("odd_total", declared) == MetricType.GAUGE


def test_declared_family_beats_count_suffix() -> None:
    """_count of a declared summary is part of the summary, not a counter."""
    declared = {"latency": MetricType.SUMMARY}

    assert resolve_type("latency_count", declared) == MetricType.SUMMARY
    assert resolve_type("latency_sum", declared) == MetricType.SUMMARY
    # _bucket only belongs to histograms
    assert resolve_type("latency_bucket", declared) == MetricType.HISTOGRAM


def test_undeclared_family_falls_back_to_suffix() -> None:
    """A declaration for another metric does not affect unrelated names."""
    declared = {"other": MetricType.HISTOGRAM}
    assert resolve_type("latency_count", declared) == MetricType.COUNTER


def test_resolve_types_keeps_existing_type() -> None:
    """Samples that already have a type are left alone."""
    samples = [
        Sample(metric_name="jobs_total", value=1.0, type=MetricType.GAUGE),
        Sample(metric_name="jobs_total", value=2.0, timestamp_ms=1),
    ]

    resolve_types(samples)

    assert samples[0].type == MetricType.GAUGE
    assert samples[1].type == MetricType.COUNTER


def test_late_declaration_types_earlier_samples() -> None:
    """With the parser's declarations, a later TYPE covers earlier samples."""
    exposition = parse_text("temp 1 1\n# TYPE temp counter\ntemp 2 2\n")

    samples = resolve_types(exposition.samples, exposition.types)

    assert [s.type for s in samples] == [MetricType.COUNTER, MetricType.COUNTER]


def test_errors_total_scenario() -> None:
    """errors_total with an explicit timestamp resolves to a counter."""
    exposition = parse_text("errors_total 5 1690000000000\n")

    sample = resolve_types(exposition.samples, exposition.types)[0]

    assert sample.type == MetricType.COUNTER
    assert sample.value == 5.0
    assert sample.timestamp_ms == 1690000000000
