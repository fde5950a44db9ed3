"""Metric samples, text format parsing and time series building."""

from promwrite.metrics.models import Label, MetricType, Sample, TimeSeries, WriteRequest
from promwrite.metrics.parser import Exposition, parse_text
from promwrite.metrics.series import build_write_request
from promwrite.metrics.types import resolve_type, resolve_types

__all__ = [
    "Exposition",
    "Label",
    "MetricType",
    "Sample",
    "TimeSeries",
    "WriteRequest",
    "build_write_request",
    "parse_text",
    "resolve_type",
    "resolve_types",
]
