"""Data models for metric samples and remote write messages."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from promwrite.errors import InvalidNameError

# Special label carrying the metric name.
LABEL_NAME = "__name__"

METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class MetricType(str, Enum):
    """Prometheus metric types."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"
    UNTYPED = "untyped"


def is_valid_metric_name(name: str) -> bool:
    return bool(METRIC_NAME_RE.match(name))


def is_valid_label_name(name: str) -> bool:
    return bool(LABEL_NAME_RE.match(name))


def validate_metric_name(name: str) -> str:
    """Return name unchanged, or raise InvalidNameError."""
    if not is_valid_metric_name(name):
        raise InvalidNameError("metric", name)
    return name


def validate_label_name(name: str) -> str:
    """Return name unchanged, or raise InvalidNameError."""
    if not is_valid_label_name(name):
        raise InvalidNameError("label", name)
    return name


@dataclass(frozen=True)
class Label:
    """A label attached to a time series."""

    name: str
    value: str


def label_sort_key(label: Label) -> Tuple[bool, str]:
    """Ordering of labels on the wire.

    __name__ always ranks first, the remaining labels sort by name.
    """
    return (label.name != LABEL_NAME, label.name)


@dataclass
class Sample:
    """A single observation of a metric.

    Labels exclude __name__, which is derived from metric_name.
    """

    metric_name: str
    value: float
    labels: Dict[str, str] = field(default_factory=dict)
    type: Optional[MetricType] = None
    timestamp_ms: Optional[int] = None


@dataclass
class TimeSeries:
    """A label set with its samples as (value, timestamp_ms) pairs."""

    labels: List[Label] = field(default_factory=list)
    samples: List[Tuple[float, int]] = field(default_factory=list)
    type: Optional[MetricType] = None

    @property
    def metric_name(self) -> str:
        for label in self.labels:
            if label.name == LABEL_NAME:
                return label.value
        return ""

    @property
    def key(self) -> str:
        """Human readable identity, e.g. ``requests{method="GET"}``."""
        return format_series_key(
            self.metric_name,
            {l.name: l.value for l in self.labels if l.name != LABEL_NAME},
        )


@dataclass
class WriteRequest:
    """Top-level remote write message."""

    series: List[TimeSeries] = field(default_factory=list)

    @property
    def sample_count(self) -> int:
        return sum(len(s.samples) for s in self.series)


def format_series_key(metric_name: str, labels: Dict[str, str]) -> str:
    """Render a metric name and labels in exposition format notation."""
    if not labels:
        return metric_name
    pairs = ",".join(
        f'{name}="{_escape_label_value(labels[name])}"' for name in sorted(labels)
    )
    return f"{metric_name}{{{pairs}}}"


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


# Sample name suffixes that belong to a declared histogram or summary family.
FAMILY_SUFFIXES = {
    MetricType.HISTOGRAM: ("_bucket", "_count", "_sum"),
    MetricType.SUMMARY: ("_count", "_sum"),
}


def declared_type(
    metric_name: str, declared: Dict[str, MetricType]
) -> Optional[MetricType]:
    """Look up the declared type of a sample name.

    An exact declaration wins. Otherwise ``foo_bucket``, ``foo_count`` and
    ``foo_sum`` inherit the type of a ``foo`` declared as histogram or summary.
    """
    if metric_name in declared:
        return declared[metric_name]

    for family_type, suffixes in FAMILY_SUFFIXES.items():
        for suffix in suffixes:
            if not metric_name.endswith(suffix):
                continue
            if declared.get(metric_name[: -len(suffix)]) == family_type:
                return family_type

    return None
