"""Group samples into canonical time series.

Every series carries its labels in wire order (__name__ first, then by name)
and its samples ascending by timestamp.
"""

from datetime import datetime, timezone
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from promwrite.errors import AmbiguousTimestampError, DuplicateLabelError
from promwrite.metrics.models import (
    LABEL_NAME,
    Label,
    MetricType,
    Sample,
    TimeSeries,
    WriteRequest,
    format_series_key,
    label_sort_key,
    validate_label_name,
    validate_metric_name,
)
from promwrite.utils.logging import get_logger

log = get_logger(__name__)

SeriesIdentity = Tuple[str, FrozenSet[Tuple[str, str]]]


def current_time_ms() -> int:
    """Wall clock time in milliseconds since the epoch."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


class _SeriesGroup:
    """Samples collected for one label set."""

    def __init__(
        self,
        metric_name: str,
        labels: Dict[str, str],
        metric_type: Optional[MetricType],
    ):
        self.metric_name = metric_name
        self.labels = labels
        self.metric_type = metric_type
        self.points: List[Tuple[float, int]] = []

    def to_series(self) -> TimeSeries:
        labels = [Label(LABEL_NAME, self.metric_name)]
        labels.extend(Label(name, value) for name, value in self.labels.items())
        labels.sort(key=label_sort_key)

        points = sorted(self.points, key=lambda point: point[1])
        for previous, current in zip(points, points[1:]):
            if previous[1] == current[1]:
                raise AmbiguousTimestampError(
                    format_series_key(self.metric_name, self.labels), current[1]
                )

        return TimeSeries(labels=labels, samples=points, type=self.metric_type)


def merge_labels(
    sample: Sample, extra_labels: Mapping[str, str]
) -> Dict[str, str]:
    """Return the sample's labels with the extra labels added.

    Raises:
        DuplicateLabelError: If an extra label is already set on the sample.
    """
    merged = dict(sample.labels)
    for name, value in extra_labels.items():
        if name in merged:
            raise DuplicateLabelError(name)
        merged[name] = value
    return merged


def build_write_request(
    samples: Iterable[Sample],
    extra_labels: Optional[Mapping[str, str]] = None,
    now_ms: Optional[int] = None,
) -> WriteRequest:
    """Build a WriteRequest from samples.

    Samples with the same metric name and label set end up in one series.
    Series keep the order in which they were first seen.

    Args:
        samples: Samples from the parser or the command line.
        extra_labels: Labels added to every sample.
        now_ms: Timestamp for samples without one. Captured once from the
            wall clock when not given.

    Raises:
        InvalidNameError: If a metric or label name is not valid.
        DuplicateLabelError: If an extra label collides with a sample label,
            or tries to set __name__.
        AmbiguousTimestampError: If a series has two samples at one timestamp.
    """
    if now_ms is None:
        now_ms = current_time_ms()

    extra = dict(extra_labels or {})
    for name in extra:
        if name == LABEL_NAME:
            raise DuplicateLabelError(name)
        validate_label_name(name)

    groups: Dict[SeriesIdentity, _SeriesGroup] = {}
    sample_count = 0

    for sample in samples:
        validate_metric_name(sample.metric_name)
        for name in sample.labels:
            if name == LABEL_NAME:
                raise DuplicateLabelError(name)
            validate_label_name(name)

        labels = merge_labels(sample, extra)
        identity = (sample.metric_name, frozenset(labels.items()))

        group = groups.get(identity)
        if group is None:
            group = _SeriesGroup(sample.metric_name, labels, sample.type)
            groups[identity] = group

        timestamp_ms = sample.timestamp_ms if sample.timestamp_ms is not None else now_ms
        group.points.append((sample.value, timestamp_ms))
        sample_count += 1

    request = WriteRequest(series=[group.to_series() for group in groups.values()])

    log.debug(
        "write_request_built",
        samples=sample_count,
        series=len(request.series),
        now_ms=now_ms,
    )
    return request
