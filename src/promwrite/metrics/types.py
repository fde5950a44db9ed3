"""Metric type autodetection from Prometheus naming conventions."""

from typing import Dict, List, Optional

from promwrite.metrics.models import MetricType, Sample, declared_type

# Longest suffix first.
_SUFFIX_TYPES = sorted(
    [
        ("_total", MetricType.COUNTER),
        ("_count", MetricType.COUNTER),
        ("_sum", MetricType.COUNTER),
        ("_bucket", MetricType.HISTOGRAM),
    ],
    key=lambda item: len(item[0]),
    reverse=True,
)


def resolve_type(
    metric_name: str, declared: Optional[Dict[str, MetricType]] = None
) -> MetricType:
    """Pick the type of a metric.

    Declared ``# TYPE`` metadata always wins. Otherwise the name suffix
    decides, and anything without a known suffix is a gauge.
    """
    if declared:
        metric_type = declared_type(metric_name, declared)
        if metric_type is not None:
            return metric_type

    for suffix, metric_type in _SUFFIX_TYPES:
        if metric_name.endswith(suffix):
            return metric_type

    return MetricType.GAUGE


def resolve_types(
    samples: List[Sample], declared: Optional[Dict[str, MetricType]] = None
) -> List[Sample]:
    """Fill in the type of every sample that has none.

    Samples that already carry a type keep it. Returns the same list.
    """
    for sample in samples:
        if sample.type is None:
            sample.type = resolve_type(sample.metric_name, declared)
    return samples
