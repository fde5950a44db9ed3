"""Parser for the Prometheus text exposition format.

Produces Samples in input order. ``# TYPE`` declarations are collected and
stamped on samples of the declared family that follow them; ``# HELP`` text
is kept for reference. Type resolution for everything else happens in
``promwrite.metrics.types``.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from promwrite.errors import ParseError
from promwrite.metrics.models import (
    LABEL_NAME,
    MetricType,
    Sample,
    declared_type,
    is_valid_metric_name,
)
from promwrite.utils.logging import get_logger

log = get_logger(__name__)

_METRIC_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
_LABEL_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_TIMESTAMP_RE = re.compile(r"^[+-]?[0-9]+$")

_LABEL_ESCAPES = {"\\": "\\", '"': '"', "n": "\n"}


@dataclass
class Exposition:
    """Result of parsing one text exposition document."""

    samples: List[Sample] = field(default_factory=list)
    types: Dict[str, MetricType] = field(default_factory=dict)
    help: Dict[str, str] = field(default_factory=dict)


def parse_float(token: str) -> float:
    """Parse a sample value.

    Accepts the usual float syntax plus NaN, +Inf and -Inf.

    Raises:
        ValueError: If the token is not a number.
    """
    # float() tolerates digit separators, the exposition format does not
    if "_" in token:
        raise ValueError(f"invalid number {token!r}")
    return float(token)


def parse_text(text: str) -> Exposition:
    """Parse text exposition format into samples.

    Args:
        text: Document contents.

    Returns:
        Exposition with samples in input order and the declared metadata.

    Raises:
        ParseError: On the first malformed line, citing its 1-based number.
    """
    exposition = Exposition()
    line_no = 0

    for line_no, raw_line in enumerate(text.split("\n"), start=1):
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith("#"):
            _parse_comment(line, line_no, exposition)
            continue

        sample = _parse_sample(line, line_no)
        sample.type = declared_type(sample.metric_name, exposition.types)
        exposition.samples.append(sample)

    log.debug(
        "text_parsed",
        lines=line_no,
        samples=len(exposition.samples),
        declared_types=len(exposition.types),
    )
    return exposition


def _parse_comment(line: str, line_no: int, exposition: Exposition) -> None:
    """Handle HELP and TYPE lines, ignore any other comment."""
    parts = line[1:].split(None, 2)
    if not parts or parts[0] not in ("HELP", "TYPE"):
        return

    keyword = parts[0]
    if len(parts) < 2:
        raise ParseError(line_no, f"missing metric name in {keyword} line")

    name = parts[1]
    if not is_valid_metric_name(name):
        raise ParseError(line_no, f"invalid metric name {name!r} in {keyword} line")

    if keyword == "HELP":
        exposition.help[name] = _unescape_help(parts[2] if len(parts) > 2 else "")
        return

    if len(parts) < 3:
        raise ParseError(line_no, f"missing metric type for {name!r}")

    type_name = parts[2].strip()
    try:
        exposition.types[name] = MetricType(type_name)
    except ValueError:
        raise ParseError(line_no, f"unknown metric type {type_name!r}") from None


def _unescape_help(text: str) -> str:
    out = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == "\\" and pos + 1 < len(text) and text[pos + 1] in ("\\", "n"):
            out.append("\n" if text[pos + 1] == "n" else "\\")
            pos += 2
            continue
        out.append(ch)
        pos += 1
    return "".join(out)


def _parse_sample(line: str, line_no: int) -> Sample:
    """Parse ``name{labels} value [timestamp]``."""
    match = _METRIC_NAME_RE.match(line)
    if not match:
        raise ParseError(line_no, f"invalid metric name at start of {line!r}")

    metric_name = match.group(0)
    pos = match.end()
    brace = _skip_blank(line, pos)

    labels: Dict[str, str] = {}
    if brace < len(line) and line[brace] == "{":
        labels, pos = _parse_labels(line, brace + 1, line_no)
    elif pos < len(line) and not line[pos].isspace():
        raise ParseError(
            line_no, f"unexpected character {line[pos]!r} after metric name"
        )

    tokens = line[pos:].split()
    if not tokens:
        raise ParseError(line_no, f"missing value for metric {metric_name!r}")
    if len(tokens) > 2:
        raise ParseError(line_no, f"unexpected text after timestamp: {tokens[2]!r}")

    try:
        value = parse_float(tokens[0])
    except ValueError:
        raise ParseError(line_no, f"invalid sample value {tokens[0]!r}") from None

    timestamp_ms = None
    if len(tokens) == 2:
        if not _TIMESTAMP_RE.match(tokens[1]):
            raise ParseError(line_no, f"invalid timestamp {tokens[1]!r}")
        timestamp_ms = int(tokens[1])

    return Sample(
        metric_name=metric_name,
        value=value,
        labels=labels,
        timestamp_ms=timestamp_ms,
    )


def _parse_labels(line: str, pos: int, line_no: int) -> Tuple[Dict[str, str], int]:
    """Parse a label block starting just after ``{``.

    Returns the labels and the position just after the closing ``}``.
    """
    labels: Dict[str, str] = {}
    end = len(line)

    while True:
        pos = _skip_blank(line, pos)
        if pos >= end:
            raise ParseError(line_no, "unterminated label block")
        if line[pos] == "}":
            return labels, pos + 1

        match = _LABEL_NAME_RE.match(line, pos)
        if not match:
            raise ParseError(line_no, f"invalid label name at column {pos + 1}")
        name = match.group(0)
        if name == LABEL_NAME:
            raise ParseError(line_no, f"reserved label {LABEL_NAME!r} in label block")
        if name in labels:
            raise ParseError(line_no, f"duplicate label {name!r}")

        pos = _skip_blank(line, match.end())
        if pos >= end or line[pos] != "=":
            raise ParseError(line_no, f"expected '=' after label name {name!r}")

        pos = _skip_blank(line, pos + 1)
        if pos >= end or line[pos] != '"':
            raise ParseError(line_no, f"expected '\"' to open value of label {name!r}")

        labels[name], pos = _parse_label_value(line, pos + 1, line_no)

        pos = _skip_blank(line, pos)
        if pos >= end:
            raise ParseError(line_no, "unterminated label block")
        if line[pos] == ",":
            pos += 1
        elif line[pos] != "}":
            raise ParseError(
                line_no, f"expected ',' or '}}' after value of label {name!r}"
            )


def _parse_label_value(line: str, pos: int, line_no: int) -> Tuple[str, int]:
    """Parse a quoted label value starting just after the opening quote."""
    chars = []
    end = len(line)

    while pos < end:
        ch = line[pos]
        if ch == '"':
            return "".join(chars), pos + 1
        if ch == "\\":
            if pos + 1 >= end:
                break
            escaped = line[pos + 1]
            if escaped not in _LABEL_ESCAPES:
                raise ParseError(
                    line_no, f"invalid escape sequence '\\{escaped}' in label value"
                )
            chars.append(_LABEL_ESCAPES[escaped])
            pos += 2
            continue
        chars.append(ch)
        pos += 1

    raise ParseError(line_no, "unterminated label value")


def _skip_blank(line: str, pos: int) -> int:
    while pos < len(line) and line[pos] in " \t":
        pos += 1
    return pos
