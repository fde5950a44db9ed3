"""Exceptions raised by the prom-write pipeline."""

from typing import Optional


class PromWriteError(Exception):
    """Base class for every error that aborts a write."""


class ConfigError(PromWriteError):
    """Raised when a configuration file holds unusable settings."""


class ParseError(PromWriteError):
    """Raised when text exposition format input is malformed."""

    def __init__(self, line: int, message: str):
        self.line = line
        self.message = message
        super().__init__(f"line {line}: {message}")


class InvalidNameError(PromWriteError):
    """Raised when a metric or label name is not a legal Prometheus name."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"invalid {kind} name {name!r}")


class DuplicateLabelError(PromWriteError):
    """Raised when an extra label collides with a sample's own label."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"label {name!r} is specified more than once")


class AmbiguousTimestampError(PromWriteError):
    """Raised when two samples of one series share a timestamp."""

    def __init__(self, series_key: str, timestamp: int):
        self.series_key = series_key
        self.timestamp = timestamp
        super().__init__(
            f"series {series_key} has more than one sample at timestamp {timestamp}"
        )


class NoSamplesError(PromWriteError):
    """Raised when the input produced nothing to write."""


class EncodingError(PromWriteError):
    """Raised when a WriteRequest cannot be serialised."""


class TransportError(PromWriteError):
    """Raised when the remote write endpoint cannot be reached or rejects data.

    ``status`` is None when no HTTP response was received.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.status = status
        self.body = body
        super().__init__(message)


class TransportTimeout(TransportError):
    """Raised when the request did not complete within the timeout."""
