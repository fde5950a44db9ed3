"""Write metrics to Prometheus over the remote write API."""

__version__ = "0.1.0"

from promwrite.errors import (  # noqa: E402
    AmbiguousTimestampError,
    ConfigError,
    DuplicateLabelError,
    EncodingError,
    InvalidNameError,
    NoSamplesError,
    ParseError,
    PromWriteError,
    TransportError,
    TransportTimeout,
)

__all__ = [
    "AmbiguousTimestampError",
    "ConfigError",
    "DuplicateLabelError",
    "EncodingError",
    "InvalidNameError",
    "NoSamplesError",
    "ParseError",
    "PromWriteError",
    "TransportError",
    "TransportTimeout",
    "__version__",
]
