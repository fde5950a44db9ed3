"""Remote write encoding and transport."""

from promwrite.sync.prometheus_write import decode_write_request, encode_remote_write
from promwrite.sync.pusher import MetricPusher
from promwrite.sync.remote_write import RemoteWriteClient, RemoteWriteResponse

__all__ = [
    "MetricPusher",
    "RemoteWriteClient",
    "RemoteWriteResponse",
    "decode_write_request",
    "encode_remote_write",
]
