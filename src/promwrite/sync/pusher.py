"""Push metrics to Prometheus in a single remote write request.

Both input modes produce Samples that go through the same path:

    text file / stdin -> parse -> resolve types --+
                                                  +-> build series -> encode -> POST
    --name/--value    -> one Sample -------------+
"""

from typing import Dict, List, Optional

from promwrite.errors import NoSamplesError
from promwrite.metrics.models import MetricType, Sample, WriteRequest, validate_metric_name
from promwrite.metrics.parser import parse_text
from promwrite.metrics.series import build_write_request
from promwrite.metrics.types import resolve_type, resolve_types
from promwrite.sync.prometheus_write import encode_remote_write
from promwrite.sync.remote_write import RemoteWriteClient, RemoteWriteResponse
from promwrite.utils.config import RemoteWriteConfig
from promwrite.utils.logging import get_logger

log = get_logger(__name__)


class MetricPusher:
    """Turn metric input into one remote write request and send it."""

    def __init__(
        self,
        config: RemoteWriteConfig,
        client: Optional[RemoteWriteClient] = None,
    ):
        """Initialise the pusher.

        Args:
            config: Remote write configuration; its labels are added to
                every series.
            client: HTTP client. Built from config when not given.
        """
        self.config = config
        self.client = client or RemoteWriteClient(config)
        self.help: Dict[str, str] = {}

    def samples_from_text(self, text: str) -> List[Sample]:
        """Parse exposition format text and resolve every sample's type.

        HELP text from the document is kept on ``self.help``.
        """
        exposition = parse_text(text)
        self.help.update(exposition.help)
        return resolve_types(exposition.samples, exposition.types)

    def sample_from_fields(
        self,
        name: str,
        value: float,
        metric_type: Optional[MetricType] = None,
    ) -> Sample:
        """Build a single sample from discrete fields.

        The type is guessed from the name when not given. The timestamp is
        left for the series builder to assign.
        """
        validate_metric_name(name)
        return Sample(
            metric_name=name,
            value=value,
            type=metric_type or resolve_type(name),
        )

    def prepare(self, samples: List[Sample], now_ms: Optional[int] = None) -> WriteRequest:
        """Group samples into a WriteRequest with the configured labels.

        Raises:
            NoSamplesError: If there is nothing to send.
        """
        request = build_write_request(samples, self.config.labels, now_ms=now_ms)
        if not request.series:
            raise NoSamplesError("input contains no samples")
        return request

    def push(self, request: WriteRequest) -> RemoteWriteResponse:
        """Encode a WriteRequest and send it."""
        payload = encode_remote_write(request)

        log.info(
            "push_starting",
            series=len(request.series),
            samples=request.sample_count,
            payload_bytes=len(payload),
        )
        return self.client.send(payload)
