"""HTTP client for the Prometheus remote write API."""

import time
from dataclasses import dataclass

import requests
from requests.structures import CaseInsensitiveDict

from promwrite import __version__
from promwrite.errors import TransportError, TransportTimeout
from promwrite.utils.config import RemoteWriteConfig
from promwrite.utils.logging import get_logger

log = get_logger(__name__)

CONTENT_TYPE = "application/x-protobuf"
CONTENT_ENCODING = "snappy"
HEADER_REMOTE_WRITE_VERSION = "X-Prometheus-Remote-Write-Version"
REMOTE_WRITE_VERSION = "0.1.0"
USER_AGENT = f"prom-write/{__version__}"

# Response bodies are cut to this length in log output only.
_LOG_BODY_LIMIT = 500


@dataclass
class RemoteWriteResponse:
    """Outcome of a successful write."""

    status_code: int
    body: str
    duration_ms: float


class RemoteWriteClient:
    """Send one encoded payload to a remote write endpoint.

    A single POST per call: failures are raised, never retried.
    """

    def __init__(self, config: RemoteWriteConfig):
        """Initialise the client.

        Args:
            config: Endpoint URL, timeout and extra headers.
        """
        self.config = config

    def build_headers(self) -> CaseInsensitiveDict:
        """Protocol headers, overridden by any configured headers."""
        headers = CaseInsensitiveDict(
            {
                "Content-Type": CONTENT_TYPE,
                "Content-Encoding": CONTENT_ENCODING,
                HEADER_REMOTE_WRITE_VERSION: REMOTE_WRITE_VERSION,
                "User-Agent": USER_AGENT,
            }
        )
        headers.update(self.config.headers)
        return headers

    def send(self, payload: bytes) -> RemoteWriteResponse:
        """POST a snappy-compressed WriteRequest.

        Args:
            payload: Output of encode_remote_write().

        Returns:
            Status, body and duration of the accepted request.

        Raises:
            TransportTimeout: If the request timed out.
            TransportError: On connection failure or a non-2xx response.
        """
        log.info(
            "remote_write_attempt",
            url=self.config.url,
            payload_bytes=len(payload),
            timeout_s=self.config.timeout_seconds,
        )

        t0 = time.monotonic()
        try:
            response = requests.post(
                self.config.url,
                data=payload,
                headers=self.build_headers(),
                timeout=self.config.timeout_seconds,
            )
        except requests.Timeout as e:
            duration_ms = round((time.monotonic() - t0) * 1000, 1)
            log.error(
                "remote_write_timeout",
                error=str(e),
                duration_ms=duration_ms,
                timeout_s=self.config.timeout_seconds,
            )
            raise TransportTimeout(
                f"request to {self.config.url} timed out after "
                f"{self.config.timeout_seconds:g}s"
            ) from e
        except requests.RequestException as e:
            duration_ms = round((time.monotonic() - t0) * 1000, 1)
            log.error(
                "remote_write_request_error",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )
            raise TransportError(f"could not send request to {self.config.url}: {e}") from e

        duration_ms = round((time.monotonic() - t0) * 1000, 1)
        body = response.text or ""

        if not 200 <= response.status_code < 300:
            log.error(
                "remote_write_http_error",
                status_code=response.status_code,
                response_text=body[:_LOG_BODY_LIMIT],
                duration_ms=duration_ms,
            )
            raise TransportError(
                f"server returned error status code {response.status_code}: "
                f"{body.strip()}",
                status=response.status_code,
                body=body,
            )

        log.info(
            "remote_write_success",
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return RemoteWriteResponse(
            status_code=response.status_code,
            body=body,
            duration_ms=duration_ms,
        )
