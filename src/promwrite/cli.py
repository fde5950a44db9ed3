"""prom-write: write metrics to Prometheus over the remote write API."""

import argparse
import math
import sys
from typing import Dict, List, Optional, Tuple

import requests
import yaml
from requests.structures import CaseInsensitiveDict

from promwrite import __version__
from promwrite.errors import ConfigError, PromWriteError
from promwrite.metrics.models import MetricType, Sample, WriteRequest
from promwrite.metrics.parser import parse_float
from promwrite.sync.pusher import MetricPusher
from promwrite.utils.config import load_config
from promwrite.utils.logging import get_logger, setup_logging

log = get_logger(__name__)

EPILOG = """\
examples:
  write a gauge:
    prom-write --url http://localhost:9090/api/v1/write --name requests --value 1
  write a counter (type guessed from the _total suffix):
    prom-write -u http://localhost:9090/api/v1/write -n requests_total -v 1
  add labels:
    prom-write -u http://localhost:9090/api/v1/write -n requests -v 1 -l method=GET
  write metrics from a file, labelling every series:
    prom-write -u http://localhost:9090/api/v1/write -f metrics.txt -l instance=localhost
  write metrics from stdin:
    prom-write -u http://localhost:9090/api/v1/write -f -
"""


def _key_value(option: str, require_value: bool = True):
    """argparse type for KEY=VALUE pairs."""

    def parse(text: str) -> Tuple[str, str]:
        key, sep, value = text.strip().partition("=")
        key = key.strip()
        value = value.strip()
        if not sep:
            raise argparse.ArgumentTypeError(
                f"{option} requires a key-value pair (KEY=VALUE), got {text!r}"
            )
        if not key:
            raise argparse.ArgumentTypeError(f"{option} requires a non-empty key: {text!r}")
        if require_value and not value:
            raise argparse.ArgumentTypeError(f"{option} requires a non-empty value: {text!r}")
        return key, value

    return parse


def _metric_value(text: str) -> float:
    try:
        return parse_float(text.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid metric value {text!r}") from None


def _timeout(text: str) -> float:
    try:
        seconds = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid timeout {text!r}") from None
    if seconds <= 0 or math.isnan(seconds):
        raise argparse.ArgumentTypeError("timeout must be a positive number of seconds")
    return seconds


def _header(text: str) -> Tuple[str, str]:
    name, value = _key_value("-H/--header", require_value=False)(text)
    try:
        requests.utils.check_header_validity((name, value))
    except requests.exceptions.InvalidHeader:
        raise argparse.ArgumentTypeError(f"invalid header {text!r}") from None
    return name, value


def _url(text: str) -> str:
    url = text.strip()
    prepared = requests.PreparedRequest()
    try:
        prepared.prepare_url(url, None)
    except requests.RequestException as e:
        raise argparse.ArgumentTypeError(str(e)) from None
    # prepare_url passes non-HTTP schemes through untouched
    if not prepared.url.lower().startswith(("http://", "https://")):
        raise argparse.ArgumentTypeError(f"URL must use http or https: {text!r}")
    return url


class _StoreOnce(argparse.Action):
    """Store an option value, refusing a second occurrence."""

    def __call__(self, parser, namespace, values, option_string=None):
        if getattr(namespace, self.dest, None) is not None:
            raise argparse.ArgumentError(self, "cannot be used multiple times")
        setattr(namespace, self.dest, values)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prom-write",
        description="Write metrics to Prometheus over the remote-write API.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"prom-write {__version__}")
    parser.add_argument(
        "-u", "--url",
        action=_StoreOnce,
        type=_url,
        help="Prometheus remote write endpoint URL",
    )
    parser.add_argument(
        "-H", "--header",
        action="append",
        default=[],
        type=_header,
        metavar="KEY=VALUE",
        help="Extra HTTP header; later values override earlier ones",
    )
    parser.add_argument(
        "--timeout",
        type=_timeout,
        metavar="SECONDS",
        help="HTTP request timeout (default: 60)",
    )
    parser.add_argument(
        "-l", "--label",
        action="append",
        default=[],
        type=_key_value("-l/--label"),
        metavar="KEY=VALUE",
        help="Label added to every series; can be repeated",
    )
    parser.add_argument("-c", "--config", help="Path to YAML config file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log level (default from config: WARNING)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the series that would be written instead of sending them",
    )

    file_group = parser.add_argument_group("read metrics from a file")
    file_group.add_argument(
        "-f", "--file",
        action=_StoreOnce,
        metavar="PATH",
        help="File in the Prometheus text format; '-' reads stdin",
    )

    metric_group = parser.add_argument_group("specify a single metric")
    metric_group.add_argument("-n", "--name", action=_StoreOnce, help="Metric name")
    metric_group.add_argument(
        "-v", "--value", action=_StoreOnce, type=_metric_value, help="Metric value"
    )
    metric_group.add_argument(
        "-t", "--type",
        action=_StoreOnce,
        choices=[t.value for t in MetricType],
        help="Metric type (default: counter if the name ends in _total, else gauge)",
    )
    return parser


def _check_input_mode(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.file is not None:
        for option, value in (
            ("-n/--name", args.name),
            ("-v/--value", args.value),
            ("-t/--type", args.type),
        ):
            if value is not None:
                parser.error(f"argument {option} cannot be used with -f/--file")
        return

    if args.name is None:
        parser.error("either -f/--file or -n/--name is required")
    if not args.name.strip():
        parser.error("argument -n/--name requires a non-empty value")
    if args.value is None:
        parser.error("missing required argument -v/--value")


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return repr(value)


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def format_request(request: WriteRequest, help_text: Optional[Dict[str, str]] = None) -> str:
    """Render a WriteRequest as exposition text with explicit timestamps.

    HELP lines are written for families found in help_text.
    """
    help_text = help_text or {}
    lines = []
    described = set()
    for series in request.series:
        name = series.metric_name
        if name not in described:
            if name in help_text:
                lines.append(f"# HELP {name} {_escape_help(help_text[name])}")
            if series.type is not None:
                lines.append(f"# TYPE {name} {series.type.value}")
            described.add(name)
        for value, timestamp_ms in series.samples:
            lines.append(f"{series.key} {_format_value(value)} {timestamp_ms}")
    return "\n".join(lines)


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command line. Returns the exit status."""
    try:
        config = load_config(args.config)
    except (OSError, yaml.YAMLError, ConfigError) as e:
        print(f"error: could not load config: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or config.app.log_level)

    remote_write = config.remote_write
    if args.url:
        remote_write.url = args.url
    if args.timeout is not None:
        remote_write.timeout_seconds = args.timeout
    headers = CaseInsensitiveDict(remote_write.headers)
    headers.update(args.header)
    remote_write.headers = dict(headers)
    remote_write.labels.update(args.label)

    if not remote_write.url and not args.dry_run:
        print("error: missing required argument -u/--url", file=sys.stderr)
        return 2

    pusher = MetricPusher(remote_write)

    try:
        if args.file is not None:
            try:
                text = _read_input(args.file)
            except OSError as e:
                print(f"error: could not read file {args.file!r}: {e}", file=sys.stderr)
                return 1
            samples: List[Sample] = pusher.samples_from_text(text)
        else:
            metric_type = MetricType(args.type) if args.type else None
            samples = [pusher.sample_from_fields(args.name.strip(), args.value, metric_type)]

        request = pusher.prepare(samples)

        if args.dry_run:
            print(format_request(request, pusher.help))
            return 0

        pusher.push(request)
    except PromWriteError as e:
        log.error("write_failed", error=str(e), error_type=type(e).__name__)
        print(f"error: {e}", file=sys.stderr)
        return 1

    print("Metrics written successfully", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the prom-write command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _check_input_mode(parser, args)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
