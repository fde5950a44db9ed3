"""Logging configuration using structlog."""

import logging
import sys

import structlog


def setup_logging(log_level: str = "WARNING") -> None:
    """Configure structured logging for the command line.

    Logs go to stderr so that stdout only carries command output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    # Convert string level to logging constant
    level = getattr(logging, log_level.upper(), logging.WARNING)

    # stdout is reserved for --dry-run output; force rebinds to the current stderr
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )

    structlog.configure(
        processors=[
            # Drop events below the configured level before rendering
            structlog.stdlib.filter_by_level,
            # Add log level to event dict
            structlog.stdlib.add_log_level,
            # Add timestamp
            structlog.processors.TimeStamper(fmt="iso"),
            # If running in a terminal, use colourful output
            structlog.dev.ConsoleRenderer()
            if sys.stderr.isatty()
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__ of the module).

    Returns:
        Configured structlog logger.
    """
    return structlog.get_logger(name)
