"""
Structured logging configuration using structlog.

Log lines go to stderr; stdout is reserved for lookup output so that
``serielookup search`` can be piped.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

# Third-party loggers that are chatty at INFO/DEBUG during downloads
NOISY_LOGGERS = ("urllib3", "requests", "charset_normalizer")


class _CurrentStderr:
    """Writes to whatever sys.stderr is at the time of the call."""

    def write(self, message: str) -> int:
        return sys.stderr.write(message)

    def flush(self) -> None:
        sys.stderr.flush()

    def isatty(self) -> bool:
        return sys.stderr.isatty()


def _processors(json_output: bool, colors: bool) -> list[structlog.types.Processor]:
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        return [
            *shared,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [*shared, structlog.dev.ConsoleRenderer(colors=colors)]


def configure_logging(
    level: str = "WARNING",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structured logging for the application.

    Can be called repeatedly; the last call wins.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, emit one JSON object per line.
        stream: Output stream. Defaults to sys.stderr, resolved on every write.
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)
    out: TextIO | _CurrentStderr = stream if stream is not None else _CurrentStderr()

    logging.basicConfig(format="%(message)s", stream=out, level=log_level, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=_processors(json_output, colors=out.isatty()),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger for a module (pass ``__name__``)."""
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind key-value pairs to every log line emitted inside the block.

    Example:
        with log_context(dataset="Hoja 1"):
            log.info("Indexing rows")  # includes dataset="Hoja 1"
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
