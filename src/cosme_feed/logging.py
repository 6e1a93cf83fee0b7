"""structlog configuration and per-endpoint logging context.

Provides run ID generation, an endpoint-scoped context manager that binds
brand and feed URL to every log line emitted while that feed is processed,
and structured log configuration for console and JSON output with optional
file logging.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

# ---------------------------------------------------------------------------
# Run ID
# ---------------------------------------------------------------------------


def generate_run_id() -> str:
    """Generate a unique identifier for one build run.

    Returns:
        A UUID4 string.
    """
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# structlog configuration
# ---------------------------------------------------------------------------


_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_SHARED_PROCESSORS: tuple[structlog.types.Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
)


def _resolve_level(level: str) -> int:
    name = level.upper()
    if name not in _VALID_LEVELS:
        msg = f"Invalid log level: {level!r}. Must be one of {sorted(_VALID_LEVELS)}"
        raise ValueError(msg)
    numeric: int = getattr(logging, name)
    return numeric


def _build_formatter(fmt: str) -> structlog.stdlib.ProcessorFormatter:
    """Final stdlib formatter; JSON output keeps Japanese text unescaped."""
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if fmt == "json"
        else structlog.dev.ConsoleRenderer()
    )
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def _build_handlers(log_file: str | Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))
    return handlers


def configure_logging(
    level: str = "INFO",
    fmt: str = "console",
    log_file: str | Path | None = None,
    run_id: str | None = None,
) -> None:
    """Route structlog events for one build run through stdlib handlers.

    Replaces any handlers on the root logger with a stderr handler and,
    when ``log_file`` is given, a UTF-8 file handler. Both share one
    formatter, so the file receives the same console or JSON rendering as
    stderr. Safe to call more than once per process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: ``"console"`` for human-readable lines, ``"json"`` for one
            JSON object per line.
        log_file: Optional extra destination for the same records.
        run_id: Identifier bound to every record of this run.

    Raises:
        ValueError: If ``level`` is not a recognized log level.
    """
    numeric_level = _resolve_level(level)
    formatter = _build_formatter(fmt)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    for handler in _build_handlers(log_file):
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    if run_id:
        structlog.contextvars.bind_contextvars(run_id=run_id)


# ---------------------------------------------------------------------------
# Endpoint logging context manager
# ---------------------------------------------------------------------------


@contextmanager
def endpoint_logging_context(
    brand: str,
    endpoint: str,
) -> Iterator[structlog.stdlib.BoundLogger]:
    """Bind brand and endpoint metadata to structlog for one feed cycle.

    Args:
        brand: Brand the endpoint belongs to.
        endpoint: Feed URL being processed.

    Yields:
        A bound structlog logger with endpoint context.

    Example::

        with endpoint_logging_context("ABC", url) as log:
            log.debug("feed_parsed", entries=3)
    """
    structlog.contextvars.bind_contextvars(brand=brand, endpoint=endpoint)
    log: structlog.stdlib.BoundLogger = structlog.get_logger("cosme_feed.endpoint")
    try:
        yield log
    finally:
        structlog.contextvars.unbind_contextvars("brand", "endpoint")
