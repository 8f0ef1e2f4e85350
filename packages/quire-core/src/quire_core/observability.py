"""Structured logging and OpenTelemetry spans for quire-core.

This module provides:
- Structured logging setup via structlog
- OpenTelemetry span helpers for build phases (graph, package, write)
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer
    from structlog.stdlib import BoundLogger

# Module-level logger and tracer
_logger: BoundLogger | None = None
_tracer: Tracer | None = None

# Tracer name for OpenTelemetry
TRACER_NAME = "quire"


def get_logger() -> BoundLogger:
    """Get the quire logger, creating it if necessary.

    Returns:
        Configured structlog BoundLogger instance.

    Example:
        >>> logger = get_logger()
        >>> logger.info("graph_built", modules=12)
    """
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(TRACER_NAME)
    assert _logger is not None  # Type narrowing for mypy
    return _logger


def get_tracer() -> Tracer:
    """Get the OpenTelemetry tracer for quire.

    Returns:
        OpenTelemetry Tracer instance.
    """
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def configure_logging(
    *,
    log_level: str = "INFO",
    json_format: bool = True,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for quire.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON format. If False, output human-readable.
        add_timestamp: If True, add ISO timestamp to log entries.

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=False)
    """
    import logging

    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
        force=True,
    )


@contextmanager
def span(name: str, *, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Run one build phase inside an OpenTelemetry span.

    The span is named ``quire.<name>`` and its attributes are recorded under
    the ``quire.`` namespace. Start, completion (with the elapsed time) and
    failure are logged as ``<name>_started``, ``<name>_completed`` and
    ``<name>_failed`` events.

    Args:
        name: Build phase (e.g., "build_graph", "write_bundle").
        attributes: Optional phase attributes (e.g., entry count, output path).

    Yields:
        OpenTelemetry Span instance.

    Example:
        >>> with span("build_graph", attributes={"entries": 2}):
        ...     graph, entries = asyncio.run(builder.build(paths))
    """
    tracer = get_tracer()
    logger = get_logger()
    attrs = attributes or {}
    span_attrs = {f"{TRACER_NAME}.{key}": value for key, value in attrs.items()}

    with tracer.start_as_current_span(f"{TRACER_NAME}.{name}", attributes=span_attrs) as s:
        logger.debug(f"{name}_started", **attrs)
        started = time.perf_counter()
        try:
            yield s
        except Exception as exc:
            s.set_status(Status(StatusCode.ERROR, str(exc)))
            s.record_exception(exc)
            logger.error(f"{name}_failed", error=str(exc), **attrs)
            raise
        s.set_status(Status(StatusCode.OK))
        elapsed_ms = round((time.perf_counter() - started) * 1000, 3)
        s.set_attribute(f"{TRACER_NAME}.elapsed_ms", elapsed_ms)
        logger.debug(f"{name}_completed", elapsed_ms=elapsed_ms, **attrs)
