"""Structured logging for Pagewright.

Logging is built on structlog and routed through the standard library so
that third-party loggers (aiohttp, asyncio) share one output stream.

- Console output with colors by default
- JSON lines when PAGEWRIGHT_LOG_FORMAT=json
- Level taken from PAGEWRIGHT_LOG_LEVEL (default INFO)
- Render and dispatch scoped context via ``log_context``

Usage:
    from pagewright.logging import configure_logging, get_logger, log_context

    configure_logging()
    log = get_logger(__name__)

    with log_context(schema_id="checkout-page"):
        log.info("render_started", node_count=42)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "get_logger",
    "configure_logging",
    "bind_context",
    "clear_context",
    "log_context",
]

LOG_FORMAT_ENV_VAR = "PAGEWRIGHT_LOG_FORMAT"
LOG_LEVEL_ENV_VAR = "PAGEWRIGHT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

# Libraries that log every request at INFO; kept at WARNING unless debugging.
_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")


def _level_from_env() -> int:
    name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, name, logging.INFO)


def _json_requested() -> bool:
    return os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"


def _shared_processors() -> list[Processor]:
    """Processors applied to both structlog and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _final_renderer(use_json: bool) -> Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; each call replaces the previous handler.

    Args:
        force_json: Emit JSON lines regardless of PAGEWRIGHT_LOG_FORMAT.
        level: Explicit log level. Defaults to PAGEWRIGHT_LOG_LEVEL.
    """
    use_json = force_json or _json_requested()
    log_level = level if level is not None else _level_from_env()

    exception_processor: Processor = (
        structlog.processors.dict_tracebacks
        if use_json
        else structlog.processors.format_exc_info
    )

    structlog.configure(
        processors=[
            *_shared_processors(),
            exception_processor,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _final_renderer(use_json),
            ],
            foreign_pre_chain=_shared_processors(),
        )
    )

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    noisy_level = log_level if log_level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``.

    Example:
        log = get_logger(__name__)
        log.warning("binding_failed", target="label", error="missing key")
    """
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Bind values that are attached to every subsequent log line.

    Uses structlog contextvars, so the values follow asyncio tasks spawned
    after the call.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Drop every value bound with ``bind_context``."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def log_context(**context: Any) -> Iterator[None]:
    """Bind ``context`` for the duration of a ``with`` block.

    Only the keys passed here are removed on exit, so nested scopes (an
    event dispatched from inside a render) keep the outer values.

    Example:
        with log_context(schema_id=schema.id):
            await engine.render(schema, context)
    """
    tokens = structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
