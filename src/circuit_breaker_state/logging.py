"""structlog setup and logger-agnostic helpers for breaker log events."""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from typing import Protocol, TextIO

import structlog
from structlog.typing import EventDict, Processor

LOG_LEVEL_NAMES: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_StdlibLogger = logging.Logger | logging.LoggerAdapter[logging.Logger]


class StructuredLogger(Protocol):
    """Logger accepting an event name plus keyword fields."""

    def info(self, event: str, **kwargs: object) -> None: ...

    def warning(self, event: str, **kwargs: object) -> None: ...

    def exception(self, event: str, **kwargs: object) -> None: ...


def get_logger(name: str) -> StructuredLogger:
    """Return a structlog logger bound to the stdlib logger ``name``."""
    return structlog.stdlib.get_logger(name)


def resolve_log_level(level: str) -> int:
    """Map a level name, case and whitespace insensitive, to its number.

    Raises:
        ValueError: For names outside ``LOG_LEVEL_NAMES``.
    """
    normalized = level.strip().upper()
    if normalized not in LOG_LEVEL_NAMES:
        raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVEL_NAMES)}")
    return logging.getLevelNamesMapping()[normalized]


def _emit(
    logger: StructuredLogger | _StdlibLogger,
    method_name: str,
    event: str,
    fields: dict[str, object],
) -> None:
    method = getattr(logger, method_name)
    if isinstance(logger, (logging.Logger, logging.LoggerAdapter)):
        # stdlib loggers only take structured fields through ``extra``.
        method(event, extra=fields)
    else:
        method(event, **fields)


def log_info(
    logger: StructuredLogger | _StdlibLogger, event: str, **fields: object
) -> None:
    _emit(logger, "info", event, fields)


def log_warning(
    logger: StructuredLogger | _StdlibLogger, event: str, **fields: object
) -> None:
    _emit(logger, "warning", event, fields)


def log_exception(
    logger: StructuredLogger | _StdlibLogger, event: str, **fields: object
) -> None:
    """Log ``event`` with the active exception's traceback attached."""
    _emit(logger, "exception", event, fields)


def _static_context(context: Mapping[str, object] | None) -> Processor:
    fixed = {str(key): value for key, value in (context or {}).items()}

    def _add_static_context(_: object, __: str, event_dict: EventDict) -> EventDict:
        if fixed:
            extra = event_dict.get("extra")
            event_dict["extra"] = {
                **(dict(extra) if isinstance(extra, Mapping) else {}),
                **fixed,
            }
        return event_dict

    return _add_static_context


def configure_structlog(
    *,
    log_level: str,
    context: Mapping[str, object] | None = None,
    stream: TextIO | None = None,
) -> StructuredLogger:
    """Route structlog events through stdlib logging to ``stream``.

    Safe to call repeatedly; each call replaces the root handler.

    Args:
        log_level: Minimum level name to emit.
        context: Fixed fields (for example a service name) merged into each
            event's ``extra`` mapping.
        stream: Destination, ``sys.stderr`` by default. A TTY gets the
            console renderer, anything else gets one JSON object per line.

    Returns:
        The package logger, bound to the new configuration.
    """
    level = resolve_log_level(log_level)
    target = sys.stderr if stream is None else stream
    renderer: Processor = (
        structlog.dev.ConsoleRenderer()
        if target.isatty()
        else structlog.processors.JSONRenderer()
    )
    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _static_context(context),
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    handler = logging.StreamHandler(target)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    logging.basicConfig(handlers=[handler], level=level, force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return get_logger("circuit_breaker_state")
