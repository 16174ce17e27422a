"""
Logging setup for the metastore.

Events go through structlog to stderr: colored key/value lines in
development, one JSON object per line otherwise. Credentials never reach
the output; the ``redact_secrets`` processor masks them wherever they
appear in an event, including inside logged descriptors.
"""

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from jobstore.config import settings
from jobstore.descriptor import SECRET_KEYS


MASK = "***"

# Plain keyword names callers use for credentials, next to descriptor keys
_SECRET_FIELDS = SECRET_KEYS | {"password", "passwd"}


def _mask(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: (MASK if key in _SECRET_FIELDS and item else _mask(item))
            for key, item in value.items()
        }
    return value


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credential values, top-level or inside logged mappings."""
    for key, value in event_dict.items():
        if key in _SECRET_FIELDS and value:
            event_dict[key] = MASK
        elif isinstance(value, Mapping):
            event_dict[key] = _mask(value)
    return event_dict


def configure_logging(level: str | None = None) -> None:
    """
    Route structlog and standard library logging to stderr.

    Args:
        level: Level name; defaults to the LOG_LEVEL setting
    """
    level_no = logging.getLevelName(level or settings.log_level)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.is_development:
        renderer: list[Processor] = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]
    else:
        renderer = [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # SQLAlchemy's engine and pool loggers
    logging.basicConfig(
        format="%(message)s",
        level=level_no,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a logger, optionally bound to some context.

    Usage:
        logger = get_logger(__name__, job_name="nightly-import")
        logger.info("Job created", tool="import")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
