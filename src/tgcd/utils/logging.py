"""
Logging configuration for tgcd.

Structured logging via structlog, rendered through the stdlib logging
handlers so uvicorn and asyncpg records share the same output.

Context keys:
- tgcd.hash: hash a single-hash operation touched
- tgcd.src_hash / tgcd.dest_hash: CopyTags endpoints
"""

import logging
import sys

import structlog
from structlog.typing import EventDict, WrappedLogger

SERVICE_NAME = "tgcd"

SENSITIVE_KEYS = frozenset({"password", "secret", "token", "dsn", "postgres_url"})

_CONTEXT_KEYS = {
    "hash": "tgcd.hash",
    "src_hash": "tgcd.src_hash",
    "dest_hash": "tgcd.dest_hash",
}


def filter_sensitive_data(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Redact values whose keys contain sensitive substrings."""
    for key in list(event_dict.keys()):
        if any(s in key.lower() for s in SENSITIVE_KEYS):
            event_dict[key] = "***REDACTED***"
    return event_dict


def add_tag_context(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Rename hash keys to the tgcd.* namespace."""
    for key, renamed in _CONTEXT_KEYS.items():
        if key in event_dict:
            event_dict[renamed] = event_dict.pop(key)
    return event_dict


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structlog and the root stdlib logger."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            filter_sensitive_data,
            add_tag_context,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Reduce noise from third-party libraries
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    structlog.contextvars.bind_contextvars(service=SERVICE_NAME)
