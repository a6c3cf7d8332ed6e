"""structlog setup for polydb.

Diagnostics go to stderr; stdout carries only rendered result sets so
``polydb query ... | jq`` keeps working. Connection secrets are masked
before any event is rendered.
"""

import logging
import re
import sys
from typing import Any

import structlog

_SECRET_KEYS = frozenset({"password", "dsn", "sentry_dsn"})
# user:secret@ inside a connection URL
_URL_CREDENTIALS = re.compile(r"(://[^:/@\s]+:)[^@\s]+@")


class _StderrLoggerFactory:
    """Look up sys.stderr per logger; CliRunner swaps it between invocations."""

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def redact_secrets(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask password fields and URL credentials in an event."""
    for key, value in event_dict.items():
        if key in _SECRET_KEYS and value:
            event_dict[key] = "***"
        elif isinstance(value, str):
            event_dict[key] = _URL_CREDENTIALS.sub(r"\1***@", value)
    return event_dict


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog for the polydb CLI.

    Args:
        verbose: Emit debug events (connections, statements, degraded
            cells). Otherwise only INFO and above.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_secrets,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        context_class=dict,
        logger_factory=_StderrLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger, bound to ``name`` when given.

    Call it after setup_logging(), not at import time.
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger
