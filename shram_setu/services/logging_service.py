"""structlog setup: JSON lines in production, console output for development.

Every record passes through ``redact_sensitive`` so that tokens, cookies and
passwords never reach the log stream, even when they are nested inside a
logged mapping such as request headers.
"""

import logging
import sys
from typing import Any, Dict, Mapping

import structlog

REDACTED = "REDACTED"

# Substrings of field names whose values are never logged
SENSITIVE_KEYS = (
    "authorization",
    "secret",
    "password",
    "token",
    "cookie",
)


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    return any(part in key for part in SENSITIVE_KEYS)


def _scrub(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            k: REDACTED if isinstance(k, str) and _is_sensitive(k) else _scrub(v)
            for k, v in value.items()
        }
    if isinstance(value, str) and value.lower().startswith("bearer "):
        return REDACTED
    return value


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Replace sensitive values with ``REDACTED``.

    A value is sensitive when its key names a token, cookie, secret,
    password or authorization header, or when it is a Bearer credential.
    Mappings are scrubbed recursively. The event name itself is kept.
    """
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        event_dict[key] = REDACTED if _is_sensitive(key) else _scrub(value)
    return event_dict


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR; unknown names mean INFO
        log_format: ``json`` for one JSON object per line, ``console`` for
            coloured key=value output
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if log_format.lower() == "console":
        renderer: Any = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger bound to ``logger_name`` when ``name`` is given."""
    logger = structlog.get_logger()
    return logger.bind(logger_name=name) if name else logger
