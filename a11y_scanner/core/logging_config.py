"""
Structured logging for the scanner.

Request and scan ids bound with ``bind_context`` appear on every entry
written while a request is in flight.
"""

import logging
import re
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from a11y_scanner import __version__

SECRET_KEYS = ('api_key', 'authorization', 'x-goog-api-key')
_KEY_PARAM_RE = re.compile(r'([?&]key=)[^&\s]+')


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict['app'] = 'a11y-scanner'
    event_dict['version'] = __version__
    return event_dict


def add_log_level(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add log level to event dict, normalizing 'warn' to 'warning'."""
    event_dict['level'] = 'warning' if method_name == 'warn' else method_name
    return event_dict


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Mask credentials before rendering.

    Gemini errors can echo the request URL, which carries the API key as a
    ``key`` query parameter.
    """
    for key in list(event_dict):
        if key.lower() in SECRET_KEYS:
            event_dict[key] = '[Filtered]'
        elif isinstance(event_dict[key], str):
            event_dict[key] = _KEY_PARAM_RE.sub(r'\1[Filtered]', event_dict[key])
    return event_dict


def drop_color_message_key(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Uvicorn duplicates ``event`` into ``color_message``."""
    event_dict.pop('color_message', None)
    return event_dict


def configure_structlog(
    log_level: str = 'INFO',
    json_logs: bool = True,
    development_mode: bool = False
) -> None:
    """
    Configure structlog and the standard library logging it sits beside.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to output logs in JSON format
        development_mode: Whether to use development-friendly formatting
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )
    # HTTP client libraries are chatty at DEBUG
    for noisy in ("asyncio", "httpx", "httpcore", "google_genai"):
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.INFO))

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        drop_color_message_key,
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_secrets,
    ]

    if json_logs and not development_mode:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Structured logger, bound to ``logger=name`` when a name is given."""
    if name:
        return structlog.get_logger(logger=name)
    return structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every entry logged in the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove fields added with ``bind_context``."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Drop all request-scoped fields."""
    structlog.contextvars.clear_contextvars()
