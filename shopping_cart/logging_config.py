"""
Structured logging configuration.

Uses structlog for key/value logs. JSON output goes through the stdlib
handler on stdout; development runs can switch to console rendering.
"""
import logging
import sys
from functools import partial
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

from shopping_cart.config import Settings, get_settings


def add_app_context(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
    settings: Settings | None = None,
) -> dict[str, Any]:
    """
    Add application context to log events.

    Args:
        logger: Logger instance
        method_name: Log method name
        event_dict: Event dictionary
        settings: Settings to read the context from (cached settings if None)

    Returns:
        dict[str, Any]: Enhanced event dictionary
    """
    settings = settings or get_settings()
    event_dict["app_name"] = settings.app_name
    event_dict["app_env"] = settings.app_env
    return event_dict


def setup_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Sets up:
    - contextvars merge (bind request ids with structlog.contextvars)
    - level filtering from settings.log_level
    - ISO timestamps, logger name, log level, app context
    - JSON (settings.log_json) or console rendering
    """
    settings = settings or get_settings()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        partial(add_app_context, settings=settings),
    ]

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_json:
        processors.append(structlog.stdlib.render_to_log_kwargs)
        handler.setFormatter(jsonlogger.JsonFormatter("%(message)s"))
    else:
        processors.append(structlog.dev.ConsoleRenderer())
        handler.setFormatter(logging.Formatter("%(message)s"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))

    # Remove existing handlers
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "logging_configured",
        log_level=settings.log_level,
        log_json=settings.log_json,
        app_env=settings.app_env,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        Any: Structured logger
    """
    return structlog.get_logger(name)
