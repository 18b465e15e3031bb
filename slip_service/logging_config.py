# slip_service/logging_config.py
import logging
import sys
from typing import Optional

import structlog


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Configures structlog for the service. Falls back to the settings values."""
    if level is None or json_output is None:
        from .config import get_settings

        settings = get_settings()
        level = level or settings.LOG_LEVEL
        json_output = settings.LOG_JSON if json_output is None else json_output

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
