"""
Logging utilities for structlog integration.
"""
from __future__ import annotations

import logging
import logging.config

import structlog


# Shared by structlog loggers and foreign stdlib records (uvicorn, googleapiclient)
SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def configure_structlog():
    """Configure structlog with standard library integration."""
    structlog.configure(
        processors=SHARED_PROCESSORS + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


class StructlogJSONFormatter(structlog.stdlib.ProcessorFormatter):
    """JSON formatter for structlog (used in production)."""

    def __init__(self, *args, **kwargs):
        super().__init__(
            *args,
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=SHARED_PROCESSORS,
            **kwargs,
        )


class StructlogConsoleFormatter(structlog.stdlib.ProcessorFormatter):
    """Console-friendly formatter for structlog (used in development)."""

    def __init__(self, *args, **kwargs):
        super().__init__(
            *args,
            processor=structlog.dev.ConsoleRenderer(colors=True),
            foreign_pre_chain=SHARED_PROCESSORS,
            **kwargs,
        )


def build_logging_config(log_level: str, log_format: str) -> dict:
    """Build the dictConfig mapping for the given level and format."""
    formatter_name = "json_formatter" if log_format == "json" else "console_formatter"
    level = log_level.upper()

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json_formatter": {
                "()": "inbox_agent.logging.StructlogJSONFormatter",
            },
            "console_formatter": {
                "()": "inbox_agent.logging.StructlogConsoleFormatter",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter_name,
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": level,
            },
            "inbox_agent": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            # discovery cache warnings are noise for a headless service
            "googleapiclient.discovery_cache": {
                "level": "ERROR",
            },
        },
    }


def setup_logging() -> None:
    """Setup logging using LOG_LEVEL and LOG_FORMAT from settings."""
    from inbox_agent.config import get_settings

    settings = get_settings()
    logging.config.dictConfig(build_logging_config(settings.LOG_LEVEL, settings.LOG_FORMAT))
