"""
Structured Logging Configuration for MoodAgent.

Provides JSON logging for production and pretty console logging for development.
"""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(log_level: str = "INFO", log_format: str = "console", log_file: Optional[str] = None):
    """
    Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Output format ('json' for production, 'console' for development)
        log_file: Optional file that receives a copy of every record
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))

    logging.basicConfig(
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        handlers=handlers,
        level=getattr(logging, log_level.upper()),
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None):
    """
    Get a structured logger.

    Args:
        name: Component name, e.g. "DecisionAudit"

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def bind_context(**kwargs):
    """
    Bind context variables to all subsequent structured log messages.

    Example:
        bind_context(mode="paper")
        get_logger("DecisionAudit").info("decision_made", action="NOOP")
    """
    structlog.contextvars.bind_contextvars(**kwargs)
