"""
Logging Configuration for Retail Action Brief

The engine only emits events through structlog.get_logger(__name__); the
embedding application calls configure_logging() once to decide where those
events go and how they render.
"""

import logging
import sys
from typing import List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter, add_log_level

from retail_brief.config.settings import Settings, get_settings


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _resolve_level(settings: Settings, log_level: Optional[str]) -> int:
    if log_level:
        name = log_level
    elif settings.debug:
        name = "DEBUG"
    else:
        name = settings.monitoring.log_level
    return getattr(logging, name.upper(), logging.INFO)


def configure_logging(log_level: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """
    Route structlog events through stdlib logging to stdout.

    Events render as JSON lines unless monitoring.log_format is "text".
    Debug mode lowers the level to DEBUG so per-row exclusions show up.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        settings: Override application settings
    """
    settings = settings or get_settings()
    level = _resolve_level(settings, log_level)
    shared = _shared_processors()

    structlog.configure(
        processors=shared + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if settings.monitoring.log_format == "text":
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    else:
        renderer = JSONRenderer()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=shared))

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        app=settings.app_name,
        environment=settings.app_env,
        level=logging.getLevelName(level),
        format=settings.monitoring.log_format,
    )
