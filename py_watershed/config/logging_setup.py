"""structlog configuration shared by scripts and applications."""

import logging
import sys
from typing import Optional

import structlog

from .config import Settings, settings as default_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Route structlog through stdlib logging with the configured level and format.

    Args:
        settings: Runtime settings, defaults to the environment driven singleton
    """
    settings = settings or default_settings
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
