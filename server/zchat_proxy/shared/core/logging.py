"""
Loguru sink setup.
"""

import sys

from loguru import logger

from .config import Settings


def configure_logging(settings: Settings) -> None:
    """Replace the default loguru sink with the configured level and optional file."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())

    if settings.log_file:
        logger.add(
            settings.log_file,
            level=settings.log_level.upper(),
            rotation="1 day",
            retention="7 days",
        )
