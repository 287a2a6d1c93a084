"""Logging setup for the polydraw service.

Modules log through ``logging.getLogger(__name__)``; this module attaches a
single stream handler to the package logger so output looks the same under
uvicorn, pytest and scripts.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
PACKAGE_LOGGER = "polydraw"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Configure the package logger.

    Calling this more than once only updates the level; the handler is
    installed a single time.

    Args:
        level: Logging level name or number.

    Returns:
        The configured ``polydraw`` logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level if isinstance(level, int) else level.upper())

    if not any(getattr(h, "_polydraw", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._polydraw = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
