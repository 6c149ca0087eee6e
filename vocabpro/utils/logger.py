"""Logger setup shared by services."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a named logger with a single stderr handler.

    Calling this again for the same name does not stack handlers.

    Args:
        name: Logger name, usually ``__name__``
        level: Logging level (defaults to INFO)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel(level if level is not None else logging.INFO)
    return logger
