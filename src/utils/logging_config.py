"""
Logging setup for the command-line scripts.

Library modules only create their own loggers with
``logging.getLogger(__name__)``; configuring handlers is left to the
entry points.
"""

import logging
import sys
from typing import Union

LOGGER_NAME = "src"

FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def setup_logging(
    level: Union[str, int] = logging.WARNING,
    verbose: bool = False,
    format_style: str = "simple",
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Logging level name or number (default: WARNING)
        verbose: Force DEBUG level regardless of ``level``
        format_style: "simple" or "detailed"

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    if verbose:
        level = logging.DEBUG

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(FORMATS.get(format_style, FORMATS["simple"])))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
