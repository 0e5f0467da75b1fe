"""
Logging setup for the Legal Brain.

Every module logs through a child of the ``legal_brain`` logger, which
owns the single stderr handler. Levels are changed in one place with
``set_global_level``.

Usage:
    from legal_brain.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Ingesting document: %s", document_id)
    logger.debug("Generated %d chunks", len(chunks))
"""

import logging
import sys
from typing import Optional


# Default format: timestamp - module - level - message
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "legal_brain"


def _root_logger(fmt: Optional[str] = None) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        root.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            fmt=fmt or DEFAULT_FORMAT,
            datefmt=DEFAULT_DATE_FORMAT,
        ))
        root.addHandler(handler)
        # Keep records out of the application's root logger
        root.propagate = False
    return root


def get_logger(
    name: str,
    level: Optional[int] = None,
    fmt: Optional[str] = None,
) -> logging.Logger:
    """
    Get a logger inside the ``legal_brain`` tree.

    Args:
        name: Logger name (typically __name__ of the calling module).
            Names outside the package are nested under it.
        level: Level for this logger only. Defaults to the tree's level.
        fmt: Format for the shared handler, used when it is first created.

    Returns:
        logging.Logger whose records reach the shared handler.
    """
    _root_logger(fmt)
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_global_level(level: int) -> None:
    """
    Set the logging level for all Legal Brain loggers.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.WARNING).
    """
    _root_logger().setLevel(level)
