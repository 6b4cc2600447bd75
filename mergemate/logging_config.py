# mergemate/logging_config.py
"""
Logging setup for the command line entry point.

The library itself only creates module loggers; handlers are installed
here, on stderr, because stdout carries the CLI's JSON responses.
"""

import logging
import sys


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """Configure the ``mergemate`` logger and return it."""
    logger = logging.getLogger("mergemate")
    logger.setLevel(getattr(logging, str(level).upper(), logging.WARNING))

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
