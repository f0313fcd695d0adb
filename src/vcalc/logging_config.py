"""Logging setup for the vcalc package.

Library modules log through ``logging.getLogger(__name__)`` and never install
handlers themselves; front ends call :func:`setup_logging` once.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

PACKAGE_LOGGER: str = __package__ or "vcalc"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT: str = "%H:%M:%S"


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: str | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Route package records to ``stream`` (stderr by default) and optionally ``log_file``.

    Calling it again replaces the handlers installed by the previous call.
    Session trace lines are INFO records from ``vcalc.engine``; reported
    errors are WARNING.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    # stderr keeps records apart from the interactive menus on stdout
    logger.addHandler(_handler(logging.StreamHandler(stream if stream is not None else sys.stderr), level))
    if log_file:
        logger.addHandler(_handler(logging.FileHandler(log_file, mode="a", encoding="utf-8"), level))

    logger.debug("logging configured at %s", logging.getLevelName(level))
    return logger
