"""Logging setup shared by the CLI and library modules."""

from __future__ import annotations

import logging
import sys

from docbuild.config import DOCBUILD_LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_ROOT_LOGGER = "docbuild"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; handlers are only installed by ``configure_logging``."""
    return logging.getLogger(name)


def configure_logging(level: str | int | None = None) -> None:
    """Send docbuild log records to stderr at the given level.

    Calling it again replaces the previous handler instead of stacking a new one.
    """
    resolved = level if level is not None else DOCBUILD_LOG_LEVEL
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING

    logger = logging.getLogger(_ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_docbuild_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._docbuild_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(resolved)
