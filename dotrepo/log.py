"""Logging configuration using loguru.

Intercepts stdlib logging so that modules using ``logging.getLogger`` and
libraries such as httpx all flow through loguru with a unified format.
Normal runs print the level and message only; at DEBUG and below every
line also carries its time and call site.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

_BRIEF_FORMAT = "<level>{level: <8}</level> {message}"
_VERBOSE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class _InterceptHandler(logging.Handler):
    """Bridge stdlib logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Report the real call-site, not the logging module
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", *, colorize: bool | None = None) -> None:
    """Configure loguru as the sole logging sink on stderr.

    Call this once per command, before it runs.  Pass ``colorize=False`` in
    CI; ``None`` lets loguru detect a terminal.
    """
    level = level.upper()
    verbose = logger.level(level).no <= logger.level("DEBUG").no

    logger.remove()
    logger.add(sys.stderr, level=level, colorize=colorize, format=_VERBOSE_FORMAT if verbose else _BRIEF_FORMAT)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    # httpx logs every graph image request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.debug("Logging initialised (level={})", level)
