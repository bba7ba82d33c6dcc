"""Process-wide logging for tabkeeper.

Everything ends up in a single loguru sink on stderr; records emitted through
the stdlib ``logging`` module (boto3 and friends) are forwarded into it.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger


class _InterceptHandler(logging.Handler):
    """Forward a stdlib ``LogRecord`` to loguru at the matching level."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames inside the logging package; depth must point at the caller.
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


_CLI_FORMAT = "<level>{level: <8}</level> | <cyan>{name}:{line}</cyan> | <level>{message}</level>"


def setup_logging(level: str = "WARNING") -> None:
    """Replace loguru handlers with one stderr sink at ``level``.

    Called from the CLI entry point.  Command output owns stdout, so logs
    never go there.
    """
    level = level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level, format=_CLI_FORMAT)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    # boto3 logs every request at INFO.
    for name in ("boto3", "botocore", "s3transfer", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging set to {}", level)
