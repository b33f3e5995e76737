"""Logging configuration for the highlight index."""

import sys
from typing import TextIO

from loguru import logger


def configure_logging(*, verbose: bool = False, sink: TextIO | None = None) -> None:
    """Route index logs to ``sink`` (stderr by default, stdout is reserved for command output)."""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sink or sys.stderr, level=level, format="{level.icon} {message}")
