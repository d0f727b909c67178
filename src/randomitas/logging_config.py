"""Logging setup for the randomitas CLI."""

import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "{level.icon} {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}"


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Send INFO (or DEBUG when verbose) to stderr.

    With log_file, every DEBUG record is also appended to that file, rotated at 1 MB.
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format=LOG_FORMAT)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="DEBUG", format=FILE_FORMAT, rotation="1 MB", retention=3)
