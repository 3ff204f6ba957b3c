"""
Logging setup for uitune.

Console output goes through rich; every run also appends to a plain log
file so there is always evidence of what was changed.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "uitune"
LOG_FILE_NAME = "uitune.log"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_dir: Optional[Path] = None,
    console: Optional[Console] = None,
) -> Optional[Path]:
    """
    Configure the uitune logger.

    Args:
        verbose: Show DEBUG records on the console
        quiet: Show only ERROR records on the console
        log_dir: Directory for uitune.log (no file logging if None)
        console: Rich console to log through

    Returns:
        Path of the log file, or None if it could not be opened
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if quiet:
        console_level = logging.ERROR
    elif verbose:
        console_level = logging.DEBUG
    else:
        console_level = logging.WARNING

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(console_level)
    logger.addHandler(rich_handler)

    if log_dir is None:
        return None

    log_path = Path(log_dir) / LOG_FILE_NAME
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as e:
        logger.warning("Cannot write log file %s: %s", log_path, e)
        return None

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(file_handler)
    return log_path
