"""Logging configuration for semdown."""

import logging
import sys
from pathlib import Path
from typing import Optional
from .settings import get_settings

CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Configure the `semdown` logger.

    Console output goes to stderr so artifacts written to stdout can be
    piped; the optional log file gets the detailed format.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for file logging
        format_string: Optional format string for both handlers
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper())
    log_file_path = log_file or settings.log_file

    root_logger = logging.getLogger("semdown")
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(format_string or CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file_path:
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(format_string or FILE_FORMAT))
        root_logger.addHandler(file_handler)

    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Logger under the `semdown` namespace; configures logging on first use."""
    if not logging.getLogger("semdown").handlers:
        setup_logging()

    if name.startswith("semdown"):
        return logging.getLogger(name)
    return logging.getLogger(f"semdown.{name}")
