"""
Logging setup for the ART report pipeline.

Every module gets its logger from ``create_logger(__name__)``: a colour
console handler and, when asked for, a plain-text log file. Failures of a
run are reported through ``log_exception`` with hints that depend on the
stage that failed.
"""

import logging
import os
import sys
from typing import Dict, Optional, Tuple, Union

import colorlog

from art_pipeline.exceptions import (
    ConfigurationError,
    ExportError,
    LoadError,
    RenderError,
)

CONSOLE_FORMAT = (
    "%(log_color)s[%(levelname)s]%(reset)s %(blue)s[%(name)s]%(reset)s %(message)s"
)
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

FAILURE_HINTS: Dict[type, Tuple[str, ...]] = {
    ConfigurationError: (
        "Check TARGET_INDICATOR, TOP_N and EXPORT_FORMAT in the environment or .env",
        "Confirm OUTPUT_DIR can be created",
    ),
    LoadError: (
        "Check INDICATORS_PATH and METADATA_PATH point at readable CSV files",
        "Verify the header row carries the required columns",
    ),
    RenderError: (
        "Confirm OUTPUT_DIR is writable and has free space",
        "Run with --skip-render to write the datasets only",
    ),
    ExportError: (
        "Confirm OUTPUT_DIR is writable and has free space",
        "Try EXPORT_FORMAT=csv if the parquet writer is unavailable",
    ),
}
DEFAULT_HINTS = (
    "Re-run with LOG_LEVEL=DEBUG for per-stage row counts",
    "Check the input tables for unexpected values",
)


def create_logger(
    name: Optional[str] = None,
    log_level: Union[int, str, None] = None,
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Create a colour console logger, optionally also writing to a file.

    :param name: Name of the logger (typically __name__)
    :param log_level: Logging level (default: LOG_LEVEL env var, else INFO)
    :param log_dir: Directory for the log file, created if absent
    :param log_file: Log file name; defaults to ``<name>.log`` when log_dir is set
    :return: Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    logger = colorlog.getLogger(name or "art_pipeline")
    logger.setLevel(log_level)
    logger.propagate = False
    # Re-creating a logger replaces its handlers
    logger.handlers.clear()

    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        colorlog.ColoredFormatter(CONSOLE_FORMAT, log_colors=LOG_COLORS)
    )
    logger.addHandler(console_handler)

    if log_dir or log_file:
        path = log_file or f"{name or 'art_pipeline'}.log"
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            path = os.path.join(log_dir, path)

        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def failure_hints(e: BaseException) -> Tuple[str, ...]:
    """Return the troubleshooting hints for the stage that raised ``e``."""
    for error_type, hints in FAILURE_HINTS.items():
        if isinstance(e, error_type):
            return hints
    return DEFAULT_HINTS


def log_exception(logger, e, context=None):
    """
    Log a failed report stage with its context and troubleshooting hints.

    :param logger: Logger instance
    :param e: Exception object
    :param context: A description of the failing stage, or a dict of details
    """
    logger.critical("🚨 REPORT RUN FAILED 🚨")
    logger.critical(f"Error Type: {type(e).__name__}")
    logger.critical(f"Error Details: {e}")

    if isinstance(context, dict):
        for key, value in context.items():
            logger.critical(f"{key.capitalize()}: {value}")
    elif context:
        logger.critical(f"Context: {context}")

    logger.critical("Troubleshooting:")
    for number, hint in enumerate(failure_hints(e), start=1):
        logger.critical(f"  {number}. {hint}")
