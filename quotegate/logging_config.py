"""
Centralized logging configuration for quotegate.

Use `get_logger(__name__)` in each module to get a properly configured logger.
The library never configures handlers on import; applications call
`setup_logging()` once at startup.

Usage:
    from quotegate.logging_config import get_logger, setup_logging

    # At application startup
    setup_logging(level="INFO")

    # In each module
    logger = get_logger(__name__)
    logger.debug("Cache hit (quote): %s", key)
    logger.warning("Serving stale %s data for %s", category, key)
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Simple format for console (less verbose)
CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"

# Top-level logger for the package
PACKAGE_LOGGER = "quotegate"

NOISY_LOGGERS = ("urllib3", "requests", "charset_normalizer")


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors for terminal output."""

    COLORS = {
        logging.DEBUG: "\033[36m",     # Cyan
        logging.INFO: "\033[32m",      # Green
        logging.WARNING: "\033[33m",   # Yellow
        logging.ERROR: "\033[31m",     # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, self.RESET)
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    colored: bool = True,
) -> None:
    """
    Configure logging for the quotegate package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name. A timestamped name is generated
            when only `log_dir` is given.
        log_dir: Directory for log files (created if it doesn't exist).
            No file logging when both `log_file` and `log_dir` are None.
        console_output: Whether to output to console (stderr)
        colored: Whether to use colored output in console

    Example:
        # Basic setup
        setup_logging()

        # Debug mode with file logging
        setup_logging(level="DEBUG", log_file="debug.log", log_dir="logs")
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)

        if colored and sys.stderr.isatty():
            formatter = ColoredFormatter(CONSOLE_FORMAT, LOG_DATE_FORMAT)
        else:
            formatter = logging.Formatter(CONSOLE_FORMAT, LOG_DATE_FORMAT)

        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    if log_file is not None or log_dir is not None:
        log_path = Path(log_dir or "logs")
        log_path.mkdir(parents=True, exist_ok=True)

        if log_file is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = f"quotegate_{timestamp}.log"

        file_handler = logging.FileHandler(log_path / log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        package_logger.addHandler(file_handler)

    # Handled here; don't double-print through the root logger
    package_logger.propagate = not package_logger.handlers

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance

    Example:
        logger = get_logger(__name__)
        logger.info("Fetching quote for %s", symbol)
    """
    return logging.getLogger(name)


def set_level(level: str, logger_name: Optional[str] = None) -> None:
    """
    Change logging level at runtime.

    Args:
        level: New logging level
        logger_name: Specific logger to adjust, or None for the package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger(logger_name or PACKAGE_LOGGER).setLevel(numeric_level)
