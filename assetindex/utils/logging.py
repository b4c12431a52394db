"""Unified logging configuration for the content index.

Provides consistent logging with console output and optional rotating
file output. Every module logger lives under the ``assetindex`` namespace so
a single parent handler set covers the whole package.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from assetindex.settings import settings

LOGGER_NAMESPACE = "assetindex"

# Default log format
LOG_FORMAT = "[%(asctime)s.%(msecs)03d][%(levelname)s][%(filename)s:%(lineno)d]: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _ensure_package_logger_configured():
    """
    Ensure the package parent logger has the formatted console handler.
    This is called automatically on module import.
    """
    package_logger = logging.getLogger(LOGGER_NAMESPACE)

    has_formatted_handler = any(
        isinstance(h, logging.StreamHandler)
        and not isinstance(h, RotatingFileHandler)
        and h.formatter
        and "%(asctime)s" in (h.formatter._fmt if hasattr(h.formatter, "_fmt") else "")
        for h in package_logger.handlers
    )

    if not has_formatted_handler:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        package_logger.addHandler(console_handler)

        if settings.debug:
            package_logger.setLevel(logging.DEBUG)
        else:
            package_logger.setLevel(logging.INFO)

        # Keep our records out of the root logger's handlers
        package_logger.propagate = False


def setup_logging(log_name: str = "assetindex") -> logging.Logger:
    """
    Setup logging with console and file output.

    Log file path pattern: {workspace}/logs/{log_name}.log
    Falls back to console-only logging when the directory can't be created.

    Args:
        log_name: The name of the log file (without .log extension).

    Returns:
        Configured logger instance
    """
    _ensure_package_logger_configured()

    log_dir = _get_logs_root()

    logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{log_name}")

    if log_dir:
        log_file_path = os.path.join(log_dir, f"{log_name}.log")

        package_logger = logging.getLogger(LOGGER_NAMESPACE)
        if not any(
            isinstance(h, RotatingFileHandler) and h.baseFilename == os.path.abspath(log_file_path)
            for h in package_logger.handlers
        ):
            file_handler = RotatingFileHandler(
                log_file_path,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
            package_logger.addHandler(file_handler)

        logger.propagate = True

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Logger instance
    """
    _ensure_package_logger_configured()

    if name != LOGGER_NAMESPACE and not name.startswith(f"{LOGGER_NAMESPACE}."):
        name = f"{LOGGER_NAMESPACE}.{name}"

    return logging.getLogger(name)


def _get_logs_root() -> Path | None:
    """Logs root directory, or None if it can't be created."""
    logs_root = settings.get_logs_root()
    if _can_create_dir(logs_root):
        return logs_root
    return None


def _can_create_dir(path: Path) -> bool:
    """Check if a directory can be created."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        return True
    except (OSError, PermissionError):
        return False


_ensure_package_logger_configured()
