"""
Enrollment Logging System
Provides structured logging to separate files with automatic rotation.

Log Files:
- enrollment.log: Enrollment runs (attempts, rejections, votes, outcomes)
- error.log: Unexpected errors and consensus ties
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from .config import LOG_DIR, LOG_MAX_BYTES, LOG_BACKUP_COUNT, VERBOSE


# Log file paths
ENROLLMENT_LOG = LOG_DIR / "enrollment.log"
ERROR_LOG = LOG_DIR / "error.log"


# Log formats
DETAILED_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def _create_rotating_handler(
    log_file: Path,
    max_bytes: int = LOG_MAX_BYTES,
    backup_count: int = LOG_BACKUP_COUNT,
    formatter_string: Optional[str] = None
) -> RotatingFileHandler:
    """
    Create a rotating file handler.

    Args:
        log_file: Path to the log file
        max_bytes: Max file size before rotation (default 10MB)
        backup_count: Number of backup files to keep (default 5)
        formatter_string: Log format string (default DETAILED_FORMAT)

    Returns:
        Configured RotatingFileHandler
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8',
        delay=True
    )

    formatter = logging.Formatter(formatter_string or DETAILED_FORMAT)
    handler.setFormatter(formatter)

    return handler


def _get_logger(name: str, log_file: Path, level: int = logging.INFO) -> logging.Logger:
    """
    Get or create a logger with rotating file handler.

    Args:
        name: Logger name
        log_file: Path to log file
        level: Logging level (default INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(level)

    logger.addHandler(_create_rotating_handler(log_file))

    if VERBOSE:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(DETAILED_FORMAT))
        logger.addHandler(console)

    return logger


# Create specialized loggers
enrollment_logger = _get_logger("fpenroll.enrollment", ENROLLMENT_LOG, level=logging.DEBUG)
error_logger = _get_logger("fpenroll.error", ERROR_LOG, level=logging.WARNING)


# Convenience functions

def log_enrollment(
    operation: str,
    result: str,
    details: Optional[Dict[str, Any]] = None
):
    """
    Log an enrollment event.

    Args:
        operation: Event type (CAPTURE, VOTE, ENROLL, ...)
        result: Event result (ACCEPTED, REJECTED, COMPLETED, RETRY, FAILED, ...)
        details: Additional details dict (attempt, features, scores, ...)
    """
    detail_str = ""
    if details:
        detail_parts = [f"{k}={v}" for k, v in details.items()]
        detail_str = f" - {', '.join(detail_parts)}"

    enrollment_logger.info(f"{operation} {result}{detail_str}")


def log_error(
    error: Exception,
    context: Optional[str] = None,
    exc_info: bool = True
):
    """
    Log an error.

    Args:
        error: Exception object
        context: Where the error occurred (collaborator, step, ...)
        exc_info: Include the stack trace (default True)
    """
    context_info = f" in {context}" if context else ""

    error_logger.error(
        f"{type(error).__name__}: {str(error)}{context_info}",
        exc_info=exc_info
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger that writes to enrollment.log.

    Args:
        name: Logger name (suffix under "fpenroll.enrollment")

    Returns:
        Logger instance
    """
    return logging.getLogger(f"fpenroll.enrollment.{name}")
