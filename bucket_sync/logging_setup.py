"""Logging setup for the bucket sync tool.

One named logger carries the whole run: the planned and applied jobs, the
dry-run report and the final summary. Records go to a log file (rotated
by default) and, unless disabled, to the console.
"""

import getpass
import logging
import logging.handlers
from pathlib import Path

LOGGER_NAME = "bucket_sync"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [{user}] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# AWS SDK loggers; their wire logging drowns out the sync report at DEBUG
SDK_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")


def _current_user() -> str:
    """Name of the user running the sync, for the log line prefix."""
    try:
        return getpass.getuser()
    except Exception:
        return "unknown"


def _file_handler(
    log_path: Path, max_bytes: int, backup_count: int, rotation_enabled: bool
) -> logging.Handler:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    if rotation_enabled:
        return logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
    return logging.FileHandler(log_path)


def _quiet_sdk_loggers(level: int) -> None:
    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_logging(
    log_file: str,
    log_level: str = "INFO",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    rotation_enabled: bool = True,
    console: bool = True,
) -> logging.Logger:
    """Configure the bucket sync logger.

    Calling this again replaces the handlers of the previous call.

    Args:
        log_file: Path to log file; parent directories are created
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        max_bytes: Max size of log file before rotation (in bytes)
        backup_count: Number of rotated files to keep
        rotation_enabled: Rotate the log file instead of growing it
        console: Also log to stderr

    Returns:
        Configured logger instance
    """
    level = getattr(logging, log_level.upper())
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handlers = [_file_handler(Path(log_file), max_bytes, backup_count, rotation_enabled)]
    if console:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT.format(user=_current_user()), datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    _quiet_sdk_loggers(level)
    return logger


def get_logger() -> logging.Logger:
    """Get the configured bucket sync logger."""
    return logging.getLogger(LOGGER_NAME)
