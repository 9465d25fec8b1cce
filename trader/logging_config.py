import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional, Union

# Log levels mapping
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# Default log format
DEFAULT_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s"

DEFAULT_LEVEL = "warning"
DEFAULT_MAX_BYTES = 10485760  # 10MB
DEFAULT_BACKUP_COUNT = 5

# Environment variables
LOG_LEVEL_ENV = "TRADER_LOG_LEVEL"
LOG_FORMAT_ENV = "TRADER_LOG_FORMAT"
LOG_MAX_BYTES_ENV = "TRADER_LOG_MAX_BYTES"
LOG_BACKUP_COUNT_ENV = "TRADER_LOG_BACKUP_COUNT"


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"Warning: Invalid integer '{raw}' in {name}, using {default}", file=sys.stderr)
        return default


def setup_logging(
    level: Optional[str] = None,
    format_style: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = None,
    verbose: bool = False,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
) -> logging.Logger:
    """
    Setup logging configuration for the trader CLI.

    Console output goes to stderr so that command output on stdout stays
    clean. A rotating file handler is added when ``log_file`` is given.

    Args:
        level: Log level (debug, info, warning, error, critical)
        format_style: Log format style (simple, verbose)
        log_file: Optional file path for logging
        verbose: Force debug level and the verbose format
        max_bytes: Maximum log file size before rotation (default: 10MB)
        backup_count: Number of backup files to keep (default: 5)

    Returns:
        Configured root logger
    """
    if verbose:
        level = "debug"
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, DEFAULT_LEVEL)
    level = level.lower()
    if format_style is None:
        format_style = os.getenv(LOG_FORMAT_ENV, "simple").lower()
    if max_bytes is None:
        max_bytes = _int_from_env(LOG_MAX_BYTES_ENV, DEFAULT_MAX_BYTES)
    if backup_count is None:
        backup_count = _int_from_env(LOG_BACKUP_COUNT_ENV, DEFAULT_BACKUP_COUNT)

    # Validate log level
    if level not in LOG_LEVELS:
        print(f"Warning: Invalid log level '{level}', using '{DEFAULT_LEVEL}'", file=sys.stderr)
        level = DEFAULT_LEVEL

    log_level = LOG_LEVELS[level]

    # Choose format
    if verbose or format_style == "verbose":
        log_format = VERBOSE_FORMAT
    else:
        log_format = DEFAULT_FORMAT

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_logger.info(f"Logging to file: {log_path} (max: {max_bytes//1024//1024}MB, backups: {backup_count})")
        except OSError as e:
            root_logger.error(f"Failed to setup file logging to {log_file}: {e}")

    root_logger.debug(f"Logging initialized - Level: {level.upper()}, Format: {format_style}")

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
