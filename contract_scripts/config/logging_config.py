"""
Logging configuration for the contract scripts.

Provides:
- Timestamps and levels on every line
- Console output on stdout (shared with the JSON payload the scripts print)
- Optional file logging with daily rotation and a separate error log,
  enabled by setting ``LOG_DIR``
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

# Log formats
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Every module logs under this root so one setup call covers the package
ROOT_LOGGER_NAME = "contract_scripts"


def _level_from_env(default: int) -> int:
    name = os.getenv("LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    console: bool = True,
    detailed: bool = False,
) -> logging.Logger:
    """
    Setup a logger with console and (optionally) file handlers.

    Args:
        name: Logger name
        level: Logging level, overridden by ``LOG_LEVEL`` when set
        log_dir: Directory for log files; defaults to ``LOG_DIR``. No file
            handlers are attached when neither is set.
        console: Whether to log to stdout
        detailed: Whether to use detailed format (includes file/line)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger(level=logging.DEBUG)
        >>> logger.info("Compiling contracts")
    """
    logger = logging.getLogger(name)
    level = _level_from_env(level)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    log_format = DETAILED_FORMAT if detailed else SIMPLE_FORMAT
    formatter = logging.Formatter(log_format, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    log_dir = log_dir or os.getenv("LOG_DIR")
    if log_dir:
        dir_path = Path(log_dir)
        dir_path.mkdir(parents=True, exist_ok=True)

        file_handler = TimedRotatingFileHandler(
            dir_path / f"{name}.log",
            when="midnight",
            interval=1,
            backupCount=30,  # Keep 30 days of logs
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        error_handler = RotatingFileHandler(
            dir_path / f"{name}_errors.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(error_handler)

    return logger


def get_script_logger(debug: bool = False) -> logging.Logger:
    """Get the package logger configured for a CLI run."""
    level = logging.DEBUG if debug else logging.INFO
    return setup_logger(ROOT_LOGGER_NAME, level=level, detailed=debug)
