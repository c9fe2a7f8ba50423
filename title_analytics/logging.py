"""
Logging configuration and utilities for title analytics.

Provides:
- Colored console output
- Optional rotating log file
- JSON logging for machine consumption
- Timing of load and query operations
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from time import perf_counter
from typing import Optional

from .config import LogConfig


ROOT_LOGGER_NAME = "title_analytics"


RESET = "\033[0m"

LEVEL_COLORS = {
    "DEBUG": "\033[2;36m",     # dim cyan
    "INFO": "\033[32m",        # green
    "WARNING": "\033[33m",     # yellow
    "ERROR": "\033[31m",       # red
    "CRITICAL": "\033[1;37;41m",
}

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name when stderr is a terminal."""

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
    ):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors or record.levelname not in LEVEL_COLORS:
            return super().format(record)

        # color a copy so other handlers see the plain level name
        colored = logging.makeLogRecord(vars(record))
        colored.levelname = f"{LEVEL_COLORS[record.levelname]}{record.levelname}{RESET}"
        return super().format(colored)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with any extra= fields under "extra"."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def setup_logging(config: Optional[LogConfig] = None) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        config: LogConfig instance or None for defaults

    Returns:
        Configured root package logger
    """
    config = config or LogConfig()
    level = getattr(logging, config.level.upper())

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    # Results go to stdout, so log records go to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if config.json_enabled:
        console_handler.setFormatter(JSONFormatter())
    elif config.console_colors:
        console_handler.setFormatter(ColoredFormatter(config.format, config.date_format))
    else:
        console_handler.setFormatter(logging.Formatter(config.format, config.date_format))
    logger.addHandler(console_handler)

    if config.file_path:
        file_path = Path(config.file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            file_path,
            maxBytes=config.file_max_bytes,
            backupCount=config.file_backup_count,
        )
        file_handler.setLevel(level)
        if config.json_enabled:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(config.format, config.date_format))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a package component.

    Args:
        name: Logger name (prefixed with 'title_analytics.' if needed)
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


@contextmanager
def log_execution_time(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
):
    """
    Context manager to log execution time of an operation.

    Example:
        with log_execution_time(logger, "load titles.csv"):
            loader.load()
    """
    start_time = perf_counter()
    logger.log(level, f"Starting: {operation}")

    try:
        yield
    except Exception as e:
        elapsed = perf_counter() - start_time
        logger.error(f"Failed: {operation} after {elapsed:.3f}s - {e}")
        raise
    else:
        elapsed = perf_counter() - start_time
        logger.log(level, f"Completed: {operation} in {elapsed:.3f}s")
