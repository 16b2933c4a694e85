"""
Logging Configuration Module.

All loggers in the package hang off the "invoice_recon" logger. Library
code only ever calls get_logger(__name__); handlers are attached by the
application (the CLI calls setup_logger_from_config once at startup).

Console output is written to stderr, so JSON written to stdout by the CLI
can be piped without log lines mixed in.

Usage:
    from invoice_recon.utils.logger import setup_logger, get_logger

    setup_logger(level="DEBUG")
    logger = get_logger(__name__)
    logger.info("Reconciling batch...")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

import colorama
from colorama import Fore, Style

from .exceptions import ConfigurationError

colorama.just_fix_windows_console()

ROOT_LOGGER_NAME = "invoice_recon"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """
    Formatter that tints each console line by level.

    DEBUG cyan, INFO green, WARNING yellow, ERROR red, CRITICAL bright red.
    """

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }
    RESET = Style.RESET_ALL

    def format(self, record: logging.LogRecord) -> str:
        return f"{self.COLORS.get(record.levelno, '')}{super().format(record)}{self.RESET}"


def resolve_level(level: Union[str, int]) -> int:
    """
    Turn a level name ("debug", "INFO") or number into a logging level.

    Raises:
        ConfigurationError: If the name is not a standard logging level.
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown logging level: {level}", {"level": level})
    return resolved


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(
    log_file: str,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int
) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    level: Union[str, int] = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,  # 10 MB
    backup_count: int = 5,
    colorize: bool = True
) -> logging.Logger:
    """
    Attach console (and optionally rotating file) handlers to the package logger.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Level name or number.
        log_format: Record format, defaults to DEFAULT_FORMAT.
        date_format: Timestamp format, defaults to DEFAULT_DATE_FORMAT.
        log_file: Rotating log file path; None disables file logging.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files kept.
        colorize: Tint console output by level.

    Returns:
        The package logger.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/invoice_recon.log")
    """
    numeric_level = resolve_level(level)
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    formatter_cls = ColoredFormatter if colorize else logging.Formatter
    plain = logging.Formatter(log_format, datefmt=date_format)

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    package_logger.setLevel(numeric_level)
    package_logger.addHandler(
        _console_handler(numeric_level, formatter_cls(log_format, datefmt=date_format))
    )
    if log_file:
        package_logger.addHandler(
            _file_handler(log_file, numeric_level, plain, max_bytes, backup_count)
        )
    package_logger.propagate = False

    package_logger.debug(
        f"Logging initialized at {logging.getLevelName(numeric_level)}"
        + (f", file {log_file}" if log_file else "")
    )
    return package_logger


def set_level(level: Union[str, int]) -> None:
    """Change the level of the package logger and all of its handlers."""
    numeric_level = resolve_level(level)
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(numeric_level)
    for handler in package_logger.handlers:
        handler.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for a module, nested under the package logger.

    Example:
        >>> get_logger("main").name
        'invoice_recon.main'
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger_from_config() -> logging.Logger:
    """Run setup_logger with the "logging" section of the settings file."""
    from config import get_config

    file_enabled = get_config("logging.file.enabled", False)
    return setup_logger(
        level=get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=get_config("logging.file.path") if file_enabled else None,
        max_bytes=get_config("logging.file.max_bytes", 10485760),
        backup_count=get_config("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize", True)
    )
