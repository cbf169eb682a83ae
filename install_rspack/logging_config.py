"""
Centralized logging configuration for install-rspack.

Provides console and file output for the override workflow. Console
messages are the user-facing progress log; the optional file handler
always records everything at DEBUG level.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


LOGGER_NAME = "install_rspack"

# Global logger instance
_logger: Optional[logging.Logger] = None


def setup_logging(
    log_file: Optional[str] = None,
    verbose: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        log_file: Optional file path for log output
        verbose: Enable verbose (DEBUG) output
        propagate: Allow log propagation (useful for testing)

    Returns:
        Configured logger instance
    """
    global _logger

    effective_level = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(effective_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(effective_level)
    console_handler.setFormatter(
        ColoredFormatter(
            "%(levelname_colored)s %(message)s",
            use_colors=sys.stdout.isatty(),
        )
    )
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    logger.propagate = propagate

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """
    Get the configured logger instance.

    If logging hasn't been set up, initializes with defaults.
    """
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger


class ColoredFormatter(logging.Formatter):
    """
    Formatter with colored step markers for different log levels.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[1;31m', # Bold Red
    }
    RESET = '\033[0m'

    SYMBOLS = {
        'DEBUG': '·',
        'INFO': '◇',
        'WARNING': '▲',
        'ERROR': '■',
        'CRITICAL': '■',
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        symbol = self.SYMBOLS.get(record.levelname, '')
        if self.use_colors:
            color = self.COLORS.get(record.levelname, '')
            record.levelname_colored = f"{color}{symbol}{self.RESET}"
        else:
            record.levelname_colored = symbol or record.levelname

        return super().format(record)
