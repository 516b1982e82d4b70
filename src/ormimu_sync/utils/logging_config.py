"""Logging configuration for the device sync engine.

Console logs go to stderr so the rich progress bar and tables on stdout stay
readable; an optional rotating log file keeps a full record of long syncs.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Optional, TextIO

CONSOLE_FORMAT = "%(asctime)s - %(location)-25s - %(levelname)s - %(message)s"
FILE_FORMAT = (
    "%(asctime)s - %(threadName)-12s - %(location)-25s - %(levelname)-8s - %(message)s"
)

# Libraries that log per file or per frame at INFO/DEBUG
NOISY_LOGGERS = ("mutagen", "markdown_it", "asyncio", "concurrent.futures")


class LocationFormatter(logging.Formatter):
    """Formatter that adds a ``file:line`` location field."""

    def format(self, record: Any) -> str:
        """Format log record with combined location field."""
        record.location = f"{record.filename}:{record.lineno}"
        return super().format(record)


class ColoredFormatter(LocationFormatter):
    """Console formatter that colours the level name."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, *args: Any, use_color: bool = True, **kwargs: Any) -> None:
        """Initialize formatter.

        Args:
            use_color: Emit ANSI colours (off when the stream is not a terminal)
        """
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: Any) -> str:
        """Format log record, padding the level name before colouring it."""
        levelname = record.levelname
        padded = f"{levelname:<8}"
        if self.use_color and levelname in self.COLORS:
            padded = f"{self.COLORS[levelname]}{padded}{self.RESET}"

        record.levelname = padded
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _wants_color(stream: TextIO) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        ColoredFormatter(
            fmt=CONSOLE_FORMAT,
            datefmt="%H:%M:%S",
            use_color=_wants_color(sys.stderr),
        )
    )
    return handler


def _file_handler(
    log_file: Path, level: int, max_file_size: int, backup_count: int
) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(
        LocationFormatter(fmt=FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    )
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """Set up application logging.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a rotating log file
        console_output: Whether to log to stderr
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of rotated log files to keep
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_output:
        root_logger.addHandler(_console_handler(level))
    if log_file:
        root_logger.addHandler(
            _file_handler(Path(log_file), level, max_file_size, backup_count)
        )

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized - Level: %s", log_level)
    if log_file:
        logger.info("Log file: %s", log_file)


def configure_third_party_loggers() -> None:
    """Keep library loggers at WARNING whatever the application level is."""
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
