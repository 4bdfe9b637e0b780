"""
Logging setup with colored console output and an optional rotating file.
"""

import os
import sys
import logging
import logging.handlers

ANSI_COLORS = {
    "red": "\033[31m\033[1m",
    "green": "\033[32m\033[1m",
    "yellow": "\033[33m\033[1m",
}
ANSI_RESET = "\033[0m"

LEVEL_COLORS = {
    logging.ERROR: "red",
    logging.CRITICAL: "red",
    logging.WARNING: "yellow",
}


class ColorFormatter(logging.Formatter):
    """Wraps the level name in ANSI color codes.

    The color comes from a `color` extra on the record when present
    (e.g. extra={"color": "green"}), otherwise from the record's level.
    """

    def __init__(self, fmt=None, datefmt=None, enabled=True):
        super().__init__(fmt, datefmt)
        self._enabled = enabled

    def format(self, record):
        color = getattr(record, "color", None) or LEVEL_COLORS.get(record.levelno)
        if not self._enabled or color not in ANSI_COLORS:
            return super().format(record)

        original = record.levelname
        record.levelname = f"{ANSI_COLORS[color]}{original}{ANSI_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3,
                  color=True, stream=None):
    """Configure logging for the daemon.

    Console output goes to stderr so diagnostics never mix with stdout.
    """
    console_format = "[%(asctime)s] %(levelname)s: %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-40s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Remove existing handlers
    root_logger.handlers.clear()

    stream = stream or sys.stderr
    use_color = color and hasattr(stream, "isatty") and stream.isatty()
    console = logging.StreamHandler(stream)
    console.setFormatter(ColorFormatter(console_format, datefmt=date_format, enabled=use_color))
    root_logger.addHandler(console)

    # File handler (rotating)
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt="%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(file_handler)

    return root_logger
