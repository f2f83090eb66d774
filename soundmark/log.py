"""
Console logging for the command line tool.

Library modules only create loggers (`logging.getLogger(__name__)`); handlers
are installed here, by the CLI.
"""

import logging
import sys

from wcwidth import wcswidth

LOGGER_NAME = "soundmark"


class PrettyFormatter(logging.Formatter):
    """Custom formatter with colors and level icons."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    ICONS = {
        'DEBUG': '🔍',
        'INFO': '✅',
        'WARNING': '⚠️ ',
        'ERROR': '❌',
        'CRITICAL': '🔥',
    }

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record):
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if not self.use_color:
            return f"[{timestamp}] {record.levelname:<8} | {message}"

        color = self.COLORS.get(record.levelname, self.RESET)
        icon = self.ICONS.get(record.levelname, '')
        return (
            f"{self.BOLD}[{timestamp}]{self.RESET} "
            f"{color}{icon} {record.levelname:<8}{self.RESET} │ "
            f"{message}"
        )


def setup_logging(verbose: bool = False, stream=None) -> logging.Logger:
    """Configure the package logger with pretty console output."""
    stream = stream or sys.stderr
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # calling twice (e.g. from tests) must not duplicate output
    for handler in list(logger.handlers):
        if getattr(handler, "_soundmark", False):
            logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(PrettyFormatter(use_color=stream.isatty()))
    console_handler._soundmark = True
    logger.addHandler(console_handler)
    return logger


def _center_display(s: str, target_cols: int) -> str:
    """Center using terminal display width (handles emoji/double-width chars)."""
    w = wcswidth(s)
    if w < 0:
        w = len(s)

    if w >= target_cols:
        return s

    pad = target_cols - w
    left = pad // 2
    right = pad - left
    return (" " * left) + s + (" " * right)


def format_section(title: str, width: int = 50) -> str:
    """A boxed, centred section header."""
    border = "═" * width
    centered = _center_display(title, width - 2)
    return f"╔{border}╗\n║ {centered} ║\n╚{border}╝"
