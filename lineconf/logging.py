"""
Logging setup for lineconf.

All loggers live under the "lineconf" hierarchy. Console output goes to
stderr (colored on a terminal); an optional rotating log file receives
the same records without colors.
"""

import logging
import logging.handlers
import sys
from dataclasses import dataclass
from pathlib import Path


RESET = "\033[0m"

LEVEL_COLORS = {
    logging.DEBUG: "\033[2m\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1m\033[91m",
}

# Logger name suffix -> color
COMPONENT_COLORS = {
    "reader": "\033[35m",
    "parser": "\033[34m",
    "loader": "\033[36m",
    "values": "\033[32m",
}

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log file rotation
LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUP_COUNT = 3

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class LineconfFormatter(logging.Formatter):
    """
    Formatter with a fixed-width level column and optional ANSI colors.

    Formatting works on a copy of the record, so handlers sharing a
    record never see each other's decorations.
    """

    def __init__(self, use_colors: bool = False):
        super().__init__(LOG_FORMAT, DATE_FORMAT)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        shown = logging.makeLogRecord(record.__dict__)
        shown.levelname = f"{record.levelname:8}"

        if self.use_colors:
            shown.levelname = f"{LEVEL_COLORS.get(record.levelno, '')}{shown.levelname}{RESET}"

            component = record.name.rsplit(".", 1)[-1]
            if component in COMPONENT_COLORS:
                shown.name = f"{COMPONENT_COLORS[component]}{record.name}{RESET}"

            if record.levelno >= logging.ERROR:
                shown.msg = f"{LEVEL_COLORS[logging.ERROR]}{record.msg}{RESET}"
            elif record.levelno >= logging.WARNING:
                shown.msg = f"{LEVEL_COLORS[logging.WARNING]}{record.msg}{RESET}"

        return super().format(shown)


@dataclass
class LogConfig:
    """Where log records go and at which levels."""

    console_level: str = "warning"
    console_colors: bool = True

    # No log file when None
    file_path: str | None = None
    file_level: str = "debug"


def get_log_level(level_str: str) -> int:
    """Convert a level name to a logging constant, INFO if unknown."""
    return _LEVELS.get(level_str.lower(), logging.INFO)


def setup_logging(config: LogConfig | None = None) -> None:
    """Install console and file handlers on the lineconf logger, replacing old ones."""
    if config is None:
        config = LogConfig()

    root_logger = logging.getLogger("lineconf")
    root_logger.setLevel(logging.DEBUG)  # Filtering happens per handler
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()

    use_colors = config.console_colors and sys.stderr.isatty()
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(get_log_level(config.console_level))
    console_handler.setFormatter(LineconfFormatter(use_colors))
    root_logger.addHandler(console_handler)

    if config.file_path:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(get_log_level(config.file_level))
        file_handler.setFormatter(LineconfFormatter())
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, prefixed with "lineconf." unless already."""
    if name.startswith("lineconf"):
        return logging.getLogger(name)
    return logging.getLogger(f"lineconf.{name}")
