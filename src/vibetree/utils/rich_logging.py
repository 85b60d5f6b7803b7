"""Console and file logging setup for the server and CLI."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class ServerLogFormatter(logging.Formatter):
    """Compact formatter with optional level colors."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        if self.use_colors:
            level_color = self.LEVEL_COLORS.get(record.levelname, "")
            reset = self.RESET
        else:
            level_color = ""
            reset = ""

        # Short module name: vibetree.git.operations -> git.operations
        name = record.name
        if name.startswith("vibetree."):
            name = name[len("vibetree."):]

        message = (
            f"{timestamp} {level_color}{record.levelname:8s}{reset} "
            f"[{name}] {record.getMessage()}"
        )
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    use_colors: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure the ``vibetree`` logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Also write plain-text logs here
        use_colors: Force colors on/off (default: only when stderr is a TTY)

    Returns:
        The package logger
    """
    logger = logging.getLogger("vibetree")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.propagate = False

    # Close existing handlers before clearing (prevents file descriptor leak)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    if use_colors is None:
        use_colors = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ServerLogFormatter(use_colors=use_colors))
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        # Plain formatter for files (no ANSI codes)
        file_handler.setFormatter(ServerLogFormatter(use_colors=False))
        logger.addHandler(file_handler)

    return logger
