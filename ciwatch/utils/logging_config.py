import logging
import sys
import os
from datetime import datetime
from typing import Optional, TextIO

from ciwatch.core.console import supports_color

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """
    Level-coloured log lines.

    With --debug the traces share stdout with the report, so colour follows
    the same rule as the report: only on a TTY, never with NO_COLOR.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31;1m",
    }
    reset = "\x1b[0m"

    def __init__(self, use_color: bool = True) -> None:
        super().__init__(LOG_FORMAT, datefmt=DATE_FORMAT)
        self.use_color = use_color

    def format(self, record):
        line = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno) if self.use_color else None
        return f"{color}{line}{self.reset}" if color else line


def setup_logging(
    level=logging.WARNING,
    stream: Optional[TextIO] = None,
    log_dir: Optional[str] = None,
    logger_names=("ciwatch", "httpx", "uvicorn", "uvicorn.error", "uvicorn.access", "main"),
):
    """
    Setup centralized logging configuration.

    The CLI passes sys.stdout as the stream when request tracing is enabled,
    so traced API calls interleave with the report they produced.
    """
    root_logger = logging.getLogger()

    # Clear existing handlers to prevent duplicate logs
    if root_logger.handlers:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

    root_logger.setLevel(level)

    # 1. Console handler (stderr unless the caller asks otherwise)
    stream = stream or sys.stderr
    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(ColoredFormatter(use_color=supports_color(stream)))
    root_logger.addHandler(console_handler)

    # 2. Optional file handler for persistence
    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(
            os.path.join(log_dir, f"ciwatch_{datetime.now().strftime('%Y%m%d')}.log")
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # Force propagation for all relevant internal loggers
    for logger_name in logger_names:
        l = logging.getLogger(logger_name)
        l.setLevel(level)
        l.propagate = True

    root_logger.debug("Logging initialized (level=%s, file=%s).", logging.getLevelName(level), bool(log_dir))
