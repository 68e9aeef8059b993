"""
Logging setup for ftpmirror.

Every line goes to an append-only log file and to the console, formatted as
``<local timestamp> [<level>]: <message>``.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

DEFAULT_LOG_FILE = "server.log"
LOGGER_NAME = "ftpmirror"


class MirrorFormatter(logging.Formatter):
    """Formatter producing ``<timestamp> [<level>]: <message>`` lines."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s [%(levelname)s]: %(message)s")

    def formatTime(
        self, record: logging.LogRecord, datefmt: Optional[str] = None
    ) -> str:
        # Locale date and time, with dashes instead of slashes in the date
        stamp = time.strftime("%x, %X", self.converter(record.created))
        return stamp.replace("/", "-")

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        record.levelname = original.lower()
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(
    log_file: Optional[Union[str, Path]] = DEFAULT_LOG_FILE,
    level: Union[str, int] = "info",
) -> logging.Logger:
    """
    Configure the ftpmirror logger with a file and a console handler.

    Args:
        log_file: Path of the log file (appended to). ``None`` disables it.
        level: Logging level name or number.

    Returns:
        The configured ``ftpmirror`` logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = MirrorFormatter()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(str(log_file), mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Suppress paramiko's verbose error messages
    logging.getLogger("paramiko").setLevel(logging.CRITICAL)

    return logger
