import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'


class MainFormatter(logging.Formatter):
    """A custom formatter to handle regular logs and raw external process output."""

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        # Lines relayed from the converter ('proc.' loggers) are already complete messages.
        if record.name.startswith('proc.'):
            return record.getMessage()
        return super().format(record)


def setup_logging(console_level: int = logging.INFO, stream: Optional[TextIO] = None) -> None:
    """
    Configures the root logger for the application.
    Clears any previously configured handlers to prevent duplication, then
    installs a single console handler.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param stream: Where to write; defaults to stdout.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(console_level)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # Hypercorn and watchdog are chatty at DEBUG; keep them at INFO unless asked otherwise.
    if console_level > logging.DEBUG:
        logging.getLogger("watchdog").setLevel(logging.INFO)
    logging.getLogger("hypercorn.error").setLevel(max(console_level, logging.INFO))
