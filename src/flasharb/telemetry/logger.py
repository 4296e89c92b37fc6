"""
Queue-based logging setup.

Log records are handed to a background listener thread so console and
file I/O never block the event loop between scans.
"""

import logging
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue

from flasharb.config.constants import LOG_DATE_FORMAT, LOG_FORMAT, MAX_LOG_QUEUE_SIZE


# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("aiohttp", "asyncio", "urllib3", "web3", "uvicorn.access")


class MillisecondFormatter(logging.Formatter):
    """Formatter with millisecond precision timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ct = datetime.fromtimestamp(record.created)
        return f"{ct.strftime(datefmt or LOG_DATE_FORMAT)}.{int(record.msecs):03d}"


class QueueLogging:
    """
    Owns the queue listener behind the root logger.

    Use as a context manager or call `start()` / `stop()`.
    """

    def __init__(self, level: int = logging.INFO, log_file: Path | None = None) -> None:
        self._level = level
        self._log_file = log_file
        self._queue: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._listener: QueueListener | None = None
        self._queue_handler: QueueHandler | None = None

    def start(self) -> None:
        """Attach the queue handler to the root logger and start the listener."""
        if self._listener is not None:
            return

        formatter = MillisecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT)
        handlers: list[logging.Handler] = []

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(self._level)
        handlers.append(console_handler)

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self._log_file)
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)  # Everything goes to file
            handlers.append(file_handler)

        root_logger = logging.getLogger()
        self._queue_handler = QueueHandler(self._queue)
        root_logger.addHandler(self._queue_handler)

        self._listener = QueueListener(self._queue, *handlers, respect_handler_level=True)
        self._listener.start()

    def stop(self) -> None:
        """Flush pending records and detach from the root logger."""
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
        if self._queue_handler is not None:
            logging.getLogger().removeHandler(self._queue_handler)
            self._queue_handler = None

    @property
    def is_running(self) -> bool:
        return self._listener is not None

    def __enter__(self) -> "QueueLogging":
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> QueueLogging:
    """
    Set up application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path.

    Returns:
        Started QueueLogging; call `stop()` on shutdown.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    queue_logging = QueueLogging(level=numeric_level, log_file=log_file)
    queue_logging.start()

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return queue_logging
