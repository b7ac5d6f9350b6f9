"""
Queue-based logging.

Log records are handed to a background thread so console and file I/O
never block the event loop driving the simulation.
"""

import logging
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue

from mev_dashboard.config.constants import LOG_DATE_FORMAT, LOG_FORMAT, MAX_LOG_QUEUE_SIZE


# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("aiohttp", "asyncio", "uvicorn.access", "httpx")


class MillisecondFormatter(logging.Formatter):
    """Formatter with millisecond precision timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ct = datetime.fromtimestamp(record.created)
        return f"{ct.strftime(datefmt or LOG_DATE_FORMAT)}.{int(record.msecs):03d}"


class AsyncLogger:
    """
    Non-blocking log output for a logger hierarchy.

    Records are queued by a QueueHandler and written by a
    QueueListener thread.
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        log_file: Path | None = None,
    ) -> None:
        """
        Initialize async logger.

        Args:
            name: Name of the logger hierarchy to attach to.
            level: Console logging level.
            log_file: Optional file that receives every record.
        """
        self._name = name
        self._level = level
        self._log_file = log_file
        self._queue: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._queue_handler: QueueHandler | None = None
        self._listener: QueueListener | None = None
        self._logger = logging.getLogger(name)

    def _build_handlers(self) -> list[logging.Handler]:
        formatter = MillisecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(self._level)
        handlers: list[logging.Handler] = [console_handler]

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self._log_file)
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)
            handlers.append(file_handler)

        return handlers

    def start(self) -> None:
        """Attach the queue handler and start the writer thread."""
        if self._listener is not None:
            return

        self._queue_handler = QueueHandler(self._queue)
        self._logger.addHandler(self._queue_handler)
        self._logger.setLevel(logging.DEBUG if self._log_file else self._level)

        self._listener = QueueListener(
            self._queue,
            *self._build_handlers(),
            respect_handler_level=True,
        )
        self._listener.start()

    def stop(self) -> None:
        """Flush queued records and detach."""
        if self._listener:
            self._listener.stop()
            self._listener = None
        if self._queue_handler:
            self._logger.removeHandler(self._queue_handler)
            self._queue_handler = None

    @property
    def logger(self) -> logging.Logger:
        """Get the underlying logger."""
        return self._logger

    @property
    def is_running(self) -> bool:
        """Whether the writer thread is active."""
        return self._listener is not None

    def __enter__(self) -> "AsyncLogger":
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
) -> AsyncLogger:
    """
    Set up application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path.

    Returns:
        Started AsyncLogger; call stop() on shutdown.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    async_logger = AsyncLogger(
        name="mev_dashboard",
        level=numeric_level,
        log_file=log_file,
    )
    async_logger.start()

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return async_logger
