"""Handler construction and root logger wiring.

Handlers hang off a ``QueueListener``; loggers only ever hold a
``QueueHandler``. A slow disk therefore never stalls a settings save
that happens to log. Records still propagate past ``delta_settings``
so an application's own logging configuration receives them.
"""

import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path

from delta_settings.constants import (
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_DATE_FORMAT,
    LOG_CONSOLE_FORMAT,
    LOG_FILE_DATE_FORMAT,
    LOG_FILE_FORMAT,
    LOG_ROTATION_THRESHOLD_BYTES,
    ROOT_LOGGER_NAME,
)
from delta_settings.logger.formatters import HybridConsoleFormatter


class ConfigurationError(Exception):
    """Error in logging configuration."""


class HostConsoleFilter(logging.Filter):
    """Drop console records once the application configures logging.

    Records also propagate to the Python root logger. When that logger
    has handlers of its own, the application is already printing them.
    """

    def __init__(self, host: logging.Logger | None = None) -> None:
        super().__init__()
        self.host = host if host is not None else logging.getLogger()

    def filter(self, record: logging.LogRecord) -> bool:
        return not self.host.handlers


def _create_console_handler(console_level: str) -> logging.StreamHandler:
    """Create the console handler.

    Args:
        console_level: Level name for console output

    Returns:
        StreamHandler writing to stderr

    """
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        HybridConsoleFormatter(
            LOG_CONSOLE_FORMAT,
            datefmt=LOG_CONSOLE_DATE_FORMAT,
        )
    )
    console_handler.setLevel(getattr(logging, console_level, logging.WARNING))
    console_handler.addFilter(HostConsoleFilter())
    return console_handler


def _create_file_handler(
    log_file: Path, file_level: str
) -> RotatingFileHandler:
    """Create the rotating file handler.

    Args:
        log_file: Destination log file
        file_level: Level name for file output

    Returns:
        Configured RotatingFileHandler

    Raises:
        ConfigurationError: If the log directory or file cannot be opened

    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=LOG_ROTATION_THRESHOLD_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        msg = f"Failed to setup file logging: {e}"
        raise ConfigurationError(msg) from e

    file_handler.setFormatter(
        logging.Formatter(LOG_FILE_FORMAT, datefmt=LOG_FILE_DATE_FORMAT)
    )
    file_handler.setLevel(getattr(logging, file_level, logging.INFO))
    return file_handler


def setup_root_logger(
    state,
    console_level: str,
    file_level: str,
    log_file: Path | None,
) -> None:
    """Attach the queue handler to the root logger and start the listener.

    Called exactly once per process (guarded by ``state.lock``).

    Args:
        state: Logger state object (from logger.state)
        console_level: Console level name
        file_level: File level name
        log_file: Log file path, or None to disable file logging

    Raises:
        ConfigurationError: If the file handler cannot be created

    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)
    # Host applications see records through their own root handlers
    root_logger.propagate = True

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    handlers: list[logging.Handler] = [_create_console_handler(console_level)]
    if log_file is not None:
        handlers.append(_create_file_handler(log_file, file_level))

    state.log_queue = queue.Queue(-1)
    state.queue_listener = QueueListener(
        state.log_queue,
        *handlers,
        respect_handler_level=True,
    )
    state.queue_listener.start()

    root_logger.addHandler(QueueHandler(state.log_queue))
    state.root_initialized = True
