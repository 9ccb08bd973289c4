"""Public logging entry points.

- setup_logging(): initialize the root logger once and return a logger
- get_logger(): the call every module makes at import time
- flush_all_handlers(): drain the queue (tests, shutdown)
- clear_logger_state(): tear everything down between tests
"""

import atexit
import contextlib
import logging
import time
from pathlib import Path

from delta_settings.constants import ROOT_LOGGER_NAME
from delta_settings.logger.config import load_log_settings
from delta_settings.logger.handlers import setup_root_logger
from delta_settings.logger.state import get_state

_FLUSH_TIMEOUT_SECONDS = 5.0


def flush_all_handlers() -> None:
    """Wait for the log queue to drain, then flush every handler."""
    state = get_state()
    if state.queue_listener is None or state.log_queue is None:
        return

    # QueueListener does not call task_done(), so poll instead of join()
    deadline = time.monotonic() + _FLUSH_TIMEOUT_SECONDS
    while not state.log_queue.empty() and time.monotonic() < deadline:
        time.sleep(0.01)
    time.sleep(0.05)

    for handler in state.queue_listener.handlers:
        with contextlib.suppress(OSError, ValueError):
            handler.flush()


def _cleanup_logging() -> None:
    state = get_state()
    if state.queue_listener is not None:
        flush_all_handlers()
        state.queue_listener.stop()
        state.queue_listener = None


atexit.register(_cleanup_logging)


def setup_logging(
    name: str = ROOT_LOGGER_NAME,
    console_level: str | None = None,
    file_level: str | None = None,
    log_file: Path | None = None,
    enable_file_logging: bool | None = None,
) -> logging.Logger:
    """Initialize the root logger on first use and return ``name``'s logger.

    Child loggers (``delta_settings.store``, ``delta_settings.codec``)
    carry no handlers of their own; they propagate into the root, whose
    only handler is the queue.

    Args:
        name: Logger name, normally ``__name__``
        console_level: Console level name (default from bootstrap)
        file_level: File level name (default from bootstrap)
        log_file: Log file path (default from bootstrap)
        enable_file_logging: Force file logging on or off; None keeps
            the bootstrap decision

    Returns:
        Logger instance

    Raises:
        ConfigurationError: If the file handler cannot be created

    """
    state = get_state()
    with state.lock:
        if not state.root_initialized:
            cfg_console, cfg_file, cfg_path = load_log_settings()
            console_level = console_level or cfg_console
            file_level = file_level or cfg_file
            log_file = log_file or cfg_path
            if enable_file_logging is False:
                log_file = None

            setup_root_logger(state, console_level, file_level, log_file)

    return logging.getLogger(name)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Return a delta_settings logger.

    Example:
        >>> from delta_settings.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Saved %d sections to %s", count, path)

    """
    return setup_logging(name=name)


def clear_logger_state() -> None:
    """Stop the listener and forget every delta_settings logger.

    Intended for test teardown only.
    """
    state = get_state()
    with state.lock:
        if state.queue_listener is not None:
            flush_all_handlers()
            state.queue_listener.stop()
            state.queue_listener = None

        state.log_queue = None
        state.root_initialized = False
        state.config_applied = False

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in root_logger.handlers[:]:
            handler.close()
            root_logger.removeHandler(handler)
