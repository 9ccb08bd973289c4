"""Bootstrap and runtime configuration of logger levels.

Bootstrap values come from the environment only. The library config
file is applied afterwards by ``update_logger_from_config`` because
``delta_settings.config`` itself logs through this package.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from delta_settings.constants import (
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LOG_LEVEL,
    ENV_LOG_DIR,
    LOG_FILE_NAME,
)

if TYPE_CHECKING:
    from delta_settings.logger.state import _LoggerState


def load_log_settings() -> tuple[str, str, Path | None]:
    """Return bootstrap console level, file level and log file path.

    File logging is off unless ``DELTA_SETTINGS_LOG_DIR`` names a
    directory; a library should not write into the user's home
    directory just because it was imported.

    Returns:
        Tuple of (console_level, file_level, log_path) where log_path
        is None when file logging is disabled

    """
    env_log_dir = os.getenv(ENV_LOG_DIR)
    log_path = (
        Path(env_log_dir).expanduser() / LOG_FILE_NAME if env_log_dir else None
    )
    return DEFAULT_CONSOLE_LOG_LEVEL, DEFAULT_LOG_LEVEL, log_path


def update_logger_from_config(
    state: "_LoggerState", *, force: bool = False
) -> None:
    """Apply levels from the library config file to running handlers.

    Only handler levels change; handlers are never added or removed
    here. The file is read once per process unless ``force`` is set.
    Errors while reading the config leave bootstrap levels in place.

    Args:
        state: Logger state object (from logger.state)
        force: Re-read the config even if it was already applied

    """
    if state.config_applied and not force:
        return

    try:
        from delta_settings.config import (  # noqa: PLC0415
            LibraryConfigManager,
        )

        config = LibraryConfigManager().load()
    except (ImportError, OSError, ValueError):
        return

    console_level = getattr(logging, config.console_log_level, logging.WARNING)
    file_level = getattr(logging, config.log_level, logging.INFO)
    if not config.file_logging:
        file_level = logging.CRITICAL + 1

    if state.queue_listener is not None:
        for handler in state.queue_listener.handlers:
            if isinstance(handler, RotatingFileHandler):
                handler.setLevel(file_level)
            elif isinstance(handler, logging.StreamHandler):
                handler.setLevel(console_level)

    state.config_applied = True
