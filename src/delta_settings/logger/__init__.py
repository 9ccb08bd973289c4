"""Logging for delta-settings.

Architecture:
    module logger -> QueueHandler -> Queue -> QueueListener thread
                                                  |
                                       console (+ rotating file)

Rules:
    1. Always use ``logger = get_logger(__name__)``
    2. Never call ``logging.basicConfig()``
    3. Handlers live only on the root ``delta_settings`` logger
    4. Use %-style arguments, never f-strings, in log calls

Environment Variables:
    DELTA_SETTINGS_LOG_DIR: Directory for ``delta-settings.log``.
        File logging is disabled when unset.
"""

from delta_settings.logger.config import (
    update_logger_from_config as _update_config,
)
from delta_settings.logger.formatters import (
    ColoredConsoleFormatter,
    HybridConsoleFormatter,
)
from delta_settings.logger.handlers import ConfigurationError
from delta_settings.logger.logger import (
    clear_logger_state,
    flush_all_handlers,
    get_logger,
    setup_logging,
)
from delta_settings.logger.state import get_state

__all__ = [
    "ColoredConsoleFormatter",
    "ConfigurationError",
    "HybridConsoleFormatter",
    "clear_logger_state",
    "flush_all_handlers",
    "get_logger",
    "get_state",
    "setup_logging",
    "update_logger_from_config",
]


def update_logger_from_config(*, force: bool = False) -> None:
    """Apply log levels from the library config file, once per process."""
    _update_config(get_state(), force=force)
