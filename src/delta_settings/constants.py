"""Centralized constants for delta-settings.

Grouped by concern: store document layout, binary codec framing,
library configuration and logging.
"""

from typing import Final

# =============================================================================
# Store document layout
# =============================================================================

# Reserved root key holding the per-section version table
VERSIONS_KEY: Final[str] = "_versions"

# Reserved root key holding the version of a single-section group file
GROUP_VERSION_KEY: Final[str] = "_version"

# Keys a section may never use
RESERVED_KEYS: Final[frozenset[str]] = frozenset(
    {VERSIONS_KEY, GROUP_VERSION_KEY}
)

# Default directory for settings files, relative to the working directory
DEFAULT_BASE_PATH: Final[str] = "settings"

# Separator placed between a "[slot]" store prefix and the section name
STORE_PREFIX_SEPARATOR: Final[str] = "_"

# Field metadata key used to rename a dataclass field on disk
FIELD_KEY_METADATA: Final[str] = "key"

# =============================================================================
# Binary codec framing
# =============================================================================

BINARY_MAGIC: Final[bytes] = b"DSB1"
BINARY_FIXED_MAGIC: Final[bytes] = b"DSF1"

INT64_MIN: Final[int] = -(2**63)
INT64_MAX: Final[int] = 2**63 - 1

# Deepest sequence/object nesting any codec accepts
MAX_NESTING_DEPTH: Final[int] = 128

# =============================================================================
# Library configuration
# =============================================================================

CONFIG_DIR_NAME: Final[str] = "delta-settings"
CONFIG_FILE_NAME: Final[str] = "settings.conf"
DEFAULT_CONFIG_SUBDIR: Final[str] = ".config"

ENV_CONFIG_FILE: Final[str] = "DELTA_SETTINGS_CONFIG"
ENV_LOG_DIR: Final[str] = "DELTA_SETTINGS_LOG_DIR"

SECTION_DEFAULT: Final[str] = "DEFAULT"
SECTION_STORAGE: Final[str] = "storage"

KEY_LOG_LEVEL: Final[str] = "log_level"
KEY_CONSOLE_LOG_LEVEL: Final[str] = "console_log_level"
KEY_FILE_LOGGING: Final[str] = "file_logging"
KEY_BASE_PATH: Final[str] = "base_path"
KEY_FORMAT: Final[str] = "format"

DEFAULT_FORMAT_NAME: Final[str] = "json"

VALID_LOG_LEVELS: Final[tuple[str, ...]] = (
    "DEBUG",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
)

ISO_DATETIME_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S"

# =============================================================================
# Logging
# =============================================================================

ROOT_LOGGER_NAME: Final[str] = "delta_settings"
LOG_FILE_NAME: Final[str] = "delta-settings.log"

DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_CONSOLE_LOG_LEVEL: Final[str] = "WARNING"

LOG_ROTATION_THRESHOLD_BYTES: Final[int] = 1024 * 1024  # 1 MB
LOG_BACKUP_COUNT: Final[int] = 3

LOG_CONSOLE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
LOG_CONSOLE_DATE_FORMAT: Final[str] = "%H:%M:%S"
LOG_FILE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(funcName)s:%(lineno)d - %(message)s"
)
LOG_FILE_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

LOG_COLORS: Final[dict[str, str]] = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}
