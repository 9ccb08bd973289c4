"""Library configuration read from an optional INI file.

The file is located by ``DELTA_SETTINGS_CONFIG`` or defaults to
``~/.config/delta-settings/settings.conf``. A missing file is normal:
every value has a default and nothing is written unless ``save`` is
called explicitly.

Example file::

    [DEFAULT]
    log_level = INFO
    console_log_level = WARNING
    file_logging = true

    [storage]
    base_path = ~/.local/share/mygame/settings
    format = toml
"""

import configparser
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from delta_settings.codec import SerializationFormat
from delta_settings.constants import (
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_BASE_PATH,
    DEFAULT_CONFIG_SUBDIR,
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_FORMAT_NAME,
    DEFAULT_LOG_LEVEL,
    ENV_CONFIG_FILE,
    ISO_DATETIME_FORMAT,
    KEY_BASE_PATH,
    KEY_CONSOLE_LOG_LEVEL,
    KEY_FILE_LOGGING,
    KEY_FORMAT,
    KEY_LOG_LEVEL,
    SECTION_DEFAULT,
    SECTION_STORAGE,
    VALID_LOG_LEVELS,
)
from delta_settings.exceptions import SettingsIOError, UnsupportedFormatError
from delta_settings.logger import get_logger

logger = get_logger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _strip_inline_comment(value: str) -> str:
    """Strip inline comments from configuration values.

    Args:
        value: Configuration value that may contain inline comment

    Returns:
        Value with inline comment removed (anything after '  #')

    """
    if "  #" in value:
        return value.split("  #")[0].strip()
    return value.strip()


@dataclass
class LibraryConfig:
    """Resolved library configuration."""

    log_level: str = DEFAULT_LOG_LEVEL
    console_log_level: str = DEFAULT_CONSOLE_LOG_LEVEL
    file_logging: bool = True
    base_path: Path = field(default_factory=lambda: Path(DEFAULT_BASE_PATH))
    format: SerializationFormat = SerializationFormat.JSON


class LibraryConfigManager:
    """Reads and writes the library INI configuration."""

    def __init__(self, config_file: Path | None = None) -> None:
        """Initialize config manager.

        Args:
            config_file: Config file path (defaults to the environment
                override or the per-user location)

        """
        self.config_file = config_file or self.default_config_file()

    @staticmethod
    def default_config_file() -> Path:
        """Return the config file location for this environment."""
        env_path = os.getenv(ENV_CONFIG_FILE)
        if env_path:
            return Path(env_path).expanduser()
        return (
            Path.home()
            / DEFAULT_CONFIG_SUBDIR
            / CONFIG_DIR_NAME
            / CONFIG_FILE_NAME
        )

    def _read_parser(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(
            inline_comment_prefixes=("#", ";"),
            interpolation=None,
        )
        try:
            parser.read(self.config_file, encoding="utf-8")
        except configparser.Error as e:
            logger.warning(
                "Ignoring unreadable config file %s: %s", self.config_file, e
            )
            parser.clear()
        return parser

    def load(self) -> LibraryConfig:
        """Load configuration, falling back to defaults per value.

        Returns:
            Loaded library configuration

        """
        config = LibraryConfig()
        if not self.config_file.exists():
            logger.debug(
                "No config file at %s, using defaults", self.config_file
            )
            return config

        parser = self._read_parser()
        defaults = parser.defaults()

        config.log_level = self._level(
            defaults.get(KEY_LOG_LEVEL), KEY_LOG_LEVEL, config.log_level
        )
        config.console_log_level = self._level(
            defaults.get(KEY_CONSOLE_LOG_LEVEL),
            KEY_CONSOLE_LOG_LEVEL,
            config.console_log_level,
        )
        config.file_logging = self._flag(
            defaults.get(KEY_FILE_LOGGING),
            KEY_FILE_LOGGING,
            config.file_logging,
        )

        if parser.has_section(SECTION_STORAGE):
            base_path = parser.get(
                SECTION_STORAGE, KEY_BASE_PATH, raw=True, fallback=None
            )
            if base_path and _strip_inline_comment(base_path):
                config.base_path = Path(
                    _strip_inline_comment(base_path)
                ).expanduser()

            fmt = parser.get(
                SECTION_STORAGE, KEY_FORMAT, raw=True, fallback=None
            )
            if fmt:
                try:
                    config.format = SerializationFormat.from_name(
                        _strip_inline_comment(fmt)
                    )
                except UnsupportedFormatError:
                    logger.warning(
                        "Invalid %s '%s' in %s, using %s",
                        KEY_FORMAT,
                        fmt,
                        self.config_file,
                        DEFAULT_FORMAT_NAME,
                    )

        logger.debug("Loaded config from %s", self.config_file)
        return config

    def _level(self, raw: str | None, key: str, default: str) -> str:
        if raw is None:
            return default
        level = _strip_inline_comment(raw).upper()
        if level not in VALID_LOG_LEVELS:
            logger.warning(
                "Invalid %s '%s' in %s, using %s",
                key,
                raw,
                self.config_file,
                default,
            )
            return default
        return level

    def _flag(self, raw: str | None, key: str, default: bool) -> bool:
        if raw is None:
            return default
        value = _strip_inline_comment(raw).lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        logger.warning(
            "Invalid %s '%s' in %s, using %s",
            key,
            raw,
            self.config_file,
            default,
        )
        return default

    def save(self, config: LibraryConfig) -> None:
        """Save configuration to the INI file with explanatory comments.

        Args:
            config: Configuration to save

        Raises:
            SettingsIOError: If the file cannot be written

        """
        default_data = {
            KEY_LOG_LEVEL: config.log_level,
            KEY_CONSOLE_LOG_LEVEL: config.console_log_level,
            KEY_FILE_LOGGING: "true" if config.file_logging else "false",
        }
        storage_data = {
            KEY_BASE_PATH: str(config.base_path),
            KEY_FORMAT: config.format.value,
        }

        lines = [_file_header(), _DEFAULT_COMMENT, f"[{SECTION_DEFAULT}]"]
        lines += [f"{key} = {value}" for key, value in default_data.items()]
        lines += [_STORAGE_COMMENT, f"[{SECTION_STORAGE}]"]
        lines += [f"{key} = {value}" for key, value in storage_data.items()]

        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with self.config_file.open("w", encoding="utf-8") as f:
                f.write("\n".join(lines) + "\n")
        except OSError as e:
            msg = f"cannot write config file: {e}"
            raise SettingsIOError(msg, str(self.config_file)) from e

        logger.info("Saved config to %s", self.config_file)


def _file_header() -> str:
    timestamp = datetime.now(tz=UTC).strftime(ISO_DATETIME_FORMAT)
    return f"""# delta-settings library configuration
# Values left out fall back to their defaults.
#
# Last updated: {timestamp}
"""


_DEFAULT_COMMENT = """# ========================================
# LOGGING
# ========================================
# log_level: Detail level for the log file (DEBUG, INFO, WARNING, ERROR)
# console_log_level: Console output detail level (DEBUG, INFO, etc.)
# file_logging: Write the log file when DELTA_SETTINGS_LOG_DIR is set
"""

_STORAGE_COMMENT = """
# ========================================
# STORAGE
# ========================================
# base_path: Directory settings files are written to
# format: json, toml, bin or dat
"""
