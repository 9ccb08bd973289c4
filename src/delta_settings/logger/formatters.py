"""Console formatters for the delta_settings logger."""

import logging

from delta_settings.constants import LOG_COLORS


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that wraps the level name in ANSI colour codes.

    The record's ``levelname`` is swapped only for the duration of the
    ``format`` call so other handlers see the original value.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the record with a coloured level name."""
        color = LOG_COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        original_levelname = record.levelname
        record.levelname = f"{color}{original_levelname}{LOG_COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class HybridConsoleFormatter(logging.Formatter):
    """Bare message for INFO, coloured structured line for other levels.

    INFO records from settings operations ("Loaded 3 sections from
    settings/game.json") read like status output; warnings and errors
    keep timestamp, logger name and level for diagnosis.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
    ) -> None:
        """Initialize with the structured format used for non-INFO records.

        Args:
            fmt: Format string for structured messages
            datefmt: Date format string for timestamps

        """
        super().__init__(fmt, datefmt)
        self._colored_formatter = ColoredConsoleFormatter(fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format INFO records as the bare message, others structured."""
        if record.levelno == logging.INFO:
            return record.getMessage()
        return self._colored_formatter.format(record)
