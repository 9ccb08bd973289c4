"""On-disk formats and their file extensions."""

from enum import Enum
from pathlib import Path

from delta_settings.exceptions import UnsupportedFormatError


class SerializationFormat(Enum):
    """Supported encodings, valued by file extension.

    JSON: pretty, tree-structured text
    TOML: line-oriented config text (no null)
    BINARY: compact self-describing binary with varint lengths
    BINARY_FIXED: length-prefixed binary with fixed-width fields
    """

    JSON = "json"
    TOML = "toml"
    BINARY = "bin"
    BINARY_FIXED = "dat"

    @property
    def extension(self) -> str:
        """File extension without the leading dot."""
        return self.value

    @property
    def is_binary(self) -> bool:
        """Whether files in this format must be opened in binary mode."""
        return self in (
            SerializationFormat.BINARY,
            SerializationFormat.BINARY_FIXED,
        )

    @classmethod
    def from_extension(
        cls, extension: str, target: str | None = None
    ) -> "SerializationFormat":
        """Look up a format by extension (case-insensitive, dot optional).

        Raises:
            UnsupportedFormatError: If no format uses the extension

        """
        normalized = extension.lower().lstrip(".")
        for fmt in cls:
            if fmt.value == normalized:
                return fmt
        raise UnsupportedFormatError(normalized, target)

    @classmethod
    def from_path(cls, path: Path | str) -> "SerializationFormat":
        """Look up the format of a file path from its suffix.

        Raises:
            UnsupportedFormatError: If the suffix is missing or unknown

        """
        path = Path(path)
        return cls.from_extension(path.suffix, target=str(path))

    @classmethod
    def from_name(cls, name: str) -> "SerializationFormat":
        """Accept either a member name ("binary") or an extension ("bin")."""
        member = cls.__members__.get(name.strip().upper())
        if member is not None:
            return member
        return cls.from_extension(name.strip())
