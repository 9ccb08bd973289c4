"""Exception classes for delta-settings operations."""


class SettingsError(Exception):
    """Base exception for settings persistence."""

    error_prefix: str = "Settings operation failed"

    def __init__(self, message: str, target: str | None = None) -> None:
        """Initialize error with message and optional target.

        Args:
            message: Error message describing the failure.
            target: Optional section key or file path that failed.

        """
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.target:
            return f"{self.error_prefix} for '{self.target}': {self.message}"
        return f"{self.error_prefix}: {self.message}"


class SettingsIOError(SettingsError):
    """Raised when a settings file cannot be read, written or removed."""

    error_prefix = "I/O failed"


class SerializationError(SettingsError):
    """Raised when encoding, decoding or schema conversion fails."""

    error_prefix = "Serialization failed"


class StoreDocumentError(SerializationError):
    """Raised when a decoded store document has an invalid envelope."""

    error_prefix = "Invalid store document"

    def __init__(
        self,
        message: str,
        target: str | None = None,
        path: str | None = None,
    ) -> None:
        """Initialize with the JSON path of the offending value.

        Args:
            message: Error message describing the failure.
            target: Optional file path that failed.
            path: Dotted location inside the document, if known.

        """
        super().__init__(message, target)
        self.path = path


class UnsupportedFormatError(SettingsError):
    """Raised when a file extension maps to no known codec."""

    error_prefix = "Unsupported file format"

    def __init__(self, extension: str, target: str | None = None) -> None:
        """Initialize with the rejected extension.

        Args:
            extension: The extension (without dot) that was rejected.
            target: Optional file path that carried the extension.

        """
        shown = extension or "<none>"
        super().__init__(f"no codec for extension '{shown}'", target)
        self.extension = extension


class PathResolutionError(SettingsError):
    """Raised when a path template cannot be resolved."""

    error_prefix = "Path resolution failed"


class MissingParamError(PathResolutionError):
    """Raised when a placeholder field is absent from the instance."""

    def __init__(self, param: str, target: str | None = None) -> None:
        """Initialize with the missing placeholder name."""
        super().__init__(f"missing path param '{param}'", target)
        self.param = param


class EmptyParamError(PathResolutionError):
    """Raised when a placeholder field is null or blank."""

    def __init__(self, param: str, target: str | None = None) -> None:
        """Initialize with the empty placeholder name."""
        super().__init__(f"path param '{param}' must not be empty", target)
        self.param = param


class RegistrationError(SettingsError):
    """Raised when a section cannot be registered."""

    error_prefix = "Section registration failed"


class MigrationError(SettingsError):
    """Raised by migration functions that cannot rewrite their input."""

    error_prefix = "Migration failed"
