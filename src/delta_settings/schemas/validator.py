"""JSON Schema validation of decoded settings documents.

Documents are validated after decoding and before any section is
split out, whatever format they were stored in.
"""

from pathlib import Path
from typing import Any

import orjson
from jsonschema import Draft7Validator, ValidationError
from jsonschema.exceptions import best_match

from delta_settings.exceptions import StoreDocumentError
from delta_settings.logger import get_logger

logger = get_logger(__name__)

# Schema file paths
SCHEMA_DIR = Path(__file__).parent
STORE_DOCUMENT_SCHEMA_PATH = SCHEMA_DIR / "store_document.schema.json"
GROUP_DOCUMENT_SCHEMA_PATH = SCHEMA_DIR / "group_document.schema.json"


class DocumentValidator:
    """Validates decoded documents against the bundled JSON schemas."""

    def __init__(self) -> None:
        """Initialize validator with loaded schemas."""
        self._store_validator = Draft7Validator(
            self._load_schema(STORE_DOCUMENT_SCHEMA_PATH)
        )
        self._group_validator = Draft7Validator(
            self._load_schema(GROUP_DOCUMENT_SCHEMA_PATH)
        )

    @staticmethod
    def _load_schema(schema_path: Path) -> dict[str, Any]:
        """Load JSON schema from file.

        Args:
            schema_path: Path to schema file

        Returns:
            Loaded schema dictionary

        Raises:
            FileNotFoundError: If schema file doesn't exist
            ValueError: If schema JSON is invalid

        """
        if not schema_path.exists():
            msg = f"Schema file not found: {schema_path}"
            raise FileNotFoundError(msg)

        try:
            with schema_path.open("rb") as f:
                return orjson.loads(f.read())  # type: ignore[no-any-return]
        except orjson.JSONDecodeError as e:
            msg = f"Invalid JSON in schema file {schema_path}: {e}"
            raise ValueError(msg) from e

    @staticmethod
    def _format_validation_error(error: ValidationError) -> str:
        """Format validation error into a readable message.

        Args:
            error: Validation error from jsonschema

        Returns:
            Formatted error message

        """
        path = (
            ".".join(str(p) for p in error.absolute_path)
            if error.absolute_path
            else "root"
        )

        message = error.message
        if error.validator == "type":
            expected_type = error.validator_value
            actual = type(error.instance).__name__
            message = f"Expected type '{expected_type}', got '{actual}'"

        return f"{message} (at '{path}')"

    def _validate(
        self,
        validator: Draft7Validator,
        document: Any,
        target: str | None,
    ) -> None:
        errors = list(validator.iter_errors(document))
        if not errors:
            return

        best_error = best_match(errors)
        path = (
            ".".join(str(p) for p in best_error.absolute_path)
            if best_error.absolute_path
            else None
        )
        raise StoreDocumentError(
            self._format_validation_error(best_error), target, path=path
        )

    def validate_store_document(
        self, document: Any, target: str | None = None
    ) -> None:
        """Validate a unified store document.

        Args:
            document: Decoded root Value
            target: File path for error messages

        Raises:
            StoreDocumentError: If validation fails

        """
        self._validate(self._store_validator, document, target)
        logger.debug("Store document validation passed: %s", target)

    def validate_group_document(
        self, document: Any, target: str | None = None
    ) -> None:
        """Validate a single-section group document.

        Args:
            document: Decoded root Value
            target: File path for error messages

        Raises:
            StoreDocumentError: If validation fails

        """
        self._validate(self._group_validator, document, target)
        logger.debug("Group document validation passed: %s", target)


# Global validator instance
_validator: DocumentValidator | None = None


def get_validator() -> DocumentValidator:
    """Get or create global validator instance.

    Returns:
        DocumentValidator instance

    """
    global _validator  # noqa: PLW0603
    if _validator is None:
        _validator = DocumentValidator()
    return _validator


def validate_store_document(document: Any, target: str | None = None) -> None:
    """Validate a unified store document (convenience function).

    Raises:
        StoreDocumentError: If validation fails

    """
    get_validator().validate_store_document(document, target)


def validate_group_document(document: Any, target: str | None = None) -> None:
    """Validate a group document (convenience function).

    Raises:
        StoreDocumentError: If validation fails

    """
    get_validator().validate_group_document(document, target)
