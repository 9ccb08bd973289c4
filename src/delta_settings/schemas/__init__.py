"""JSON Schema validation package for delta-settings documents.

This package validates the envelope of decoded files:
- Unified store documents (sections plus the ``_versions`` table)
- Group documents (one section plus an optional ``_version``)

Section contents are checked later, when each delta is merged into its
dataclass.

Usage:
    from delta_settings.schemas import validate_store_document

    validate_store_document(document, "settings/settings.json")
"""

from delta_settings.schemas.validator import (
    DocumentValidator,
    get_validator,
    validate_group_document,
    validate_store_document,
)

__all__ = [
    "DocumentValidator",
    "get_validator",
    "validate_group_document",
    "validate_store_document",
]
