"""Registration records for settings sections."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from packaging.version import Version

from delta_settings.constants import RESERVED_KEYS
from delta_settings.exceptions import PathResolutionError, RegistrationError
from delta_settings.migration import MigrateFn, no_migration, parse_version
from delta_settings.paths import PathTemplate
from delta_settings.schema import (
    default_section_key,
    ensure_schema,
    field_keys,
)

T = TypeVar("T")


@dataclass(frozen=True)
class Section(Generic[T]):
    """One registered settings schema.

    Attributes:
        key: Name of the section inside a store document
        schema: Settings dataclass
        version: Target version, or None for unversioned sections
        migrate: Migration function applied on load
        path: Location template for group files, if any

    """

    key: str
    schema: type[T]
    version: Version | None = None
    migrate: MigrateFn = no_migration
    path: PathTemplate | None = None

    @classmethod
    def create(
        cls,
        schema: type[T],
        *,
        key: str | None = None,
        version: Version | str | None = None,
        migrate: MigrateFn | None = None,
        path: PathTemplate | str | None = None,
    ) -> "Section[T]":
        """Validate a registration and build its record.

        Args:
            schema: Settings dataclass; ``schema()`` must succeed
            key: Section key (default: lowercase class name)
            version: Target version
            migrate: Migration function (default: no migration)
            path: Path template whose placeholders name schema fields

        Returns:
            The section record

        Raises:
            RegistrationError: If any part of the registration is invalid

        """
        ensure_schema(schema)
        key = default_section_key(schema) if key is None else key.strip()
        if not key:
            msg = "section key must not be empty"
            raise RegistrationError(msg, schema.__name__)
        if key in RESERVED_KEYS:
            msg = f"'{key}' is reserved for version metadata"
            raise RegistrationError(msg, schema.__name__)

        try:
            schema()
        except (TypeError, ValueError) as e:
            msg = f"schema must be constructible without arguments: {e}"
            raise RegistrationError(msg, key) from e

        target = _parse_target(version, key)
        template = _parse_template(path, schema, key)

        return cls(
            key=key,
            schema=schema,
            version=target,
            migrate=migrate if migrate is not None else no_migration,
            path=template,
        )

    @property
    def params(self) -> list[str]:
        """Placeholder fields of the path template."""
        return list(self.path.params) if self.path is not None else []

    @property
    def name(self) -> str:
        """Schema class name."""
        return self.schema.__name__

    def defaults(self) -> T:
        """Return a fresh default instance."""
        return self.schema()

    def owns(self, instance: Any) -> bool:
        """Return True if ``instance`` is exactly this section's type."""
        return type(instance) is self.schema


def _parse_target(version: Version | str | None, key: str) -> Version | None:
    if version is None or isinstance(version, Version):
        return version
    target = parse_version(version)
    if target is None:
        msg = f"invalid version {version!r}"
        raise RegistrationError(msg, key)
    return target


def _parse_template(
    path: PathTemplate | str | None, schema: type, key: str
) -> PathTemplate | None:
    if path is None:
        return None
    try:
        template = (
            path if isinstance(path, PathTemplate) else PathTemplate(path)
        )
    except PathResolutionError as e:
        raise RegistrationError(e.message, key) from e
    known = field_keys(schema)
    for param in template.params:
        if param not in known:
            msg = (
                f"path template '{template}' names '{param}', "
                f"which is not a field of {schema.__name__}"
            )
            raise RegistrationError(msg, key)
    return template
