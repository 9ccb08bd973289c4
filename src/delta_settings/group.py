"""Group files: one section per file at a templated location.

A group section is registered with a path template whose placeholders
name its own fields::

    @dataclass
    class SaveGame:
        slot_id: str = ""
        level: int = 1

    section = Section.create(SaveGame, path="saves/{slot_id}/game.json")
    manager = GroupManager("data")
    manager.save(section, SaveGame(slot_id="slot_1", level=4))
    # -> data/saves/slot_1/game.json containing {"level": 4}

The file extension picks the format. Placeholder fields are never
written; loading copies them from the instance the caller passes in.
The file version lives under the reserved ``_version`` key.
"""

from pathlib import Path
from typing import TypeVar

from delta_settings.codec import SerializationFormat, decode, encode
from delta_settings.constants import GROUP_VERSION_KEY
from delta_settings.delta import compute_delta, merge_with_defaults
from delta_settings.exceptions import RegistrationError, SettingsError
from delta_settings.files import read_file, remove_file, write_file
from delta_settings.logger import get_logger
from delta_settings.migration import apply_migration, parse_version
from delta_settings.paths import PathTemplate, copy_params, strip_params
from delta_settings.schema import from_value, to_value
from delta_settings.schemas import validate_group_document
from delta_settings.section import Section
from delta_settings.value import Value

logger = get_logger(__name__)

T = TypeVar("T")


class GroupManager:
    """Loads and saves group sections relative to a base directory."""

    def __init__(self, base_path: Path | str | None = None) -> None:
        """Initialize manager.

        Args:
            base_path: Directory relative templates resolve against
                (default: the working directory)

        """
        self.base_path = Path(base_path) if base_path is not None else None

    @staticmethod
    def _template(section: Section[T]) -> PathTemplate:
        if section.path is None:
            msg = "section has no path template"
            raise RegistrationError(msg, section.key)
        return section.path

    def path_for(self, section: Section[T], instance: T) -> Path:
        """Resolve the file location of ``instance``.

        Raises:
            RegistrationError: If the section has no path template, or
                ``instance`` is not of the section's schema type
            PathResolutionError: If a placeholder field is missing or
                empty

        """
        template = self._template(section)
        if not section.owns(instance):
            msg = (
                f"{type(instance).__name__} instance given, expected "
                f"{section.name}"
            )
            raise RegistrationError(msg, section.key)
        return template.resolve(to_value(instance), self.base_path)

    def load(self, section: Section[T], current: T | None = None) -> T:
        """Load a group section.

        The path comes from ``current`` (or the defaults). A missing
        file yields defaults; unreadable or incompatible data is logged
        and replaced by defaults. Placeholder fields always come from
        ``current``.

        Args:
            section: Group section
            current: Instance carrying the placeholder fields

        Returns:
            The loaded instance

        Raises:
            RegistrationError: If ``current`` is not of the section's type
            PathResolutionError: If the path cannot be resolved

        """
        if current is None:
            current = section.defaults()
        path = self.path_for(section, current)
        current_value = to_value(current)

        try:
            loaded = self._read(section, path)
        except SettingsError as e:
            logger.warning(
                "Using defaults for '%s', cannot load %s: %s",
                section.key,
                path,
                e,
            )
            loaded = section.defaults()

        return self._with_params(section, current_value, loaded)

    def _read(self, section: Section[T], path: Path) -> T:
        fmt = SerializationFormat.from_path(path)
        data = read_file(path)
        if data is None:
            logger.debug("No group file at %s", path)
            return section.defaults()

        document = decode(data, fmt)
        validate_group_document(document, str(path))
        file_version = parse_version(document.pop(GROUP_VERSION_KEY, None))
        delta = strip_params(document or None, section.params)

        migrated, _ = apply_migration(
            section.key,
            section.migrate,
            file_version,
            section.version,
            delta,
        )
        return merge_with_defaults(section.schema, migrated)

    def _with_params(
        self, section: Section[T], current: Value, loaded: T
    ) -> T:
        if not section.params:
            return loaded
        merged = copy_params(current, to_value(loaded), section.params)
        return from_value(section.schema, merged)

    def save(self, section: Section[T], instance: T) -> Path:
        """Save a group section.

        Placeholders are validated before anything else. A delta that
        is empty once placeholder fields are stripped removes the file.

        Args:
            section: Group section
            instance: Instance to persist

        Returns:
            The resolved file path

        Raises:
            RegistrationError: If ``instance`` is not of the section's type
            MissingParamError: If a placeholder field is absent
            EmptyParamError: If a placeholder field is null or blank
            UnsupportedFormatError: If the path has no known extension
            SerializationError: If the document cannot be encoded
            SettingsIOError: If the file cannot be written

        """
        path = self.path_for(section, instance)
        fmt = SerializationFormat.from_path(path)

        delta = strip_params(compute_delta(instance), section.params)
        if delta is None:
            if remove_file(path):
                logger.debug("Removed default-valued group file %s", path)
            return path

        document: dict[str, Value] = {}
        if section.version is not None:
            document[GROUP_VERSION_KEY] = str(section.version)
        document.update(delta)

        write_file(path, encode(document, fmt))
        logger.debug("Saved '%s' to %s", section.key, path)
        return path

    def delete(self, section: Section[T], instance: T) -> bool:
        """Delete the file of ``instance``.

        Returns:
            True if a file was removed

        """
        return remove_file(self.path_for(section, instance))
