"""Unified settings stores: many sections, one file.

A store document looks like::

    {
      "_versions": {"network": "2.0.0"},
      "network": {"port": 9000},
      "audio": {"master": 0.8}
    }

Each section key maps to that section's delta against its defaults.
Sections equal to their defaults are absent, and an empty store has no
file at all.

A store whose name carries a ``[token]`` (``"[slot1]"``) writes one
file per section instead, named ``slot1_SchemaName.ext``, each holding
the same document shape.
"""

import contextlib
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any, TypeVar

from packaging.version import Version

from delta_settings.codec import SerializationFormat, decode, encode
from delta_settings.config import LibraryConfig, LibraryConfigManager
from delta_settings.constants import DEFAULT_BASE_PATH, VERSIONS_KEY
from delta_settings.delta import compute_delta, merge_with_defaults
from delta_settings.exceptions import (
    RegistrationError,
    SerializationError,
    SettingsError,
    SettingsIOError,
)
from delta_settings.files import read_file, remove_file, write_file
from delta_settings.logger import get_logger, update_logger_from_config
from delta_settings.migration import MigrateFn, apply_migration, parse_version
from delta_settings.paths import section_filename, split_store_name
from delta_settings.schemas import validate_store_document
from delta_settings.section import Section
from delta_settings.value import Value

logger = get_logger(__name__)

T = TypeVar("T")


class UnifiedStorage:
    """One physical store file: sections plus the ``_versions`` table."""

    def __init__(
        self,
        filename: str,
        fmt: SerializationFormat = SerializationFormat.JSON,
        base_path: Path | str = DEFAULT_BASE_PATH,
    ) -> None:
        """Initialize storage for ``base_path/filename.ext``.

        Args:
            filename: File name without extension
            fmt: Serialization format, which also picks the extension
            base_path: Directory holding the file

        """
        self.filename = filename
        self.format = fmt
        self.base_path = Path(base_path)

    @property
    def path(self) -> Path:
        """Full path of the store file."""
        return self.base_path / f"{self.filename}.{self.format.extension}"

    def exists(self) -> bool:
        """Return True if the store file exists."""
        return self.path.is_file()

    def load_all(self) -> tuple[dict[str, Value], dict[str, Version]]:
        """Read every section delta and version tag.

        A missing file is empty. Version tags that do not parse are
        dropped, which makes their sections unversioned. A ``null``
        section is treated as absent.

        Returns:
            Tuple of (section deltas, section versions)

        Raises:
            SettingsIOError: If the file cannot be read
            SerializationError: If the file cannot be decoded or its
                envelope is invalid

        """
        data = read_file(self.path)
        if data is None:
            logger.debug("No store file at %s", self.path)
            return {}, {}

        try:
            document = decode(data, self.format)
        except SerializationError as e:
            raise SerializationError(e.message, str(self.path)) from e
        validate_store_document(document, str(self.path))

        versions: dict[str, Version] = {}
        for key, raw in (document.get(VERSIONS_KEY) or {}).items():
            version = parse_version(raw)
            if version is not None:
                versions[key] = version

        sections = {
            key: value
            for key, value in document.items()
            if key != VERSIONS_KEY and value is not None
        }
        logger.debug("Loaded %d section(s) from %s", len(sections), self.path)
        return sections, versions

    def save_all(
        self,
        sections: dict[str, Value],
        versions: dict[str, Version | str] | None = None,
    ) -> None:
        """Rewrite the whole file from ``sections``.

        With no sections the file is deleted instead. The document is
        encoded before the file is touched, so an encoding failure
        leaves the previous file in place.

        Raises:
            SerializationError: If the document cannot be encoded
            SettingsIOError: If the file cannot be written or removed

        """
        if not sections:
            if self.delete():
                logger.debug("Removed empty store file %s", self.path)
            return

        document: dict[str, Value] = {}
        tags = {
            key: str(version)
            for key, version in (versions or {}).items()
            if key in sections and version is not None
        }
        if tags:
            document[VERSIONS_KEY] = tags
        document.update(sections)

        try:
            payload = encode(document, self.format)
        except SerializationError as e:
            raise SerializationError(e.message, str(self.path)) from e
        write_file(self.path, payload)

    def delete(self) -> bool:
        """Delete the store file.

        Returns:
            True if a file was removed

        """
        return remove_file(self.path)


class SaveBatch:
    """Instances collected for a single write at the end of a batch."""

    def __init__(self, store: "SettingsStore") -> None:
        """Initialize an empty batch for ``store``."""
        self._store = store
        self._pending: dict[str, tuple[Section, Any]] = {}

    def add(self, *instances: Any) -> "SaveBatch":
        """Queue instances; a later instance of a section replaces earlier.

        Raises:
            RegistrationError: If an instance's type is not registered

        """
        for instance in instances:
            section = self._store.section_for(type(instance))
            self._pending[section.key] = (section, instance)
        return self

    @property
    def keys(self) -> list[str]:
        """Section keys queued so far."""
        return list(self._pending)

    @property
    def pending(self) -> dict[str, tuple[Section, Any]]:
        """Queued (section, instance) pairs by section key."""
        return dict(self._pending)

    def __len__(self) -> int:
        return len(self._pending)


class SettingsStore:
    """Registered settings sections persisted as deltas in one file.

    Example:
        >>> store = (
        ...     SettingsStore("game", version="2.0.0")
        ...     .register(Network, migrate=network_migrations)
        ...     .register(Audio)
        ... )
        >>> store.load()
        >>> audio = store.get(Audio)
        >>> audio.master = 0.5
        >>> store.save(audio)

    """

    def __init__(
        self,
        name: str,
        fmt: SerializationFormat | str = SerializationFormat.JSON,
        base_path: Path | str = DEFAULT_BASE_PATH,
        version: Version | str | None = None,
    ) -> None:
        """Initialize a store.

        Args:
            name: File name without extension, or a name carrying a
                ``[token]`` for one file per section
            fmt: Serialization format (member or name/extension)
            base_path: Directory holding the store file(s)
            version: Default target version for registered sections

        Raises:
            RegistrationError: If the name or version is invalid
            UnsupportedFormatError: If ``fmt`` names no format

        """
        self.name = name
        self.format = (
            fmt
            if isinstance(fmt, SerializationFormat)
            else SerializationFormat.from_name(fmt)
        )
        self.base_path = Path(base_path)
        self.prefix, self.stem = split_store_name(name)
        if self.prefix is None and not self.stem:
            msg = "store name must not be empty"
            raise RegistrationError(msg)

        self.version = self._parse_store_version(version)

        self._sections: dict[str, Section] = {}
        self._values: dict[str, Any] = {}
        self._aggregate: dict[str, Value] = {}
        self._versions: dict[str, Version] = {}
        self._lock = threading.Lock()
        self._unified = (
            UnifiedStorage(self.stem, self.format, self.base_path)
            if self.prefix is None
            else None
        )

    @classmethod
    def from_config(
        cls,
        name: str,
        config: LibraryConfig | None = None,
        version: Version | str | None = None,
    ) -> "SettingsStore":
        """Build a store using the configured base path and format.

        Args:
            name: Store name
            config: Library config (default: loaded from the INI file,
                whose log levels are then applied once per process)
            version: Default target version for registered sections

        Returns:
            A new store

        """
        if config is None:
            config = LibraryConfigManager().load()
            update_logger_from_config()
        return cls(
            name,
            fmt=config.format,
            base_path=config.base_path,
            version=version,
        )

    def _parse_store_version(
        self, version: Version | str | None
    ) -> Version | None:
        if version is None or isinstance(version, Version):
            return version
        parsed = parse_version(version)
        if parsed is None:
            msg = f"invalid store version {version!r}"
            raise RegistrationError(msg, self.name)
        return parsed

    @property
    def per_section_files(self) -> bool:
        """True when every section lives in its own file."""
        return self.prefix is not None

    @property
    def path(self) -> Path | None:
        """Path of the unified file, or None in per-section mode."""
        return self._unified.path if self._unified is not None else None

    @property
    def sections(self) -> list[Section]:
        """Registered sections in registration order."""
        return list(self._sections.values())

    def __contains__(self, key: object) -> bool:
        return key in self._sections

    def storage_for(self, section: Section) -> UnifiedStorage:
        """Return the storage holding ``section``."""
        if self._unified is not None:
            return self._unified
        filename = section_filename(
            self.name, section.name, self.format.extension
        )
        stem = filename.removesuffix(f".{self.format.extension}")
        return UnifiedStorage(stem, self.format, self.base_path)

    def register(
        self,
        schema: type[T],
        *,
        key: str | None = None,
        version: Version | str | None = None,
        migrate: MigrateFn | None = None,
    ) -> "SettingsStore":
        """Register a settings dataclass as a section.

        Args:
            schema: Settings dataclass
            key: Section key (default: lowercase class name)
            version: Target version (default: the store version)
            migrate: Migration function run on load

        Returns:
            The store, for fluent registration

        Raises:
            RegistrationError: If the key is taken or reserved, or the
                schema is already registered

        """
        section = Section.create(
            schema,
            key=key,
            version=version if version is not None else self.version,
            migrate=migrate,
        )
        if section.key in self._sections:
            msg = f"section key '{section.key}' is already registered"
            raise RegistrationError(msg, self.name)
        if any(s.schema is schema for s in self._sections.values()):
            msg = f"{schema.__name__} is already registered"
            raise RegistrationError(msg, self.name)
        if self.per_section_files:
            path = self.storage_for(section).path
            for other in self._sections.values():
                if self.storage_for(other).path == path:
                    msg = (
                        f"{schema.__name__} would share {path} "
                        f"with '{other.key}'"
                    )
                    raise RegistrationError(msg, self.name)

        with self._lock:
            self._sections[section.key] = section
            self._values[section.key] = section.defaults()
        logger.debug("Registered section '%s' in %s", section.key, self.name)
        return self

    def section_for(self, schema_or_key: type | str) -> Section:
        """Look up a section by key or by schema type.

        Raises:
            RegistrationError: If nothing matching is registered

        """
        if isinstance(schema_or_key, str):
            section = self._sections.get(schema_or_key)
        else:
            section = next(
                (
                    s
                    for s in self._sections.values()
                    if s.schema is schema_or_key
                ),
                None,
            )
        if section is None:
            name = getattr(schema_or_key, "__name__", schema_or_key)
            msg = f"'{name}' is not registered"
            raise RegistrationError(msg, self.name)
        return section

    def _read_storage(
        self, storage: UnifiedStorage
    ) -> tuple[dict[str, Value], dict[str, Version]]:
        try:
            return storage.load_all()
        except (SettingsIOError, SerializationError) as e:
            logger.warning(
                "Using defaults, cannot load %s: %s", storage.path, e
            )
            return {}, {}

    def _read_all(self) -> tuple[dict[str, Value], dict[str, Version]]:
        if self._unified is not None:
            return self._read_storage(self._unified)

        sections: dict[str, Value] = {}
        versions: dict[str, Version] = {}
        for section in self._sections.values():
            deltas, tags = self._read_storage(self.storage_for(section))
            if section.key in deltas:
                sections[section.key] = deltas[section.key]
            if section.key in tags:
                versions[section.key] = tags[section.key]
        return sections, versions

    def _load_section(
        self,
        section: Section,
        delta: Value | None,
        file_version: Version | None,
    ) -> Any:
        migrated, _ = apply_migration(
            section.key,
            section.migrate,
            file_version,
            section.version,
            delta,
        )
        return merge_with_defaults(section.schema, migrated)

    def load(self) -> dict[str, Any]:
        """Load every registered section.

        A section whose data cannot be merged falls back to its
        defaults; its stored delta is kept so that saving other
        sections does not erase it. Sections in the file that are not
        registered are kept the same way.

        Returns:
            Loaded instances by section key

        """
        with self._lock:
            stored, file_versions = self._read_all()

            values: dict[str, Any] = {}
            aggregate: dict[str, Value] = {}
            versions: dict[str, Version] = {}

            for key, delta in stored.items():
                if key not in self._sections:
                    aggregate[key] = delta
                    if key in file_versions:
                        versions[key] = file_versions[key]

            for key, section in self._sections.items():
                delta = stored.get(key)
                try:
                    instance = self._load_section(
                        section, delta, file_versions.get(key)
                    )
                    current = compute_delta(instance)
                except SettingsError as e:
                    logger.warning(
                        "Using defaults for section '%s': %s", key, e
                    )
                    values[key] = section.defaults()
                    if delta is not None:
                        aggregate[key] = delta
                        if key in file_versions:
                            versions[key] = file_versions[key]
                    continue

                values[key] = instance
                if current is not None:
                    aggregate[key] = current
                    if section.version is not None:
                        versions[key] = section.version

            self._values = values
            self._aggregate = aggregate
            self._versions = versions

        logger.debug("Loaded %d section(s) for %s", len(values), self.name)
        return dict(values)

    def get(self, schema_or_key: type[T] | str) -> T:
        """Return the current instance of a section.

        Raises:
            RegistrationError: If the section is not registered

        """
        section = self.section_for(schema_or_key)
        return self._values[section.key]

    def all(self) -> dict[str, Any]:
        """Return current instances by section key."""
        return dict(self._values)

    def save(self, *instances: Any) -> None:
        """Persist the given instances in one write.

        Each instance's section is recomputed against its defaults;
        untouched sections keep their stored deltas. On failure the
        file and the in-memory state are left unchanged.

        Raises:
            RegistrationError: If an instance's type is not registered
            SerializationError: If the document cannot be encoded
            SettingsIOError: If the file cannot be written

        """
        batch = SaveBatch(self).add(*instances)
        if batch:
            self._commit(batch.pending)

    @contextlib.contextmanager
    def batch(self) -> Iterator[SaveBatch]:
        """Collect saves and write them once when the block exits.

        Nothing is written if the block raises.

        Example:
            >>> with store.batch() as batch:
            ...     batch.add(audio)
            ...     batch.add(network)

        """
        batch = SaveBatch(self)
        yield batch
        if batch:
            self._commit(batch.pending)

    def reset(self, schema_or_key: type[T] | str) -> T:
        """Restore a section to its defaults and save.

        Returns:
            The new default instance

        """
        defaults = self.section_for(schema_or_key).defaults()
        self.save(defaults)
        return defaults

    def _commit(self, updates: dict[str, tuple[Section, Any]]) -> None:
        with self._lock:
            aggregate = dict(self._aggregate)
            versions = dict(self._versions)

            for key, (section, instance) in updates.items():
                delta = compute_delta(instance)
                if delta is None:
                    aggregate.pop(key, None)
                    versions.pop(key, None)
                    continue
                aggregate[key] = delta
                if section.version is not None:
                    versions[key] = section.version
                else:
                    versions.pop(key, None)

            if self._unified is not None:
                self._unified.save_all(aggregate, versions)
            else:
                for key, (section, _) in updates.items():
                    own = {key: aggregate[key]} if key in aggregate else {}
                    self.storage_for(section).save_all(own, versions)

            self._aggregate = aggregate
            self._versions = versions
            for key, (_, instance) in updates.items():
                self._values[key] = instance

        logger.debug(
            "Saved section(s) %s for %s", ", ".join(updates), self.name
        )
