"""Top-level package for delta-settings.

Delta-encoded, versioned settings persistence: only values that differ
from compiled-in defaults are written, and stored deltas are merged
back onto the current defaults on load.
"""

from importlib.metadata import PackageNotFoundError, version

from delta_settings.codec import SerializationFormat, decode, encode
from delta_settings.config import LibraryConfig, LibraryConfigManager
from delta_settings.delta import (
    NO_CHANGE,
    compute_delta,
    diff_values,
    merge_values,
    merge_with_defaults,
)
from delta_settings.exceptions import (
    EmptyParamError,
    MigrationError,
    MissingParamError,
    PathResolutionError,
    RegistrationError,
    SerializationError,
    SettingsError,
    SettingsIOError,
    StoreDocumentError,
    UnsupportedFormatError,
)
from delta_settings.group import GroupManager
from delta_settings.migration import (
    MigrateFn,
    MigrationChain,
    apply_migration,
    compare_versions,
    crosses,
    insert_missing,
    no_migration,
    normalize_version,
    parse_version,
    rename_key,
)
from delta_settings.paths import (
    PathTemplate,
    copy_params,
    extract_params,
    resolve,
    section_filename,
    split_store_name,
    strip_params,
    validate_params,
)
from delta_settings.schema import from_value, to_value
from delta_settings.section import Section
from delta_settings.store import SaveBatch, SettingsStore, UnifiedStorage
from delta_settings.value import Value, check_value, clone, values_equal

try:
    __version__ = version("delta-settings")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "dev"

__all__ = [
    "NO_CHANGE",
    "EmptyParamError",
    "GroupManager",
    "LibraryConfig",
    "LibraryConfigManager",
    "MigrateFn",
    "MigrationChain",
    "MigrationError",
    "MissingParamError",
    "PathResolutionError",
    "PathTemplate",
    "RegistrationError",
    "SaveBatch",
    "Section",
    "SerializationError",
    "SerializationFormat",
    "SettingsError",
    "SettingsIOError",
    "SettingsStore",
    "StoreDocumentError",
    "UnifiedStorage",
    "UnsupportedFormatError",
    "Value",
    "__version__",
    "apply_migration",
    "check_value",
    "clone",
    "compare_versions",
    "compute_delta",
    "copy_params",
    "crosses",
    "decode",
    "diff_values",
    "encode",
    "extract_params",
    "from_value",
    "insert_missing",
    "merge_values",
    "merge_with_defaults",
    "no_migration",
    "normalize_version",
    "parse_version",
    "rename_key",
    "resolve",
    "section_filename",
    "split_store_name",
    "strip_params",
    "to_value",
    "validate_params",
    "values_equal",
]
