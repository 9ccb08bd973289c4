"""Version-gated rewriting of stored deltas before they are merged.

Each section declares a target version. When a file records an older
version for that section, the section's migration function gets a
chance to rewrite the decoded delta into the current shape.

Migration never blocks a load: an exception (or a result that is not a
Value) is logged and the un-migrated delta is used instead.
"""

import re
from collections.abc import Callable
from typing import TypeAlias

from packaging.version import InvalidVersion, Version

from delta_settings.exceptions import SerializationError
from delta_settings.logger import get_logger
from delta_settings.value import Value, check_value, clone, is_object

logger = get_logger(__name__)

MigrateFn: TypeAlias = Callable[
    [Version | None, Version, Value], tuple[Value, bool]
]
MigrationStep: TypeAlias = Callable[[Value], Value | None]

# Map semver prerelease labels to PEP 440 equivalents
_PRERELEASE_MAP = {
    "alpha": "a",
    "beta": "b",
    "rc": "rc",
}

# Regex pattern for detecting semver-style prerelease versions
_PRERELEASE_RE = re.compile(
    r"""
    ^
    (?P<base>\d+\.\d+\.\d+)
    (?:-
        (?P<label>alpha|beta|rc)
        \.?
        (?P<num>\d*)?
    )?
    $
    """,
    re.VERBOSE,
)


def normalize_version(text: str) -> str:
    """Normalize semver-like versions to PEP 440.

    Examples:
        >>> normalize_version("1.0.0-alpha")
        '1.0.0a0'
        >>> normalize_version("2.0.0-beta1")
        '2.0.0b1'
        >>> normalize_version("3.0.0-rc.2")
        '3.0.0rc2'
        >>> normalize_version("v1.2.3")
        '1.2.3'

    Args:
        text: Version string in semver or PEP 440 format

    Returns:
        Normalized version string in PEP 440 format

    """
    text = text.strip().lstrip("v").lower()

    match = _PRERELEASE_RE.match(text)
    if not match:
        return text

    base = match.group("base")
    label = match.group("label")
    num = match.group("num") or "0"

    if not label:
        return base

    return f"{base}{_PRERELEASE_MAP[label]}{num}"


def parse_version(text: object) -> Version | None:
    """Parse a stored version tag.

    Anything that is not a parseable string counts as unversioned.

    Returns:
        The parsed version, or None when absent or invalid

    """
    if text is None:
        return None
    if not isinstance(text, str):
        logger.warning("Ignoring non-string version tag %r", text)
        return None
    try:
        return Version(normalize_version(text))
    except InvalidVersion:
        logger.warning("Ignoring invalid version tag %r", text)
        return None


def compare_versions(
    version1: Version | str | None, version2: Version | str | None
) -> int:
    """Compare two versions; None (unversioned) sorts below everything.

    Returns:
        -1 if version1 < version2, 0 if equal, 1 if version1 > version2

    """
    v1 = parse_version(version1) if isinstance(version1, str) else version1
    v2 = parse_version(version2) if isinstance(version2, str) else version2

    if v1 is None or v2 is None:
        if v1 is None and v2 is None:
            return 0
        return -1 if v1 is None else 1
    if v1 < v2:
        return -1
    if v1 > v2:
        return 1
    return 0


def crosses(
    file_version: Version | None,
    target_version: Version,
    threshold: Version | str,
) -> bool:
    """Return True if moving from file to target version passes threshold.

    The file must sit below ``threshold`` and the target at or above it.
    An unversioned file counts as below every threshold.
    """
    return (
        compare_versions(file_version, threshold) < 0
        and compare_versions(target_version, threshold) >= 0
    )


def no_migration(
    file_version: Version | None,  # noqa: ARG001
    target_version: Version,  # noqa: ARG001
    data: Value,
) -> tuple[Value, bool]:
    """Identity migration, used when a section declares none."""
    return data, False


def apply_migration(
    key: str,
    migrate: MigrateFn,
    file_version: Version | None,
    target_version: Version | None,
    delta: Value | None,
) -> tuple[Value | None, bool]:
    """Run ``migrate`` over a private copy of ``delta``.

    Nothing runs when there is no delta or no target version.

    Args:
        key: Section key, for log messages
        migrate: The section's migration function
        file_version: Version recorded in the file, if any
        target_version: Version the section is registered with
        delta: Decoded delta

    Returns:
        Tuple of (delta to merge, changed flag)

    """
    if delta is None or target_version is None:
        return delta, False

    try:
        migrated, changed = migrate(
            file_version, target_version, clone(delta)
        )
        check_value(migrated)
    except SerializationError as e:
        logger.warning(
            "Migration of '%s' returned an invalid value, "
            "using stored data: %s",
            key,
            e,
        )
        return delta, False
    except Exception as e:  # noqa: BLE001
        logger.warning(
            "Migration of '%s' from %s to %s failed, using stored data: %s",
            key,
            file_version or "unversioned",
            target_version,
            e,
        )
        return delta, False

    if changed:
        logger.info(
            "Migrated '%s' from %s to %s",
            key,
            file_version or "unversioned",
            target_version,
        )
    if migrated == {}:
        migrated = None
    return migrated, bool(changed)


class MigrationChain:
    """Ordered, version-gated migration steps usable as a ``MigrateFn``.

    Example:
        >>> chain = MigrationChain().add_step(
        ...     "2.0.0", insert_missing({"timeout_seconds": 30})
        ... )
        >>> store.register(Network, version="2.0.0", migrate=chain)

    """

    def __init__(self) -> None:
        """Initialize an empty chain."""
        self._steps: list[tuple[Version, MigrationStep]] = []

    def add_step(
        self, version: Version | str, step: MigrationStep
    ) -> "MigrationChain":
        """Add a step that fires when a load crosses ``version``.

        Args:
            version: Threshold version
            step: Receives the delta, returns new data or None for
                "unchanged"

        Returns:
            The chain, for fluent building

        Raises:
            ValueError: If ``version`` cannot be parsed

        """
        threshold = (
            version if isinstance(version, Version) else parse_version(version)
        )
        if threshold is None:
            msg = f"Invalid migration threshold version: {version!r}"
            raise ValueError(msg)
        self._steps.append((threshold, step))
        self._steps.sort(key=lambda item: item[0])
        return self

    @property
    def thresholds(self) -> list[Version]:
        """Step thresholds in ascending order."""
        return [threshold for threshold, _ in self._steps]

    def __len__(self) -> int:
        return len(self._steps)

    def __call__(
        self,
        file_version: Version | None,
        target_version: Version,
        data: Value,
    ) -> tuple[Value, bool]:
        changed = False
        for threshold, step in self._steps:
            if not crosses(file_version, target_version, threshold):
                continue
            result = step(data)
            if result is not None:
                logger.debug("Applied migration step for %s", threshold)
                data = result
                changed = True
        return data, changed


def rename_key(old: str, new: str) -> MigrationStep:
    """Build a step that moves ``old`` to ``new`` in an Object delta.

    An existing ``new`` key is kept and ``old`` is dropped.
    """

    def step(data: Value) -> Value | None:
        if not is_object(data) or old not in data:
            return None
        renamed = dict(data)
        value = renamed.pop(old)
        renamed.setdefault(new, value)
        return renamed

    return step


def insert_missing(values: dict[str, Value]) -> MigrationStep:
    """Build a step that adds ``values`` keys absent from an Object delta."""

    def step(data: Value) -> Value | None:
        if not is_object(data):
            return None
        missing = {k: clone(v) for k, v in values.items() if k not in data}
        if not missing:
            return None
        return {**data, **missing}

    return step
