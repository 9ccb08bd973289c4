"""Structural diff of settings against their defaults, and its inverse.

Only fields that differ from the compiled-in default reach the disk.
Loading overlays the stored delta onto the *current* defaults, so
changing a default in code changes it for every user who never touched
that field.
"""

from typing import Final, TypeVar

from delta_settings.logger import get_logger
from delta_settings.schema import from_value, to_value
from delta_settings.value import Value, clone, is_object, values_equal

logger = get_logger(__name__)

T = TypeVar("T")


class _NoChange:
    """Marker for "equal to default", distinct from a changed ``None``."""

    def __repr__(self) -> str:
        return "NO_CHANGE"


NO_CHANGE: Final = _NoChange()


def diff_values(current: Value, default: Value) -> Value | _NoChange:
    """Return the part of ``current`` that differs from ``default``.

    Objects are diffed key by key: keys missing from ``default`` are kept
    verbatim, equal keys are dropped, differing Objects recurse and any
    other differing value is kept whole. Sequences are never diffed
    element-wise.

    Args:
        current: Value being persisted
        default: Value it is compared against

    Returns:
        The delta, or ``NO_CHANGE`` when both are structurally equal

    """
    if is_object(current) and is_object(default):
        delta: dict[str, Value] = {}
        for key, item in current.items():
            if key not in default:
                delta[key] = clone(item)
                continue
            sub = diff_values(item, default[key])
            if sub is not NO_CHANGE:
                delta[key] = sub
        return delta if delta else NO_CHANGE

    if values_equal(current, default):
        return NO_CHANGE
    return clone(current)


def compute_delta(instance: T, defaults: T | None = None) -> Value | None:
    """Compute the minimal on-disk delta of a settings instance.

    Args:
        instance: Settings dataclass instance
        defaults: Baseline to diff against (default: ``type(instance)()``)

    Returns:
        The delta, or None when ``instance`` equals its defaults

    Raises:
        SerializationError: If either value cannot be serialized

    """
    if defaults is None:
        defaults = type(instance)()
    if instance == defaults:
        return None

    delta = diff_values(to_value(instance), to_value(defaults))
    if delta is NO_CHANGE or delta == {}:
        # Unequal instances can still serialize identically (e.g. NaN)
        return None
    return delta


def merge_values(base: Value, overlay: Value) -> Value:
    """Overlay ``overlay`` onto ``base`` without mutating either.

    Objects merge key by key, recursing where both sides hold an Object.
    Any other overlay value replaces the base value outright.
    """
    if not (is_object(base) and is_object(overlay)):
        return clone(overlay)

    merged = clone(base)
    for key, item in overlay.items():
        if key in merged:
            merged[key] = merge_values(merged[key], item)
        else:
            merged[key] = clone(item)
    return merged


def merge_with_defaults(
    schema: type[T], delta: Value | None, defaults: T | None = None
) -> T:
    """Rebuild a full settings instance from a stored delta.

    Keys the schema does not know survive the merge and are then ignored
    by deserialization, so files written by newer versions still load.

    Args:
        schema: Settings dataclass
        delta: Stored delta, or None for "all defaults"
        defaults: Baseline instance (default: ``schema()``)

    Returns:
        A new ``schema`` instance

    Raises:
        SerializationError: If the merged tree does not fit ``schema``

    """
    base = to_value(defaults if defaults is not None else schema())
    if delta is None:
        return from_value(schema, base)

    merged = merge_values(base, delta)
    logger.debug("Merged delta into %s defaults", schema.__name__)
    return from_value(schema, merged)
