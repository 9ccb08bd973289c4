"""The Value tree shared by every codec and by diff/merge.

A Value is ``None``, ``bool``, ``int``, ``float``, ``str``, a ``list`` of
Values or a ``dict`` mapping ``str`` to Values. Nothing else is allowed:
tuples, sets, bytes and non-string keys are rejected by ``check_value``
instead of being silently coerced.
"""

import copy
import math
from typing import TypeAlias, TypeGuard

from delta_settings.constants import MAX_NESTING_DEPTH
from delta_settings.exceptions import SerializationError

Value: TypeAlias = (
    bool | int | float | str | list["Value"] | dict[str, "Value"] | None
)

_SCALAR_TYPES = (bool, int, float, str)


def kind_of(value: object) -> str:
    """Return the Value kind name used in error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "sequence"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def is_object(value: object) -> TypeGuard[dict[str, Value]]:
    """Return True if value is an Object (a ``dict``)."""
    return isinstance(value, dict)


def is_scalar(value: object) -> bool:
    """Return True for null, bool, number and string Values."""
    return value is None or isinstance(value, _SCALAR_TYPES)


def check_value(obj: object, path: str = "$") -> None:
    """Verify that ``obj`` is a well-formed Value tree.

    Args:
        obj: Candidate Value
        path: Location prefix used in error messages

    Raises:
        SerializationError: If any node is not a Value, or sequences and
            objects nest deeper than ``MAX_NESTING_DEPTH``

    """
    _check_node(obj, path, 0)


def _check_node(obj: object, path: str, depth: int) -> None:
    if obj is None or isinstance(obj, _SCALAR_TYPES):
        return
    if depth >= MAX_NESTING_DEPTH and isinstance(obj, (list, dict)):
        msg = f"nesting deeper than {MAX_NESTING_DEPTH} levels at {path}"
        raise SerializationError(msg)
    if isinstance(obj, list):
        for index, item in enumerate(obj):
            _check_node(item, f"{path}[{index}]", depth + 1)
        return
    if isinstance(obj, dict):
        for key, item in obj.items():
            if not isinstance(key, str):
                msg = (
                    f"object key {key!r} at {path} is "
                    f"{type(key).__name__}, expected string"
                )
                raise SerializationError(msg)
            _check_node(item, f"{path}.{key}", depth + 1)
        return
    msg = f"unsupported value of type {type(obj).__name__} at {path}"
    raise SerializationError(msg)


def values_equal(left: Value, right: Value) -> bool:
    """Compare two Values structurally and type-strictly.

    ``True`` and ``1`` differ, as do ``1`` and ``1.0``: a value that
    changed kind must show up in a delta. NaN never equals itself.
    """
    if isinstance(left, dict):
        if not isinstance(right, dict) or left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if isinstance(left, list):
        if not isinstance(right, list) or len(left) != len(right):
            return False
        return all(
            values_equal(a, b) for a, b in zip(left, right, strict=True)
        )
    if type(left) is not type(right):
        return False
    if isinstance(left, float) and math.isnan(left):
        return False
    return left == right


def clone(value: Value) -> Value:
    """Return a deep copy of ``value``."""
    return copy.deepcopy(value)
