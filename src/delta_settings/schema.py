"""Conversion between settings dataclasses and Value trees.

A settings schema is a dataclass whose fields all have defaults, so that
``Schema()`` is the compiled-in default. Supported field types:

- ``bool``, ``int``, ``float``, ``str`` and ``None``
- ``Enum`` subclasses (stored by value) and ``pathlib`` paths (as str)
- ``list[X]``, ``tuple[X, ...]``, fixed tuples, ``set[X]``,
  ``dict[str, X]``
- ``X | None``, unions, ``Literal[...]``, ``Any``
- nested dataclasses

A field may be stored under another key with
``field(metadata={"key": "timeoutSeconds"})``. Unknown keys are ignored
when reading, which lets newer files load into older schemas.
"""

import dataclasses
import functools
import types
import typing
from collections.abc import Mapping, MutableSequence, Sequence
from enum import Enum
from pathlib import PurePath
from typing import Any, Literal, TypeVar, Union, get_args, get_origin

from delta_settings.constants import FIELD_KEY_METADATA
from delta_settings.exceptions import RegistrationError, SerializationError
from delta_settings.value import Value, check_value, kind_of

T = TypeVar("T")

_PLAIN_SCALARS = (bool, int, float, str)
_SEQUENCE_ORIGINS = (list, Sequence, MutableSequence)
_MAPPING_ORIGINS = (dict, Mapping)


def is_schema(schema: object) -> bool:
    """Return True if ``schema`` is a dataclass type."""
    return isinstance(schema, type) and dataclasses.is_dataclass(schema)


def ensure_schema(schema: object) -> None:
    """Raise RegistrationError unless ``schema`` is a dataclass type."""
    if not is_schema(schema):
        msg = f"{schema!r} is not a dataclass type"
        raise RegistrationError(msg)


def default_section_key(schema: type) -> str:
    """Return the default section key: the lowercase class name."""
    return schema.__name__.lower()


def field_key(field: dataclasses.Field) -> str:
    """Return the on-disk key of a dataclass field."""
    return field.metadata.get(FIELD_KEY_METADATA, field.name)


def field_keys(schema: type) -> list[str]:
    """Return the on-disk keys of every field of ``schema``."""
    return [field_key(f) for f in dataclasses.fields(schema)]


@functools.cache
def _type_hints(schema: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(schema)
    except (NameError, TypeError) as e:
        msg = f"cannot resolve type hints of {schema.__name__}: {e}"
        raise RegistrationError(msg) from e


def to_value(obj: object, path: str = "$") -> Value:
    """Serialize a settings instance (or any supported field value).

    Raises:
        SerializationError: If a field holds an unsupported type

    """
    if obj is None or type(obj) in _PLAIN_SCALARS:
        return obj
    if isinstance(obj, Enum):
        return to_value(obj.value, path)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        hints = _type_hints(type(obj))
        return {
            field_key(f): _as_declared(
                hints.get(f.name, Any),
                to_value(getattr(obj, f.name), f"{path}.{f.name}"),
            )
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, PurePath):
        return str(obj)
    if isinstance(obj, (list, tuple)):
        return [to_value(item, f"{path}[{i}]") for i, item in enumerate(obj)]
    if isinstance(obj, (set, frozenset)):
        items = [to_value(item, f"{path}[]") for item in obj]
        try:
            return sorted(items)
        except TypeError as e:
            msg = f"set at {path} holds values that cannot be ordered"
            raise SerializationError(msg) from e
    if isinstance(obj, dict):
        result: dict[str, Value] = {}
        for key, item in obj.items():
            plain_key = key.value if isinstance(key, Enum) else key
            if not isinstance(plain_key, str):
                msg = f"mapping key {key!r} at {path} is not a string"
                raise SerializationError(msg)
            result[plain_key] = to_value(item, f"{path}.{plain_key}")
        return result
    for scalar in _PLAIN_SCALARS:
        # str/int subclasses that are not Enums collapse to the base type
        if isinstance(obj, scalar):
            return scalar(obj)
    msg = f"cannot serialize {type(obj).__name__} at {path}"
    raise SerializationError(msg)


def _holds_float(tp: Any) -> bool:
    if tp is float:
        return True
    if get_origin(tp) in (Union, types.UnionType):
        args = get_args(tp)
        return float in args and int not in args
    return False


def _as_declared(tp: Any, value: Value) -> Value:  # noqa: PLR0911
    """Promote ints held in float-typed slots to float.

    ``gamma: float = 1`` serializes as ``1.0``, the value it loads back
    as, so defaults and loaded instances diff as equal.
    """
    if type(value) is int:
        return float(value) if _holds_float(tp) else value

    origin = get_origin(tp)
    args = get_args(tp)
    if origin in (Union, types.UnionType):
        members = [a for a in args if a is not type(None)]
        if len(members) == 1:
            return _as_declared(members[0], value)
        return value

    if isinstance(value, list) and args:
        if origin in (*_SEQUENCE_ORIGINS, set, frozenset):
            return [_as_declared(args[0], item) for item in value]
        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
                return [_as_declared(args[0], item) for item in value]
            if len(args) == len(value):
                return [
                    _as_declared(item_type, item)
                    for item_type, item in zip(args, value, strict=True)
                ]
    if isinstance(value, dict) and origin in _MAPPING_ORIGINS and args:
        return {
            key: _as_declared(args[1], item) for key, item in value.items()
        }
    return value


def from_value(schema: type[T], value: Value, path: str = "$") -> T:
    """Build a ``schema`` instance from a Value tree.

    Raises:
        SerializationError: If the tree does not fit the schema's shape

    """
    return _convert(schema, value, path)


def _mismatch(expected: str, value: Value, path: str) -> SerializationError:
    msg = f"expected {expected} at {path}, got {kind_of(value)}"
    return SerializationError(msg)


def _from_object(schema: type[T], value: Value, path: str) -> T:
    if not isinstance(value, dict):
        raise _mismatch(f"object for {schema.__name__}", value, path)

    hints = _type_hints(schema)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(schema):
        if not f.init:
            continue
        key = field_key(f)
        if key in value:
            kwargs[f.name] = _convert(
                hints[f.name], value[key], f"{path}.{key}"
            )
        elif (
            f.default is dataclasses.MISSING
            and f.default_factory is dataclasses.MISSING
        ):
            msg = f"missing field '{key}' at {path}"
            raise SerializationError(msg)

    try:
        return schema(**kwargs)
    except (TypeError, ValueError) as e:
        msg = f"cannot construct {schema.__name__} at {path}: {e}"
        raise SerializationError(msg) from e


def _convert(  # noqa: C901, PLR0911, PLR0912
    tp: Any, value: Value, path: str
) -> Any:
    if tp is Any or tp is object:
        check_value(value, path)
        return value
    if tp is None or tp is type(None):
        if value is not None:
            raise _mismatch("null", value, path)
        return None

    origin = get_origin(tp)
    args = get_args(tp)

    if origin is Union or origin is types.UnionType:
        return _convert_union(args, value, path)
    if origin is Literal:
        for choice in args:
            if type(choice) is type(value) and choice == value:
                return value
        msg = f"expected one of {list(args)!r} at {path}, got {value!r}"
        raise SerializationError(msg)

    if tp is bool:
        if not isinstance(value, bool):
            raise _mismatch("bool", value, path)
        return value
    if tp is int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise _mismatch("integer", value, path)
        return value
    if tp is float:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise _mismatch("number", value, path)
        return float(value)
    if tp is str:
        if not isinstance(value, str):
            raise _mismatch("string", value, path)
        return value

    if isinstance(tp, type):
        if issubclass(tp, Enum):
            try:
                return tp(value)
            except ValueError as e:
                msg = f"{value!r} at {path} is not a valid {tp.__name__}"
                raise SerializationError(msg) from e
        if issubclass(tp, PurePath):
            if not isinstance(value, str):
                raise _mismatch("path string", value, path)
            return tp(value)
        if dataclasses.is_dataclass(tp):
            return _from_object(tp, value, path)

    container = origin or tp
    if container in _SEQUENCE_ORIGINS:
        item_type = args[0] if args else Any
        if not isinstance(value, list):
            raise _mismatch("sequence", value, path)
        return [
            _convert(item_type, item, f"{path}[{i}]")
            for i, item in enumerate(value)
        ]
    if container is tuple:
        return _convert_tuple(args, value, path)
    if container in (set, frozenset):
        item_type = args[0] if args else Any
        if not isinstance(value, list):
            raise _mismatch("sequence", value, path)
        return container(
            _convert(item_type, item, f"{path}[{i}]")
            for i, item in enumerate(value)
        )
    if container in _MAPPING_ORIGINS:
        key_type, item_type = args if args else (str, Any)
        if not isinstance(value, dict):
            raise _mismatch("object", value, path)
        return {
            _convert(key_type, key, f"{path}.<key>"): _convert(
                item_type, item, f"{path}.{key}"
            )
            for key, item in value.items()
        }

    msg = f"unsupported field type {tp!r} at {path}"
    raise SerializationError(msg)


def _convert_union(args: tuple, value: Value, path: str) -> Any:
    if value is None and type(None) in args:
        return None
    for member in args:
        if member is type(None):
            continue
        try:
            return _convert(member, value, path)
        except SerializationError:
            continue
    names = " | ".join(getattr(a, "__name__", repr(a)) for a in args)
    raise _mismatch(names, value, path)


def _convert_tuple(args: tuple, value: Value, path: str) -> tuple:
    if not isinstance(value, list):
        raise _mismatch("sequence", value, path)
    if not args or (len(args) == 2 and args[1] is Ellipsis):  # noqa: PLR2004
        item_type = args[0] if args else Any
        return tuple(
            _convert(item_type, item, f"{path}[{i}]")
            for i, item in enumerate(value)
        )
    if len(args) != len(value):
        msg = f"expected {len(args)} items at {path}, got {len(value)}"
        raise SerializationError(msg)
    return tuple(
        _convert(item_type, item, f"{path}[{i}]")
        for i, (item_type, item) in enumerate(zip(args, value, strict=True))
    )
