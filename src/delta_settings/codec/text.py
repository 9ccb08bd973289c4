"""Text codecs: JSON through orjson, TOML through tomllib/tomli-w."""

import tomllib

import orjson
import tomli_w

from delta_settings.exceptions import SerializationError
from delta_settings.value import Value, check_value, kind_of

_JSON_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS


def encode_json(value: Value) -> bytes:
    """Encode a Value as pretty-printed JSON.

    orjson refuses integers outside the 64-bit range; such values are
    reported as SerializationError rather than written lossily.
    """
    try:
        return orjson.dumps(value, option=_JSON_OPTIONS)
    except orjson.JSONEncodeError as e:
        msg = f"cannot encode JSON: {e}"
        raise SerializationError(msg) from e


def decode_json(data: bytes) -> Value:
    """Decode JSON bytes into a Value."""
    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError as e:
        msg = f"invalid JSON: {e}"
        raise SerializationError(msg) from e


def encode_toml(value: Value) -> bytes:
    """Encode an Object as TOML.

    TOML has no null and requires a table at the root, so both are
    rejected here.
    """
    if not isinstance(value, dict):
        msg = f"TOML needs an object at the root, got {kind_of(value)}"
        raise SerializationError(msg)
    try:
        return tomli_w.dumps(value).encode("utf-8")
    except (TypeError, ValueError) as e:
        msg = f"cannot encode TOML: {e}"
        raise SerializationError(msg) from e


def decode_toml(data: bytes) -> Value:
    """Decode TOML bytes into a Value.

    TOML date and time literals have no Value counterpart and are
    rejected.
    """
    try:
        document = tomllib.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        msg = f"TOML input is not valid UTF-8: {e}"
        raise SerializationError(msg) from e
    except tomllib.TOMLDecodeError as e:
        msg = f"invalid TOML: {e}"
        raise SerializationError(msg) from e
    except RecursionError as e:
        msg = "invalid TOML: arrays or tables nested too deeply"
        raise SerializationError(msg) from e

    check_value(document)
    return document
