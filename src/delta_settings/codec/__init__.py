"""Codec layer: Value <-> bytes in one of four formats.

The format is always chosen by the caller (usually from a file
extension) before any I/O happens, so an unsupported extension can
never leave a zero-byte file behind.
"""

from collections.abc import Callable
from pathlib import Path

from delta_settings.codec.binary import (
    decode_binary,
    decode_binary_fixed,
    encode_binary,
    encode_binary_fixed,
)
from delta_settings.codec.formats import SerializationFormat
from delta_settings.codec.text import (
    decode_json,
    decode_toml,
    encode_json,
    encode_toml,
)
from delta_settings.value import Value, check_value

Encoder = Callable[[Value], bytes]
Decoder = Callable[[bytes], Value]

_CODECS: dict[SerializationFormat, tuple[Encoder, Decoder]] = {
    SerializationFormat.JSON: (encode_json, decode_json),
    SerializationFormat.TOML: (encode_toml, decode_toml),
    SerializationFormat.BINARY: (encode_binary, decode_binary),
    SerializationFormat.BINARY_FIXED: (
        encode_binary_fixed,
        decode_binary_fixed,
    ),
}


def encode(value: Value, fmt: SerializationFormat) -> bytes:
    """Encode ``value`` in ``fmt``.

    Raises:
        SerializationError: If the tree is not a Value or the format
            cannot represent it

    """
    check_value(value)
    encoder, _ = _CODECS[fmt]
    return encoder(value)


def decode(data: bytes, fmt: SerializationFormat) -> Value:
    """Decode ``data`` written in ``fmt``.

    Raises:
        SerializationError: If the bytes are not a valid document, or
            nest deeper than ``MAX_NESTING_DEPTH``

    """
    _, decoder = _CODECS[fmt]
    value = decoder(data)
    check_value(value)
    return value


def encode_for_path(value: Value, path: Path | str) -> bytes:
    """Encode ``value`` in the format implied by ``path``'s extension."""
    return encode(value, SerializationFormat.from_path(path))


def decode_for_path(data: bytes, path: Path | str) -> Value:
    """Decode ``data`` using the format implied by ``path``'s extension."""
    return decode(data, SerializationFormat.from_path(path))


__all__ = [
    "SerializationFormat",
    "decode",
    "decode_for_path",
    "encode",
    "encode_for_path",
]
