"""Self-describing binary encodings of the Value tree.

Both formats share one layout::

    magic (4 bytes) | payload length | payload

and tag every node with one byte:

    0x00 null   0x01 false   0x02 true   0x03 int   0x04 float
    0x05 str    0x06 seq     0x07 object

``BINARY`` writes lengths as unsigned LEB128 varints and integers as
zig-zag varints. ``BINARY_FIXED`` writes lengths as ``>Q`` and integers
as ``>q``. Floats are ``>d`` in both.

The decoder reads exactly the declared payload and ignores whatever
follows it, so a buffer reused across writes may carry stale bytes.
Sequences and objects nested deeper than ``MAX_NESTING_DEPTH`` are
rejected while reading.
"""

import struct

from delta_settings.constants import (
    BINARY_FIXED_MAGIC,
    BINARY_MAGIC,
    INT64_MAX,
    INT64_MIN,
    MAX_NESTING_DEPTH,
)
from delta_settings.exceptions import SerializationError
from delta_settings.value import Value

TAG_NULL = 0x00
TAG_FALSE = 0x01
TAG_TRUE = 0x02
TAG_INT = 0x03
TAG_FLOAT = 0x04
TAG_STR = 0x05
TAG_SEQ = 0x06
TAG_OBJECT = 0x07

_MAGIC_SIZE = 4
_MAX_VARINT_BYTES = 10

_FIXED_LENGTH = struct.Struct(">Q")
_FIXED_INT = struct.Struct(">q")
_FLOAT = struct.Struct(">d")


class _Writer:
    """Accumulates the payload for one document."""

    def __init__(self, *, fixed: bool) -> None:
        self.fixed = fixed
        self.buffer = bytearray()

    def write_length(self, length: int) -> None:
        if self.fixed:
            self.buffer += _FIXED_LENGTH.pack(length)
        else:
            self.buffer += encode_uvarint(length)

    def write_int(self, number: int, path: str) -> None:
        if not INT64_MIN <= number <= INT64_MAX:
            msg = f"integer {number} at {path} does not fit in 64 bits"
            raise SerializationError(msg)
        if self.fixed:
            self.buffer += _FIXED_INT.pack(number)
        else:
            self.buffer += encode_uvarint(zigzag_encode(number))

    def write_str(self, text: str) -> None:
        raw = text.encode("utf-8")
        self.write_length(len(raw))
        self.buffer += raw

    def write_value(self, value: Value, path: str = "$") -> None:
        # bool before int: bool is an int subclass
        if value is None:
            self.buffer.append(TAG_NULL)
        elif value is True:
            self.buffer.append(TAG_TRUE)
        elif value is False:
            self.buffer.append(TAG_FALSE)
        elif isinstance(value, int):
            self.buffer.append(TAG_INT)
            self.write_int(value, path)
        elif isinstance(value, float):
            self.buffer.append(TAG_FLOAT)
            self.buffer += _FLOAT.pack(value)
        elif isinstance(value, str):
            self.buffer.append(TAG_STR)
            self.write_str(value)
        elif isinstance(value, list):
            self.buffer.append(TAG_SEQ)
            self.write_length(len(value))
            for index, item in enumerate(value):
                self.write_value(item, f"{path}[{index}]")
        elif isinstance(value, dict):
            self.buffer.append(TAG_OBJECT)
            self.write_length(len(value))
            for key, item in value.items():
                if not isinstance(key, str):
                    msg = f"object key {key!r} at {path} is not a string"
                    raise SerializationError(msg)
                self.write_str(key)
                self.write_value(item, f"{path}.{key}")
        else:
            msg = (
                f"unsupported value of type {type(value).__name__} at {path}"
            )
            raise SerializationError(msg)


class _Reader:
    """Cursor over one payload."""

    def __init__(self, data: bytes, *, fixed: bool) -> None:
        self.data = data
        self.fixed = fixed
        self.pos = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def take(self, size: int) -> bytes:
        if size > self.remaining:
            msg = (
                f"truncated binary data: need {size} bytes at offset "
                f"{self.pos}, {self.remaining} left"
            )
            raise SerializationError(msg)
        chunk = self.data[self.pos : self.pos + size]
        self.pos += size
        return chunk

    def read_uvarint(self) -> int:
        result = 0
        for shift in range(0, 7 * _MAX_VARINT_BYTES, 7):
            byte = self.take(1)[0]
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result
        msg = f"varint longer than {_MAX_VARINT_BYTES} bytes"
        raise SerializationError(msg)

    def read_length(self) -> int:
        if self.fixed:
            return _FIXED_LENGTH.unpack(self.take(_FIXED_LENGTH.size))[0]
        return self.read_uvarint()

    def read_count(self) -> int:
        # Every element takes at least one byte, which bounds the count
        count = self.read_length()
        if count > self.remaining:
            msg = f"element count {count} exceeds remaining data"
            raise SerializationError(msg)
        return count

    def read_int(self) -> int:
        if self.fixed:
            return _FIXED_INT.unpack(self.take(_FIXED_INT.size))[0]
        return zigzag_decode(self.read_uvarint())

    def read_str(self) -> str:
        raw = self.take(self.read_length())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            msg = f"invalid UTF-8 in string at offset {self.pos}: {e}"
            raise SerializationError(msg) from e

    def read_value(self, depth: int = 0) -> Value:
        tag = self.take(1)[0]
        if tag in (TAG_SEQ, TAG_OBJECT) and depth >= MAX_NESTING_DEPTH:
            msg = (
                f"nesting deeper than {MAX_NESTING_DEPTH} levels at offset "
                f"{self.pos - 1}"
            )
            raise SerializationError(msg)
        if tag == TAG_NULL:
            return None
        if tag == TAG_FALSE:
            return False
        if tag == TAG_TRUE:
            return True
        if tag == TAG_INT:
            return self.read_int()
        if tag == TAG_FLOAT:
            return _FLOAT.unpack(self.take(_FLOAT.size))[0]
        if tag == TAG_STR:
            return self.read_str()
        if tag == TAG_SEQ:
            return [
                self.read_value(depth + 1)
                for _ in range(self.read_count())
            ]
        if tag == TAG_OBJECT:
            result: dict[str, Value] = {}
            for _ in range(self.read_count()):
                key = self.read_str()
                if key in result:
                    msg = f"duplicate object key {key!r}"
                    raise SerializationError(msg)
                result[key] = self.read_value(depth + 1)
            return result
        msg = f"unknown type tag 0x{tag:02x} at offset {self.pos - 1}"
        raise SerializationError(msg)


def encode_uvarint(number: int) -> bytes:
    """Encode a non-negative integer as unsigned LEB128."""
    if number < 0:
        msg = f"cannot varint-encode negative number {number}"
        raise SerializationError(msg)
    out = bytearray()
    while True:
        byte = number & 0x7F
        number >>= 7
        if number:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def zigzag_encode(number: int) -> int:
    """Map a signed 64-bit integer onto an unsigned one."""
    return (number << 1) ^ (number >> 63)


def zigzag_decode(number: int) -> int:
    """Inverse of ``zigzag_encode``."""
    return (number >> 1) ^ -(number & 1)


def _encode(value: Value, *, fixed: bool, magic: bytes) -> bytes:
    payload = _Writer(fixed=fixed)
    payload.write_value(value)

    envelope = _Writer(fixed=fixed)
    envelope.buffer += magic
    envelope.write_length(len(payload.buffer))
    envelope.buffer += payload.buffer
    return bytes(envelope.buffer)


def _decode(data: bytes, *, fixed: bool, magic: bytes) -> Value:
    header = _Reader(bytes(data), fixed=fixed)
    if header.take(_MAGIC_SIZE) != magic:
        msg = f"bad magic, expected {magic!r}"
        raise SerializationError(msg)
    length = header.read_length()
    payload = _Reader(header.take(length), fixed=fixed)

    value = payload.read_value()
    if payload.remaining:
        msg = f"{payload.remaining} unread bytes inside declared payload"
        raise SerializationError(msg)
    return value


def encode_binary(value: Value) -> bytes:
    """Encode a Value in the compact varint layout."""
    return _encode(value, fixed=False, magic=BINARY_MAGIC)


def decode_binary(data: bytes) -> Value:
    """Decode the compact varint layout."""
    return _decode(data, fixed=False, magic=BINARY_MAGIC)


def encode_binary_fixed(value: Value) -> bytes:
    """Encode a Value in the fixed-width layout."""
    return _encode(value, fixed=True, magic=BINARY_FIXED_MAGIC)


def decode_binary_fixed(data: bytes) -> Value:
    """Decode the fixed-width layout."""
    return _decode(data, fixed=True, magic=BINARY_FIXED_MAGIC)
