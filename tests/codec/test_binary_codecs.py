"""Tests for the binary codecs."""

import struct

import pytest

from delta_settings.codec.binary import (
    decode_binary,
    decode_binary_fixed,
    encode_binary,
    encode_binary_fixed,
    encode_uvarint,
    zigzag_decode,
    zigzag_encode,
)
from delta_settings.constants import INT64_MAX, INT64_MIN, MAX_NESTING_DEPTH
from delta_settings.exceptions import SerializationError


class TestVarints:
    """Test varint and zig-zag helpers."""

    def test_uvarint_bytes(self):
        """Test LEB128 output for small and multi-byte numbers."""
        assert encode_uvarint(0) == b"\x00"
        assert encode_uvarint(127) == b"\x7f"
        assert encode_uvarint(300) == b"\xac\x02"

    def test_uvarint_rejects_negative(self):
        """Test negative numbers cannot be varint-encoded."""
        with pytest.raises(SerializationError):
            encode_uvarint(-1)

    @pytest.mark.parametrize(
        ("number", "encoded"),
        [(0, 0), (-1, 1), (1, 2), (-2, 3), (INT64_MAX, 2**64 - 2)],
    )
    def test_zigzag(self, number, encoded):
        """Test zig-zag mapping and its inverse."""
        assert zigzag_encode(number) == encoded
        assert zigzag_decode(encoded) == number

    def test_zigzag_minimum(self):
        """Test the most negative 64-bit integer maps to the top value."""
        assert zigzag_encode(INT64_MIN) == 2**64 - 1
        assert zigzag_decode(2**64 - 1) == INT64_MIN


class TestCompactBinary:
    """Test the varint layout."""

    def test_exact_bytes(self):
        """Test the framing of a one-key object."""
        assert encode_binary({"a": 1}) == b"DSB1\x06\x07\x01\x01a\x03\x02"

    def test_preserves_number_kinds(self):
        """Test int/float distinction and bool/int distinction."""
        decoded = decode_binary(encode_binary([1, 1.0, True, None]))
        assert decoded == [1, 1.0, True, None]
        assert [type(v) for v in decoded] == [int, float, bool, type(None)]

    def test_trailing_bytes_are_ignored(self):
        """Test stale bytes after the payload do not matter."""
        data = encode_binary({"x": "y"}) + b"stale-buffer-contents"
        assert decode_binary(data) == {"x": "y"}

    def test_truncated_payload(self):
        """Test a short buffer is an error."""
        data = encode_binary({"name": "value"})
        with pytest.raises(SerializationError, match="truncated"):
            decode_binary(data[:-1])

    def test_bad_magic(self):
        """Test data from another format is refused."""
        with pytest.raises(SerializationError, match="bad magic"):
            decode_binary(encode_binary_fixed({"a": 1}))

    def test_unknown_tag(self):
        """Test an unassigned tag byte is an error."""
        with pytest.raises(SerializationError, match="unknown type tag"):
            decode_binary(b"DSB1\x01\x09")

    def test_unread_payload_bytes(self):
        """Test bytes left inside the declared payload are an error."""
        with pytest.raises(SerializationError, match="unread bytes"):
            decode_binary(b"DSB1\x02\x00\x00")

    def test_duplicate_keys(self):
        """Test an object may not repeat a key."""
        payload = b"\x07\x02\x01a\x00\x01a\x00"
        data = b"DSB1" + encode_uvarint(len(payload)) + payload
        with pytest.raises(SerializationError, match="duplicate"):
            decode_binary(data)

    def test_invalid_utf8(self):
        """Test undecodable string bytes are an error."""
        payload = b"\x05\x01\xff"
        data = b"DSB1" + encode_uvarint(len(payload)) + payload
        with pytest.raises(SerializationError, match="UTF-8"):
            decode_binary(data)

    def test_integer_out_of_range(self):
        """Test integers beyond 64 bits are refused."""
        with pytest.raises(SerializationError, match="64 bits"):
            encode_binary({"big": INT64_MAX + 1})

    def test_huge_count_is_rejected(self):
        """Test element counts larger than the data fail fast."""
        payload = b"\x06" + encode_uvarint(10**9)
        data = b"DSB1" + encode_uvarint(len(payload)) + payload
        with pytest.raises(SerializationError, match="exceeds"):
            decode_binary(data)

    def test_deep_nesting_is_rejected(self):
        """Test thousands of nested sequences fail without recursing."""
        payload = b"\x06\x01" * 5000 + b"\x00"
        data = b"DSB1" + encode_uvarint(len(payload)) + payload
        with pytest.raises(SerializationError, match="nesting deeper"):
            decode_binary(data)

    def test_nesting_at_the_limit(self):
        """Test the deepest allowed nesting still decodes."""
        value = None
        for _ in range(MAX_NESTING_DEPTH):
            value = [value]
        assert decode_binary(encode_binary(value)) == value


class TestFixedBinary:
    """Test the fixed-width layout."""

    def test_exact_bytes(self):
        """Test big-endian fixed-width lengths and integers."""
        payload = (
            b"\x07"
            + struct.pack(">Q", 1)
            + struct.pack(">Q", 1)
            + b"n"
            + b"\x03"
            + struct.pack(">q", -5)
        )
        expected = b"DSF1" + struct.pack(">Q", len(payload)) + payload
        assert encode_binary_fixed({"n": -5}) == expected

    def test_round_trip_extremes(self):
        """Test the 64-bit limits and a float survive."""
        data = {"min": INT64_MIN, "max": INT64_MAX, "pi": 3.14159}
        assert decode_binary_fixed(encode_binary_fixed(data)) == data

    def test_trailing_bytes_are_ignored(self):
        """Test stale bytes after the payload do not matter."""
        data = encode_binary_fixed([1, 2]) + b"\x00" * 16
        assert decode_binary_fixed(data) == [1, 2]

    def test_deep_nesting_is_rejected(self):
        """Test deeply nested objects fail in the fixed layout too."""
        level = b"\x07" + struct.pack(">Q", 1) + struct.pack(">Q", 1) + b"k"
        payload = level * 5000 + b"\x00"
        data = b"DSF1" + struct.pack(">Q", len(payload)) + payload
        with pytest.raises(SerializationError, match="nesting deeper"):
            decode_binary_fixed(data)
