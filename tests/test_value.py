"""Tests for the Value tree helpers."""

import pytest

from delta_settings.constants import MAX_NESTING_DEPTH
from delta_settings.exceptions import SerializationError
from delta_settings.value import (
    check_value,
    clone,
    is_object,
    is_scalar,
    kind_of,
    values_equal,
)


class TestCheckValue:
    """Test check_value."""

    def test_accepts_nested_tree(self):
        """Test a mixed tree of every Value kind passes."""
        check_value(
            {
                "a": None,
                "b": [1, 2.5, "x", True],
                "c": {"d": {"e": []}},
            }
        )

    def test_rejects_non_string_key(self):
        """Test integer keys are reported with their location."""
        with pytest.raises(SerializationError, match=r"\$\.outer"):
            check_value({"outer": {1: "x"}})

    def test_rejects_tuple(self):
        """Test tuples are not silently treated as sequences."""
        with pytest.raises(SerializationError, match="tuple"):
            check_value({"a": (1, 2)})

    def test_reports_sequence_index(self):
        """Test the failing index appears in the error path."""
        with pytest.raises(SerializationError, match=r"\$\.items\[1\]"):
            check_value({"items": [1, b"raw"]})

    def test_rejects_runaway_nesting(self):
        """Test thousands of nested sequences raise SerializationError."""
        tree: list = []
        for _ in range(5000):
            tree = [tree]
        with pytest.raises(SerializationError, match="nesting deeper"):
            check_value(tree)

    def test_accepts_nesting_at_the_limit(self):
        """Test a tree exactly MAX_NESTING_DEPTH containers deep passes."""
        tree: list = []
        for _ in range(MAX_NESTING_DEPTH - 1):
            tree = [tree]
        check_value(tree)


class TestValuesEqual:
    """Test type-strict structural equality."""

    def test_bool_is_not_int(self):
        """Test True and 1 differ."""
        assert not values_equal(True, 1)
        assert not values_equal(0, False)

    def test_int_is_not_float(self):
        """Test 1 and 1.0 differ."""
        assert not values_equal(1, 1.0)

    def test_nan_never_equal(self):
        """Test NaN differs from itself."""
        nan = float("nan")
        assert not values_equal(nan, nan)

    def test_nested_equal(self):
        """Test deep equality of objects and sequences."""
        left = {"a": [1, {"b": "c"}], "d": None}
        right = {"d": None, "a": [1, {"b": "c"}]}
        assert values_equal(left, right)

    def test_object_key_sets_differ(self):
        """Test objects with different keys differ."""
        assert not values_equal({"a": 1}, {"a": 1, "b": 2})

    def test_sequence_length_differs(self):
        """Test sequences of different lengths differ."""
        assert not values_equal([1, 2], [1, 2, 3])


def test_kind_of_names():
    """Test kind names used in error messages."""
    assert kind_of(None) == "null"
    assert kind_of(True) == "bool"
    assert kind_of(3) == "integer"
    assert kind_of(3.0) == "float"
    assert kind_of("x") == "string"
    assert kind_of([]) == "sequence"
    assert kind_of({}) == "object"
    assert kind_of(b"x") == "bytes"


def test_is_object_and_is_scalar():
    """Test the kind predicates."""
    assert is_object({})
    assert not is_object([])
    assert is_scalar(None)
    assert is_scalar("x")
    assert not is_scalar([1])


def test_clone_is_deep():
    """Test clone copies nested containers."""
    original = {"a": {"b": [1, 2]}}
    copied = clone(original)
    copied["a"]["b"].append(3)
    assert original == {"a": {"b": [1, 2]}}
