"""Tests for the delta engine."""

from dataclasses import dataclass, field

import pytest

from delta_settings.delta import (
    NO_CHANGE,
    compute_delta,
    diff_values,
    merge_values,
    merge_with_defaults,
)
from delta_settings.exceptions import SerializationError


@dataclass
class Nested:
    x: bool = False
    y: int = 0


@dataclass
class Sample:
    a: int = 1
    b: int = 2
    nested: Nested = field(default_factory=Nested)


@dataclass
class Profile:
    name: str | None = "player"
    scores: list[int] = field(default_factory=lambda: [1, 2, 3])
    volume: float = 0.5


@dataclass
class Video:
    width: int = 800
    gamma: float = 1
    curve: list[float] = field(default_factory=lambda: [0, 1])


class TestComputeDelta:
    """Test compute_delta."""

    def test_defaults_have_no_delta(self):
        """Test an instance equal to its defaults yields None."""
        assert compute_delta(Sample()) is None

    def test_partial_update_keeps_only_changed_leaf(self):
        """Test changing one nested field stores just that field."""
        instance = Sample(nested=Nested(x=True))
        assert compute_delta(instance) == {"nested": {"x": True}}

    def test_sequences_are_stored_whole(self):
        """Test lists are never diffed element by element."""
        instance = Profile(scores=[1, 2, 4])
        assert compute_delta(instance) == {"scores": [1, 2, 4]}

    def test_changed_to_none_is_kept(self):
        """Test a field changed to None is part of the delta."""
        assert compute_delta(Profile(name=None)) == {"name": None}

    def test_explicit_defaults(self):
        """Test diffing against a supplied baseline."""
        baseline = Sample(a=5)
        assert compute_delta(Sample(a=5, b=3), baseline) == {"b": 3}

    def test_int_float_change_is_detected(self):
        """Test type-strict comparison of leaves."""
        assert diff_values({"v": 1}, {"v": 1.0}) == {"v": 1}

    def test_int_default_in_float_field_round_trips(self):
        """Test a loaded instance does not differ from int float defaults."""
        loaded = merge_with_defaults(Video, {"width": 1024})
        assert compute_delta(loaded) == {"width": 1024}
        assert compute_delta(merge_with_defaults(Video, None)) is None

    def test_int_assigned_to_float_field(self):
        """Test an int equal to a float default is no change."""
        assert compute_delta(Video(gamma=1.0, curve=[0.0, 1])) is None
        assert compute_delta(Video(gamma=2)) == {"gamma": 2.0}


class TestDiffValues:
    """Test the raw Value diff."""

    def test_equal_values(self):
        """Test equal trees report NO_CHANGE."""
        assert diff_values({"a": [1]}, {"a": [1]}) is NO_CHANGE

    def test_keys_missing_from_default_are_copied(self):
        """Test keys the default lacks are kept verbatim."""
        assert diff_values({"new": {"k": 1}}, {}) == {"new": {"k": 1}}

    def test_empty_nested_diff_is_omitted(self):
        """Test unchanged nested objects vanish from the parent."""
        current = {"same": {"k": 1}, "changed": 2}
        default = {"same": {"k": 1}, "changed": 1}
        assert diff_values(current, default) == {"changed": 2}

    def test_object_replaced_by_scalar(self):
        """Test a kind change keeps the whole current value."""
        assert diff_values({"a": 3}, {"a": {"b": 1}}) == {"a": 3}

    def test_result_is_a_copy(self):
        """Test the delta does not alias the input."""
        current = {"a": [1, 2]}
        delta = diff_values(current, {"a": []})
        delta["a"].append(3)
        assert current == {"a": [1, 2]}


class TestMergeValues:
    """Test merge_values."""

    def test_nested_merge(self):
        """Test overlay keys recurse into base objects."""
        base = {"a": 1, "n": {"x": False, "y": 0}}
        assert merge_values(base, {"n": {"x": True}}) == {
            "a": 1,
            "n": {"x": True, "y": 0},
        }

    def test_new_keys_are_inserted(self):
        """Test keys absent from the base are added."""
        assert merge_values({"a": 1}, {"b": 2}) == {"a": 1, "b": 2}

    def test_scalar_overlay_replaces(self):
        """Test a non-object overlay wins outright."""
        assert merge_values({"a": 1}, [1]) == [1]

    def test_inputs_are_not_mutated(self):
        """Test neither argument changes."""
        base = {"n": {"x": 1}}
        overlay = {"n": {"y": 2}}
        merge_values(base, overlay)
        assert base == {"n": {"x": 1}}
        assert overlay == {"n": {"y": 2}}


class TestMergeWithDefaults:
    """Test merge_with_defaults."""

    def test_none_delta_gives_defaults(self):
        """Test a missing delta rebuilds the defaults."""
        assert merge_with_defaults(Sample, None) == Sample()

    def test_round_trip(self):
        """Test merge(compute(v)) == v for representative instances."""
        instances = [
            Sample(),
            Sample(a=9, nested=Nested(y=4)),
            Profile(name=None, scores=[], volume=1.0),
        ]
        for instance in instances:
            delta = compute_delta(instance)
            assert merge_with_defaults(type(instance), delta) == instance

    def test_unknown_keys_are_dropped(self):
        """Test keys from newer schemas are ignored."""
        merged = merge_with_defaults(Sample, {"a": 3, "removed": True})
        assert merged == Sample(a=3)

    def test_incompatible_delta(self):
        """Test a delta of the wrong shape raises."""
        with pytest.raises(SerializationError):
            merge_with_defaults(Sample, {"nested": "flat"})

    def test_changed_defaults_flow_through(self):
        """Test untouched fields follow the supplied baseline."""
        merged = merge_with_defaults(Sample, {"b": 7}, Sample(a=100))
        assert merged == Sample(a=100, b=7)
