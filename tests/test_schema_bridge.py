"""Tests for dataclass <-> Value conversion."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import pytest

from delta_settings.exceptions import RegistrationError, SerializationError
from delta_settings.schema import (
    default_section_key,
    ensure_schema,
    field_keys,
    from_value,
    is_schema,
    to_value,
)


class Quality(Enum):
    LOW = "low"
    HIGH = "high"


@dataclass
class Resolution:
    width: int = 1920
    height: int = 1080


@dataclass
class Graphics:
    quality: Quality = Quality.HIGH
    resolution: Resolution = field(default_factory=Resolution)
    vsync: bool = True
    gamma: float = 2.2
    shader_cache: Path | None = None
    tags: list[str] = field(default_factory=list)
    offsets: tuple[int, int] = (0, 0)
    bindings: dict[str, int] = field(default_factory=dict)
    mode: Literal["windowed", "fullscreen"] = "windowed"
    extra: Any = None
    frame_limit: int = field(default=60, metadata={"key": "frameLimit"})


@dataclass
class Mixer:
    master: float = 1.0
    trim: float | None = None
    buses: dict[str, float] = field(default_factory=dict)
    limits: tuple[float, int] = (0.0, 0)
    raw: int | float = 3


class TestToValue:
    """Test serialization of instances."""

    def test_defaults(self):
        """Test every supported field kind serializes to a Value."""
        assert to_value(Graphics()) == {
            "quality": "high",
            "resolution": {"width": 1920, "height": 1080},
            "vsync": True,
            "gamma": 2.2,
            "shader_cache": None,
            "tags": [],
            "offsets": [0, 0],
            "bindings": {},
            "mode": "windowed",
            "extra": None,
            "frameLimit": 60,
        }

    def test_path_becomes_string(self):
        """Test paths are stored as strings."""
        value = to_value(Graphics(shader_cache=Path("cache/shaders")))
        assert value["shader_cache"] == str(Path("cache/shaders"))

    def test_float_fields_promote_ints(self):
        """Test ints held in float-typed fields serialize as floats."""
        value = to_value(Mixer(master=1, buses={"fx": 0}, limits=(1, 2)))
        assert value == {
            "master": 1.0,
            "trim": None,
            "buses": {"fx": 0.0},
            "limits": [1.0, 2],
            "raw": 3,
        }
        assert type(value["master"]) is float
        assert type(value["buses"]["fx"]) is float
        assert type(value["limits"][1]) is int
        assert type(value["raw"]) is int

    def test_sets_are_sorted(self):
        """Test sets serialize deterministically."""
        assert to_value({"s": {3, 1, 2}}) == {"s": [1, 2, 3]}

    def test_unsupported_type(self):
        """Test arbitrary objects are refused with their location."""
        with pytest.raises(SerializationError, match=r"\$\.x"):
            to_value({"x": object()})

    def test_non_string_mapping_key(self):
        """Test mapping keys must be strings."""
        with pytest.raises(SerializationError, match="not a string"):
            to_value({1: "a"})


class TestFromValue:
    """Test deserialization into dataclasses."""

    def test_round_trip(self):
        """Test a customized instance survives conversion."""
        original = Graphics(
            quality=Quality.LOW,
            resolution=Resolution(1280, 720),
            shader_cache=Path("cache"),
            tags=["hdr"],
            offsets=(4, -4),
            bindings={"jump": 32},
            mode="fullscreen",
            extra={"anything": [1, "two"]},
            frame_limit=144,
        )
        assert from_value(Graphics, to_value(original)) == original

    def test_missing_keys_use_defaults(self):
        """Test absent keys fall back to field defaults."""
        assert from_value(Graphics, {"vsync": False}) == Graphics(vsync=False)

    def test_unknown_keys_are_ignored(self):
        """Test keys written by newer schemas do not break loading."""
        assert from_value(Resolution, {"width": 800, "hdr": True}) == (
            Resolution(width=800)
        )

    def test_renamed_field(self):
        """Test the on-disk key from field metadata is used."""
        assert from_value(Graphics, {"frameLimit": 30}).frame_limit == 30

    def test_int_accepts_no_bool(self):
        """Test bools are not accepted for int fields."""
        with pytest.raises(SerializationError, match=r"\$\.width"):
            from_value(Resolution, {"width": True})

    def test_float_accepts_int(self):
        """Test ints widen to floats."""
        result = from_value(Graphics, {"gamma": 2})
        assert result.gamma == 2.0
        assert isinstance(result.gamma, float)

    def test_invalid_enum(self):
        """Test unknown enum values are reported."""
        with pytest.raises(SerializationError, match="Quality"):
            from_value(Graphics, {"quality": "ultra"})

    def test_invalid_literal(self):
        """Test values outside a Literal are refused."""
        with pytest.raises(SerializationError, match="expected one of"):
            from_value(Graphics, {"mode": "borderless"})

    def test_fixed_tuple_length(self):
        """Test fixed tuples check their length."""
        with pytest.raises(SerializationError, match="expected 2 items"):
            from_value(Graphics, {"offsets": [1, 2, 3]})

    def test_nested_error_path(self):
        """Test errors inside nested dataclasses carry the full path."""
        with pytest.raises(
            SerializationError, match=r"\$\.resolution\.height"
        ):
            from_value(Graphics, {"resolution": {"height": "tall"}})

    def test_root_must_be_object(self):
        """Test a non-object root is refused."""
        with pytest.raises(SerializationError, match="object for Resolution"):
            from_value(Resolution, [1920, 1080])

    def test_post_init_failure(self):
        """Test validation errors from the dataclass are wrapped."""

        @dataclass
        class Volume:
            level: int = 5

            def __post_init__(self):
                if not 0 <= self.level <= 10:
                    msg = "level out of range"
                    raise ValueError(msg)

        with pytest.raises(SerializationError, match="level out of range"):
            from_value(Volume, {"level": 11})


class TestSchemaHelpers:
    """Test schema inspection helpers."""

    def test_is_schema(self):
        """Test only dataclass types qualify."""
        assert is_schema(Resolution)
        assert not is_schema(Resolution())
        assert not is_schema(dict)

    def test_ensure_schema(self):
        """Test non-dataclasses are refused at registration."""
        with pytest.raises(RegistrationError):
            ensure_schema(dict)

    def test_default_section_key(self):
        """Test the key is the lowercase class name."""
        assert default_section_key(Graphics) == "graphics"

    def test_field_keys(self):
        """Test on-disk keys honour renames."""
        assert field_keys(Resolution) == ["width", "height"]
        assert "frameLimit" in field_keys(Graphics)
