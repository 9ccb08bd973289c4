"""Tests for path templates and store naming."""

from pathlib import Path

import pytest

from delta_settings.exceptions import (
    EmptyParamError,
    MissingParamError,
    PathResolutionError,
)
from delta_settings.paths import (
    PathTemplate,
    copy_params,
    extract_params,
    resolve,
    section_filename,
    split_store_name,
    strip_params,
    validate_params,
)


class TestExtractParams:
    """Test extract_params."""

    def test_left_to_right(self):
        """Test placeholders are returned in order."""
        assert extract_params("saves/{slot_id}/{profile}.json") == [
            "slot_id",
            "profile",
        ]

    def test_no_placeholders(self):
        """Test a literal path has no params."""
        assert extract_params("settings/game.json") == []

    def test_unterminated_brace(self):
        """Test an unterminated brace yields nothing."""
        assert extract_params("saves/{slot_id/game.json") == []

    def test_empty_braces(self):
        """Test empty braces yield nothing."""
        assert extract_params("saves/{}/game.json") == []

    def test_duplicates_reported_once(self):
        """Test a repeated name appears once."""
        assert extract_params("{id}/{id}.json") == ["id"]


class TestValidateParams:
    """Test validate_params."""

    def test_missing(self):
        """Test an absent field raises MissingParamError."""
        with pytest.raises(MissingParamError) as exc_info:
            validate_params(["slot_id"], {"level": 1})
        assert exc_info.value.param == "slot_id"

    @pytest.mark.parametrize("empty", [None, "", "   "])
    def test_empty(self, empty):
        """Test null and blank fields raise EmptyParamError."""
        with pytest.raises(EmptyParamError, match="must not be empty"):
            validate_params(["slot_id"], {"slot_id": empty})

    def test_zero_is_not_empty(self):
        """Test falsy non-string scalars are valid."""
        validate_params(["slot"], {"slot": 0})

    def test_fields_must_be_object(self):
        """Test a non-object instance cannot carry params."""
        with pytest.raises(PathResolutionError, match="not an object"):
            validate_params(["slot"], [1])


class TestResolve:
    """Test resolve."""

    def test_substitutes_fields(self):
        """Test every placeholder is filled."""
        path = resolve("saves/{slot_id}/game.json", {"slot_id": "slot_1"})
        assert path == Path("saves/slot_1/game.json")

    def test_scalar_forms(self):
        """Test bools, ints and floats render as text."""
        path = resolve(
            "{a}-{b}-{c}.json", {"a": True, "b": 3, "c": 1.5}
        )
        assert path == Path("true-3-1.5.json")

    def test_base_path(self, tmp_path):
        """Test relative templates are joined to the base path."""
        path = resolve("{id}.toml", {"id": "x"}, tmp_path)
        assert path == tmp_path / "x.toml"

    def test_absolute_template_ignores_base(self, tmp_path):
        """Test absolute templates stay absolute."""
        template = str(tmp_path / "{id}.json")
        assert resolve(template, {"id": "a"}, "elsewhere") == (
            tmp_path / "a.json"
        )

    def test_non_scalar_param(self):
        """Test structured fields cannot be placeholders."""
        with pytest.raises(PathResolutionError, match="expected a scalar"):
            resolve("{slot}.json", {"slot": {"id": 1}})

    @pytest.mark.parametrize(
        "slot", ["../../outside", "a/b", "a\\b", "..", ".", "nul\0byte"]
    )
    def test_value_must_be_one_segment(self, tmp_path, slot):
        """Test placeholder values cannot leave their directory."""
        with pytest.raises(PathResolutionError, match="single segment"):
            resolve("saves/{slot}/game.json", {"slot": slot}, tmp_path)

    def test_dots_inside_a_segment(self):
        """Test dotted names that are not dot segments are kept."""
        path = resolve("{slot}.json", {"slot": "v1..2"})
        assert path == Path("v1..2.json")

    def test_validation_happens_first(self):
        """Test a missing placeholder field is reported."""
        with pytest.raises(MissingParamError):
            resolve("{slot}.json", {})


class TestStripAndCopy:
    """Test strip_params and copy_params."""

    def test_strip_removes_params(self):
        """Test placeholder fields never reach the file."""
        assert strip_params({"slot_id": "a", "level": 2}, ["slot_id"]) == {
            "level": 2
        }

    def test_strip_to_nothing(self):
        """Test a delta of only params becomes None."""
        assert strip_params({"slot_id": "a"}, ["slot_id"]) is None

    def test_strip_none(self):
        """Test a missing delta stays missing."""
        assert strip_params(None, ["slot_id"]) is None

    def test_copy_params(self):
        """Test params come from the source, the rest from the target."""
        result = copy_params(
            {"slot_id": "slot_1", "level": 9},
            {"slot_id": "", "level": 1},
            ["slot_id"],
        )
        assert result == {"slot_id": "slot_1", "level": 1}

    def test_copy_params_does_not_mutate(self):
        """Test the target is copied, not edited."""
        target = {"slot_id": ""}
        copy_params({"slot_id": "x"}, target, ["slot_id"])
        assert target == {"slot_id": ""}


class TestPathTemplate:
    """Test PathTemplate."""

    def test_params_parsed_once(self):
        """Test params and extension are derived from the template."""
        template = PathTemplate("saves/{slot_id}/game.toml")
        assert template.params == ("slot_id",)
        assert template.extension == "toml"
        assert str(template) == "saves/{slot_id}/game.toml"

    def test_resolve(self):
        """Test resolution through the value object."""
        template = PathTemplate("{user}/prefs.json")
        assert template.resolve({"user": "ann"}, "base") == Path(
            "base/ann/prefs.json"
        )

    def test_empty_template(self):
        """Test blank templates are refused."""
        with pytest.raises(PathResolutionError):
            PathTemplate("  ")

    def test_frozen(self):
        """Test templates are immutable."""
        template = PathTemplate("a.json")
        with pytest.raises(AttributeError):
            template.template = "b.json"


class TestStoreNames:
    """Test the [token] store-name convention."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("[slot1]", ("slot1", "")),
            ("[slot1]game", ("slot1", "game")),
            ("game[slot2]", ("slot2", "game")),
            ("settings", (None, "settings")),
        ],
    )
    def test_split_store_name(self, name, expected):
        """Test leading and trailing tokens are recognized."""
        assert split_store_name(name) == expected

    def test_prefixed_filename(self):
        """Test prefixed stores name files after the section type."""
        assert (
            section_filename("[slot1]", "GameSettings", "json")
            == "slot1_GameSettings.json"
        )

    def test_plain_filename(self):
        """Test plain stores keep the store name."""
        assert section_filename("settings", "Audio", ".bin") == "settings.bin"
