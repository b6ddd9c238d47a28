"""
tests/test_config_schema.py - Parameter File Tests
"""

import json

import pytest

from abcsim.config_schema import (
    get_schema,
    load_parameters,
    parameters_from_mapping,
    save_parameters,
    validate_parameters,
)
from abcsim.types_config import PRESET_BLACK_HOLE, SimParameters


class TestValidateParameters:
    """Type errors are hard, ranges and unknown keys are soft."""

    def test_valid(self):
        errors, warns = validate_parameters({"n_abc": 50, "density": 0.5})
        assert errors == []
        assert warns == []

    def test_camel_case_accepted(self):
        errors, warns = validate_parameters({"centralMass": 3, "timeSpeed": 2})
        assert errors == []
        assert warns == []

    def test_wrong_type_is_error(self):
        errors, _ = validate_parameters({"density": "dense"})
        assert errors

    def test_out_of_range_is_warning(self):
        errors, warns = validate_parameters({"velocity": 1.5})
        assert errors == []
        assert any("velocity" in w for w in warns)

    def test_unknown_key_is_warning(self):
        errors, warns = validate_parameters({"molecules": True})
        assert errors == []
        assert warns == ["Unknown parameter: molecules"]

    def test_unknown_preset_is_error(self):
        errors, _ = validate_parameters({"preset": "wormhole"})
        assert errors

    def test_non_mapping(self):
        errors, _ = validate_parameters([1, 2, 3])
        assert errors

    def test_schema_copy(self):
        schema = get_schema()
        schema["title"] = "changed"
        assert get_schema()["title"] == "SimParameters"


class TestParametersFromMapping:

    def test_preset_base_with_override(self):
        params = parameters_from_mapping({"preset": "black_hole", "central_mass": 20})
        assert params.central_mass == 20.0
        assert params.n_abc == PRESET_BLACK_HOLE.n_abc

    def test_warning_emitted(self):
        with pytest.warns(UserWarning, match="Unknown parameter"):
            params = parameters_from_mapping({"molecules": 1, "n_abc": 4})
        assert params.n_abc == 4

    def test_strict_promotes_warnings(self):
        with pytest.raises(ValueError):
            parameters_from_mapping({"velocity": 2.0}, strict=True)

    def test_type_error_raises(self):
        with pytest.raises(ValueError):
            parameters_from_mapping({"n_abc": "many"})


class TestFiles:
    """JSON and YAML on disk."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text("preset: atomic_formation\ntimeSpeed: 0.25\n")
        params = load_parameters(str(path))
        assert params.time_speed == 0.25
        assert params.strong_energy == 5.0

    def test_json(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"n_abc": 12, "radioPi": 2.0}))
        params = load_parameters(str(path))
        assert params.n_abc == 12
        assert params.radio_pi == 2.0

    def test_empty_yaml_is_defaults(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_parameters(str(path)) == SimParameters()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_parameters(str(tmp_path / "nope.json"))

    def test_unparseable(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_parameters(str(path))

    @pytest.mark.parametrize("name", ["out.json", "out.yaml"])
    def test_save_then_load(self, tmp_path, name):
        params = SimParameters(n_abc=42, central_mass=-1.5, velocity=0.5)
        path = tmp_path / name
        save_parameters(params, str(path))
        assert load_parameters(str(path)) == params
