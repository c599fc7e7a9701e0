"""Tests for controller parameters and parameter files."""

import json
import math

import pytest

from potential_control import config
from potential_control.config import ControllerParameters, load_parameters


class TestControllerParameters:
    def test_defaults(self) -> None:
        params = ControllerParameters()

        assert params.k_att == pytest.approx(0.2)
        assert params.k_rep == pytest.approx(0.5)
        assert params.max_angular_velocity == pytest.approx(0.8)
        assert params.sector_count == 2
        assert params.validate() is params

    @pytest.mark.parametrize(
        "overrides",
        [
            {"k_att": 0.0},
            {"k_rep": -0.5},
            {"max_angular_velocity": 0.0},
            {"max_angular_velocity": math.nan},
            {"min_obstacle_distance": 0.0},
            {"nominal_speed": -0.1},
            {"nominal_speed": math.inf},
            {"sector_count": 1},
            {"sector_count": 2.5},
            {"sector_count": True},
            {"k_att": "0.3"},
            {"max_angular_velocity": None},
            {"nominal_speed": "fast"},
        ],
    )
    def test_out_of_range_rejected(self, overrides) -> None:
        with pytest.raises(ValueError):
            ControllerParameters(**overrides).validate()

    def test_zero_nominal_speed_allowed(self) -> None:
        ControllerParameters(nominal_speed=0.0).validate()

    def test_with_overrides(self) -> None:
        base = ControllerParameters()
        tuned = base.with_overrides(k_att=0.4, sector_count=4)

        assert tuned.k_att == pytest.approx(0.4)
        assert tuned.sector_count == 4
        assert base.k_att == pytest.approx(config.K_ATT)

    def test_with_overrides_validates(self) -> None:
        with pytest.raises(ValueError):
            ControllerParameters().with_overrides(k_rep=0.0)

    def test_from_dict_unknown_key(self) -> None:
        with pytest.raises(ValueError, match="Unknown controller parameters: k_foo"):
            ControllerParameters.from_dict({"k_foo": 1.0})

    def test_to_dict_round_trip(self) -> None:
        params = ControllerParameters(k_rotation=1.5)
        assert ControllerParameters.from_dict(params.to_dict()) == params


class TestLoadParameters:
    def test_valid_file(self, tmp_path) -> None:
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"k_att": 0.3, "max_angular_velocity": 1.2}))

        params = load_parameters(path)

        assert params.k_att == pytest.approx(0.3)
        assert params.max_angular_velocity == pytest.approx(1.2)
        assert params.k_rep == pytest.approx(config.K_REP)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_parameters(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "params.json"
        path.write_text("{k_att: 0.3")

        with pytest.raises(ValueError, match="Invalid JSON"):
            load_parameters(path)

    def test_not_an_object(self, tmp_path) -> None:
        path = tmp_path / "params.json"
        path.write_text("[0.3, 0.5]")

        with pytest.raises(ValueError, match="JSON object"):
            load_parameters(path)

    def test_non_numeric_value(self, tmp_path) -> None:
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"k_att": "0.3"}))

        with pytest.raises(ValueError, match="k_att must be a number"):
            load_parameters(path)

    def test_out_of_range_value(self, tmp_path) -> None:
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"sector_count": 0}))

        with pytest.raises(ValueError):
            load_parameters(path)
