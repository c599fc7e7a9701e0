"""Tests for CSV logging of forces and commands."""

import csv
import json

import numpy as np
import pytest

from potential_control.command import Command
from potential_control.config import ControllerParameters
from potential_control.controller import PotentialFieldController
from potential_control.force_logger import ForceLogger
from potential_control.forces import ForceSet
from potential_control.path import TrackingError


def read_rows(path):
    with open(path) as f:
        return list(csv.reader(f))


@pytest.fixture
def logger(tmp_path):
    with ForceLogger(run_dir=str(tmp_path / "run"), clock=lambda: 1.0) as force_logger:
        yield force_logger


def test_headers(logger: ForceLogger) -> None:
    forces_header = read_rows(logger.forces_output_path)[0]
    commands_header = read_rows(logger.commands_output_path)[0]

    assert forces_header[:7] == [
        "timestamp", "f_att_x", "f_att_y", "f_rep_x", "f_rep_y", "f_res_x", "f_res_y"
    ]
    assert forces_header[7:] == ["f_rep0_x", "f_rep0_y", "f_rep1_x", "f_rep1_y"]
    assert commands_header == ["timestamp", "speed", "direction_angle", "rotation", "valid"]


def test_writes_force_row(logger: ForceLogger) -> None:
    forces = ForceSet(
        attractive=np.array([0.2, 0.0]),
        repulsive=np.array([-1.0, 0.5]),
        resultant=np.array([-0.8, 0.5]),
        sector_forces=np.array([[0.0, 0.0], [-1.0, 0.5]]),
    )
    logger.on_forces(forces)

    row = [float(v) for v in read_rows(logger.forces_output_path)[1]]
    assert row == pytest.approx([1.0, 0.2, 0.0, -1.0, 0.5, -0.8, 0.5, 0.0, 0.0, -1.0, 0.5])


def test_writes_command_rows(logger: ForceLogger) -> None:
    logger.on_command(Command(0.5, 0.1, 0.1), True)
    logger.on_command(Command.zero(), False)

    rows = read_rows(logger.commands_output_path)[1:]
    assert [row[-1] for row in rows] == ["1", "0"]
    assert float(rows[0][1]) == pytest.approx(0.5)


def test_counts_invalid_commands(logger: ForceLogger) -> None:
    logger.on_invalid_command(Command(float("nan"), 0.0, 0.0))
    assert logger.invalid_count == 1


def test_ignores_data_before_setup(tmp_path) -> None:
    force_logger = ForceLogger(run_dir=str(tmp_path / "run"))
    force_logger.on_command(Command.zero(), True)
    assert not (tmp_path / "run").exists()


def test_run_dir_from_environment(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("RUN_DIR", str(tmp_path / "env_run"))
    assert ForceLogger().run_dir == tmp_path / "env_run"


def test_attached_to_controller(logger: ForceLogger, params, straight_path) -> None:
    controller = PotentialFieldController(params, observers=[logger])
    controller.initialize()
    controller.set_path(straight_path)

    for index in range(3):
        controller.compute_move_command(TrackingError(0.1, 0.0, index), [[], [[1.0, 0.5]]])

    assert len(read_rows(logger.forces_output_path)) == 4
    assert len(read_rows(logger.commands_output_path)) == 4


def test_log_parameters(logger: ForceLogger) -> None:
    logger.log_parameters(ControllerParameters(max_angular_velocity=1.2, sector_count=4))

    with open(logger.parameters_output_path) as f:
        saved = json.load(f)

    assert saved["max_angular_velocity"] == pytest.approx(1.2)
    assert saved["sector_count"] == 4
    assert ControllerParameters.from_dict(saved).max_angular_velocity == pytest.approx(1.2)
