"""Shared fixtures for the controller tests."""

import matplotlib
import numpy as np
import pytest

from potential_control.config import ControllerParameters
from potential_control.controller import PotentialFieldController
from potential_control.path import ReferencePath

# Headless plotting for visualization tests
matplotlib.use("Agg")


@pytest.fixture
def params() -> ControllerParameters:
    """Default parameters (kAtt=0.2, kRep=0.5, max_angular_velocity=0.8)."""
    return ControllerParameters()


@pytest.fixture
def straight_path() -> ReferencePath:
    """10m straight path along +x with 0.5m waypoint spacing."""
    x = np.arange(0.0, 10.5, 0.5)
    return ReferencePath(x, np.zeros_like(x))


@pytest.fixture
def tracking_controller(params, straight_path) -> PotentialFieldController:
    """Controller already tracking the straight path."""
    controller = PotentialFieldController(params)
    controller.initialize()
    controller.set_path(straight_path)
    return controller


@pytest.fixture
def no_obstacles():
    """Empty readings for the default two sectors."""
    return [[], []]
