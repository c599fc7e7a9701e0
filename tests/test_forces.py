"""Tests for the potential-field force model."""

import math

import numpy as np
import pytest

from potential_control.config import ControllerParameters
from potential_control.forces import NO_OBSTACLE, ForceModel, ForceSet, partition_points
from potential_control.path import GoalPosition, TrackingError


@pytest.fixture
def model(params) -> ForceModel:
    return ForceModel(params)


ON_PATH = TrackingError(lateral=0.0, heading=0.0, projection_index=0)


# --- Attractive force ---


class TestAttractive:
    def test_goal_straight_ahead(self, model: ForceModel) -> None:
        force = model.compute_attractive(GoalPosition(5.0, 0.0), ON_PATH)
        assert force == pytest.approx(np.array([1.0, 0.0]))

    def test_coincident_goal_is_zero(self, model: ForceModel) -> None:
        error = TrackingError(lateral=0.3, heading=0.4, projection_index=2)
        force = model.compute_attractive(GoalPosition(0.0, 0.3), error)
        assert np.array_equal(force, np.zeros(2))

    def test_lateral_error_pulls_back_to_path(self, model: ForceModel) -> None:
        # Robot 0.5m left of the path: force points ahead and to the right
        error = TrackingError(lateral=0.5, heading=0.0)
        force = model.compute_attractive(GoalPosition(1.0, 0.0), error)
        assert force == pytest.approx(np.array([0.2, -0.1]))

    def test_heading_error_rotates_force(self, model: ForceModel) -> None:
        # Robot facing 90 degrees left of the path: goal lies to its right
        error = TrackingError(lateral=0.0, heading=math.pi / 2)
        force = model.compute_attractive(GoalPosition(1.0, 0.0), error)
        assert force == pytest.approx(np.array([0.0, -0.2]), abs=1e-12)

    def test_magnitude_grows_with_lateral_error(self, model: ForceModel) -> None:
        goal = GoalPosition(1.0, 0.0)
        norms = [
            np.linalg.norm(model.compute_attractive(goal, TrackingError(lateral, 0.0)))
            for lateral in (0.0, 0.5, 1.0, 2.0)
        ]
        assert norms == sorted(norms)
        assert norms[0] < norms[-1]

    def test_scales_with_gain(self) -> None:
        goal = GoalPosition(2.0, 1.0)
        weak = ForceModel(ControllerParameters(k_att=0.2)).compute_attractive(goal, ON_PATH)
        strong = ForceModel(ControllerParameters(k_att=0.4)).compute_attractive(goal, ON_PATH)
        assert strong == pytest.approx(2.0 * weak)


# --- Obstacle selection ---


class TestFindObstacles:
    def test_nearest_per_sector(self, model: ForceModel) -> None:
        readings = [[[1.0, 0.0], [0.5, 0.5], [2.0, 2.0]], []]
        obstacles = model.find_obstacles(readings)

        assert obstacles.shape == (2, 2)
        assert obstacles[0] == pytest.approx(np.array([0.5, 0.5]))
        assert np.array_equal(obstacles[1], NO_OBSTACLE)

    def test_non_finite_readings_mean_no_obstacle(self, model: ForceModel) -> None:
        readings = [[[np.nan, 1.0], [np.inf, 0.0]], [[0.3, 0.4]]]
        obstacles = model.find_obstacles(readings)

        assert np.array_equal(obstacles[0], NO_OBSTACLE)
        assert obstacles[1] == pytest.approx(np.array([0.3, 0.4]))

    def test_non_finite_candidate_skipped_for_finite_one(self, model: ForceModel) -> None:
        obstacles = model.find_obstacles([[[np.nan, np.nan], [1.0, 1.0]], []])
        assert obstacles[0] == pytest.approx(np.array([1.0, 1.0]))

    def test_wrong_sector_count_raises(self, model: ForceModel) -> None:
        with pytest.raises(ValueError, match="Expected 2 obstacle sectors"):
            model.find_obstacles([[]])

    def test_configurable_sector_count(self) -> None:
        model = ForceModel(ControllerParameters(sector_count=4))
        obstacles = model.find_obstacles([[], [[1.0, 0.0]], [], []])
        assert obstacles.shape == (4, 2)
        assert obstacles[1] == pytest.approx(np.array([1.0, 0.0]))


# --- Repulsive force ---


class TestRepulsive:
    def test_no_obstacle_contributes_exactly_zero(self, model: ForceModel) -> None:
        obstacles = np.array([NO_OBSTACLE, NO_OBSTACLE])
        total, per_sector = model.compute_repulsive(obstacles)

        assert np.array_equal(total, np.zeros(2))
        assert np.array_equal(per_sector, np.zeros((2, 2)))

    def test_empty_sector_zero_next_to_active_sector(self, model: ForceModel) -> None:
        obstacles = model.find_obstacles([[], [[0.0, 0.5]]])
        _, per_sector = model.compute_repulsive(obstacles)

        assert np.array_equal(per_sector[0], np.zeros(2))
        assert per_sector[1] == pytest.approx(np.array([0.0, -1.0]))

    def test_points_away_from_obstacle(self, model: ForceModel) -> None:
        total, _ = model.compute_repulsive(np.array([[0.1, 0.0], NO_OBSTACLE]))
        # k_rep / d = 0.5 / 0.1
        assert total == pytest.approx(np.array([-5.0, 0.0]))

    def test_monotonically_decreasing_with_distance(self, model: ForceModel) -> None:
        norms = []
        for distance in (0.1, 0.2, 0.5, 1.0, 2.0, 5.0):
            total, _ = model.compute_repulsive(np.array([[distance, 0.0], NO_OBSTACLE]))
            norms.append(np.linalg.norm(total))

        assert all(a > b for a, b in zip(norms, norms[1:]))

    def test_distance_floor(self, model: ForceModel) -> None:
        total, _ = model.compute_repulsive(np.array([[0.01, 0.0], NO_OBSTACLE]))
        # Clamped to min_obstacle_distance = 0.05
        assert total == pytest.approx(np.array([-10.0, 0.0]))
        assert np.all(np.isfinite(total))

    def test_coincident_obstacle_is_zero(self, model: ForceModel) -> None:
        total, _ = model.compute_repulsive(np.array([[0.0, 0.0], NO_OBSTACLE]))
        assert np.array_equal(total, np.zeros(2))

    def test_influence_distance(self) -> None:
        model = ForceModel(ControllerParameters(influence_distance=1.0))
        total, _ = model.compute_repulsive(np.array([[2.0, 0.0], [0.5, 0.0]]))
        assert total == pytest.approx(np.array([-1.0, 0.0]))

    def test_sum_across_sectors(self, model: ForceModel) -> None:
        total, per_sector = model.compute_repulsive(np.array([[0.0, -0.5], [0.0, 0.5]]))
        assert per_sector.sum(axis=0) == pytest.approx(total)
        assert total == pytest.approx(np.array([0.0, 0.0]))


# --- Resultant ---


class TestResultant:
    def test_vector_sum_law(self, model: ForceModel) -> None:
        rng = np.random.default_rng(7)
        for _ in range(50):
            goal = GoalPosition(*rng.uniform(-3.0, 3.0, size=2))
            error = TrackingError(
                lateral=rng.uniform(-1.0, 1.0), heading=rng.uniform(-math.pi, math.pi)
            )
            readings = [rng.uniform(-2.0, 2.0, size=(3, 2)), rng.uniform(-2.0, 2.0, size=(1, 2))]

            forces = model.compute(goal, error, readings)

            assert forces.resultant == pytest.approx(forces.attractive + forces.repulsive)

    def test_no_saturation(self, model: ForceModel) -> None:
        resultant = model.compute_resultant(np.array([100.0, 0.0]), np.array([0.0, 250.0]))
        assert resultant == pytest.approx(np.array([100.0, 250.0]))

    def test_obstacle_ahead_opposes_attraction(self, model: ForceModel) -> None:
        goal = GoalPosition(5.0, 0.0)
        free = model.compute(goal, ON_PATH, [[], []])
        blocked = model.compute(goal, ON_PATH, [[], [[0.1, 0.0]]])

        assert blocked.resultant[0] < free.resultant[0]
        assert blocked.resultant[0] < 0.0

    def test_repulsion_exceeds_attraction_at_close_range(self, model: ForceModel) -> None:
        forces = model.compute(GoalPosition(5.0, 0.0), ON_PATH, [[[0.1, 0.0]], []])
        assert np.linalg.norm(forces.sector_forces[0]) > forces.attractive[0]

    def test_empty_force_set(self) -> None:
        forces = ForceSet.empty(3)
        assert forces.sector_forces.shape == (3, 2)
        assert np.array_equal(forces.resultant, np.zeros(2))


# --- Sector partitioning ---


class TestPartitionPoints:
    def test_two_sectors_split_right_and_left(self) -> None:
        points = [[1.0, -1.0], [1.0, 1.0], [-1.0, 0.0], [np.nan, 0.0]]
        right, left = partition_points(points, 2)

        assert right.tolist() == [[1.0, -1.0], [-1.0, 0.0]]
        assert left.tolist() == [[1.0, 1.0]]

    def test_four_sectors(self) -> None:
        points = [[-1.0, -0.1], [0.1, -1.0], [1.0, 0.1], [-0.1, 1.0]]
        sectors = partition_points(points, 4)

        assert [len(s) for s in sectors] == [1, 1, 1, 1]
        assert sectors[2].tolist() == [[1.0, 0.1]]

    def test_empty_cloud(self) -> None:
        sectors = partition_points([], 3)
        assert len(sectors) == 3
        assert all(s.shape == (0, 2) for s in sectors)

    def test_rejects_single_sector(self) -> None:
        with pytest.raises(ValueError):
            partition_points([[1.0, 0.0]], 1)
