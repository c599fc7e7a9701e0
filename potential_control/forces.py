"""Potential-field force model.

Computes, for one control tick:
- Attractive force from the path-relative robot position toward the goal
- Nearest obstacle per bearing sector
- Repulsive force summed over sectors
- Resultant force (attractive + repulsive)

All vectors are numpy arrays of shape (2,) in the robot frame (x forward,
y to the left). Saturation is left to the command stage so the direction of
the resultant is preserved.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from .config import ControllerParameters
from .path import GoalPosition, TrackingError

Vector = npt.NDArray[np.float64]

NO_OBSTACLE = np.array([np.inf, np.inf])
"""Sentinel offset for a sector without a detection."""


def zero_vector() -> Vector:
    return np.zeros(2)


@dataclass(frozen=True)
class ForceSet:
    """Force vectors of a single tick.

    Attributes:
        attractive: Attractive force (robot frame).
        repulsive: Repulsive force summed over all sectors.
        resultant: attractive + repulsive.
        sector_forces: Repulsive contribution of each sector, shape (n_sectors, 2).
    """

    attractive: Vector
    repulsive: Vector
    resultant: Vector
    sector_forces: Vector

    @classmethod
    def empty(cls, sector_count: int = 2) -> "ForceSet":
        return cls(zero_vector(), zero_vector(), zero_vector(), np.zeros((sector_count, 2)))


def partition_points(points: npt.ArrayLike, sector_count: int) -> list[Vector]:
    """Group a robot-frame point cloud into equal bearing sectors.

    Sector i covers bearings [-pi + i * w, -pi + (i + 1) * w) with
    w = 2 * pi / sector_count. Non-finite points are dropped.

    Args:
        points: Array-like of shape (N, 2) with (dx, dy) offsets.
        sector_count: Number of sectors (>= 2).

    Returns:
        List of ``sector_count`` arrays of shape (M_i, 2).
    """
    if sector_count < 2:
        raise ValueError(f"sector_count must be >= 2, got {sector_count}")

    cloud = np.asarray(points, dtype=float).reshape(-1, 2)
    cloud = cloud[np.all(np.isfinite(cloud), axis=1)]

    bearings = np.arctan2(cloud[:, 1], cloud[:, 0])
    width = 2.0 * math.pi / sector_count
    sectors = np.floor((bearings + math.pi) / width).astype(int)
    # atan2 returns +pi for points straight behind; fold into the first sector
    sectors = np.clip(sectors, 0, sector_count - 1)
    sectors[bearings >= math.pi] = 0

    return [cloud[sectors == i] for i in range(sector_count)]


class ForceModel:
    """Potential-field force computation.

    Args:
        params: Controller parameters (gains, sector layout, distance limits).
    """

    def __init__(self, params: Optional[ControllerParameters] = None) -> None:
        self.params = params if params is not None else ControllerParameters()

    def compute_attractive(self, goal: GoalPosition, tracking_error: TrackingError) -> Vector:
        """Compute the attractive force toward the goal.

        The robot sits at (0, lateral) in the path frame of its projection
        point and is rotated by the heading error. The vector to the goal is
        expressed in the robot frame and scaled by k_att, so its magnitude
        grows with both lateral and heading error.

        Args:
            goal: Goal point in the projection's path frame.
            tracking_error: Current tracking error.

        Returns:
            Attractive force (robot frame). Zero if robot and goal coincide.
        """
        dx = goal.x
        dy = goal.y - tracking_error.lateral

        if math.hypot(dx, dy) <= self.params.force_epsilon:
            return zero_vector()

        # Rotate path frame -> robot frame
        cos_h = math.cos(tracking_error.heading)
        sin_h = math.sin(tracking_error.heading)
        x_robot = cos_h * dx + sin_h * dy
        y_robot = -sin_h * dx + cos_h * dy

        return self.params.k_att * np.array([x_robot, y_robot])

    def find_obstacles(self, readings: Sequence[npt.ArrayLike]) -> Vector:
        """Select the nearest obstacle of each sector.

        Args:
            readings: One entry per sector, each an array-like of (dx, dy)
                candidate offsets (robot frame). Entries may be empty.

        Returns:
            Array of shape (sector_count, 2). Sectors without a finite
            candidate hold the NO_OBSTACLE sentinel.

        Raises:
            ValueError: If the number of readings differs from sector_count.
        """
        if len(readings) != self.params.sector_count:
            raise ValueError(
                f"Expected {self.params.sector_count} obstacle sectors, got {len(readings)}"
            )

        obstacles = np.tile(NO_OBSTACLE, (self.params.sector_count, 1))
        for i, reading in enumerate(readings):
            candidates = np.asarray(reading, dtype=float).reshape(-1, 2)
            candidates = candidates[np.all(np.isfinite(candidates), axis=1)]
            if len(candidates) == 0:
                continue

            distances = np.hypot(candidates[:, 0], candidates[:, 1])
            obstacles[i] = candidates[int(np.argmin(distances))]

        return obstacles

    def compute_repulsive(self, obstacles: Vector) -> Tuple[Vector, Vector]:
        """Compute the repulsive force from the per-sector nearest obstacles.

        Each finite obstacle at distance d contributes k_rep / d along the
        direction pointing away from it, with d floored at
        min_obstacle_distance. Sentinel sectors, obstacles beyond
        influence_distance and zero-length offsets contribute nothing.

        Args:
            obstacles: Array of shape (n_sectors, 2) from ``find_obstacles``.

        Returns:
            Tuple of (total repulsive force, per-sector forces).
        """
        obstacles = np.asarray(obstacles, dtype=float).reshape(-1, 2)
        sector_forces = np.zeros_like(obstacles)

        for i, offset in enumerate(obstacles):
            if not np.all(np.isfinite(offset)):
                continue

            distance = math.hypot(offset[0], offset[1])
            if distance > self.params.influence_distance:
                continue
            if distance <= self.params.force_epsilon:
                logging.warning(f"Obstacle in sector {i} coincides with robot, direction undefined")
                continue

            effective = max(distance, self.params.min_obstacle_distance)
            sector_forces[i] = -self.params.k_rep * (offset / distance) / effective

        return sector_forces.sum(axis=0), sector_forces

    @staticmethod
    def compute_resultant(attractive: Vector, repulsive: Vector) -> Vector:
        return attractive + repulsive

    def compute(
        self,
        goal: GoalPosition,
        tracking_error: TrackingError,
        readings: Sequence[npt.ArrayLike],
    ) -> ForceSet:
        """Run the full force pipeline for one tick.

        Args:
            goal: Goal point in the projection's path frame.
            tracking_error: Current tracking error.
            readings: Per-sector obstacle candidates.

        Returns:
            ForceSet with all vectors from this tick.
        """
        attractive = self.compute_attractive(goal, tracking_error)
        obstacles = self.find_obstacles(readings)
        repulsive, sector_forces = self.compute_repulsive(obstacles)
        resultant = self.compute_resultant(attractive, repulsive)

        return ForceSet(
            attractive=attractive,
            repulsive=repulsive,
            resultant=resultant,
            sector_forces=sector_forces,
        )
