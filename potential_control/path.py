"""Reference path definition and path-relative tracking error.

This module holds the path side of the controller's inputs:
- ``ReferencePath``: waypoint polyline with arc-length lookup
- ``TrackingError``: robot pose relative to its projection on the path
- ``GoalPosition``: lookahead point expressed in the projection's path frame
- The Lemniscate of Gerono demo trajectory
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import numpy.typing as npt

from .config import PROJECTION_WINDOW


@dataclass(frozen=True)
class TrackingError:
    """Robot pose relative to the closest point of the reference path.

    Attributes:
        lateral: Signed offset from the path (meters). Positive when the robot
            is to the left of the path direction.
        heading: Robot heading minus path tangent (radians, wrapped to [-pi, pi]).
        projection_index: Index of the closest waypoint. Never negative.
    """

    lateral: float
    heading: float
    projection_index: int = 0

    def __post_init__(self) -> None:
        if self.projection_index < 0:
            raise ValueError(f"projection_index must be >= 0, got {self.projection_index}")


@dataclass(frozen=True)
class GoalPosition:
    """Goal point in the path frame of the projection point.

    x runs along the path tangent at the projection, y to its left.
    """

    x: float
    y: float


def wrap_angle(angle: float) -> float:
    """Normalize an angle to [-pi, pi]."""
    return math.atan2(math.sin(angle), math.cos(angle))


class ReferencePath:
    """Polyline reference path.

    Args:
        x: Waypoint x coordinates (meters, world frame).
        y: Waypoint y coordinates (meters, world frame).

    Raises:
        ValueError: If the path is empty or x and y differ in length.
    """

    def __init__(self, x: Sequence[float], y: Sequence[float]) -> None:
        self.x = np.asarray(x, dtype=float)
        self.y = np.asarray(y, dtype=float)

        if self.x.ndim != 1 or self.x.shape != self.y.shape:
            raise ValueError(
                f"Path coordinates must be 1-D arrays of equal length, "
                f"got {self.x.shape} and {self.y.shape}"
            )
        if len(self.x) == 0:
            raise ValueError("Reference path must contain at least one waypoint")

        segment_lengths = np.hypot(np.diff(self.x), np.diff(self.y))
        self.arc_length = np.concatenate(([0.0], np.cumsum(segment_lengths)))

    def __len__(self) -> int:
        return len(self.x)

    @property
    def last_index(self) -> int:
        return len(self.x) - 1

    @property
    def length(self) -> float:
        """Total arc length (meters)."""
        return float(self.arc_length[-1])

    def point(self, index: int) -> tuple[float, float]:
        index = self.clamp_index(index)
        return float(self.x[index]), float(self.y[index])

    def clamp_index(self, index: int) -> int:
        return max(0, min(self.last_index, int(index)))

    def tangent(self, index: int) -> float:
        """Path direction at a waypoint (radians).

        Uses the outgoing segment, or the incoming one at the last waypoint.
        A single-point path has tangent 0.
        """
        index = self.clamp_index(index)
        if len(self.x) < 2:
            return 0.0

        if index < self.last_index:
            i0, i1 = index, index + 1
        else:
            i0, i1 = index - 1, index

        # Skip duplicated waypoints
        while i1 < self.last_index and self.x[i1] == self.x[i0] and self.y[i1] == self.y[i0]:
            i1 += 1

        return math.atan2(self.y[i1] - self.y[i0], self.x[i1] - self.x[i0])

    def lookahead_index(self, index: int, distance: float) -> int:
        """Index of the first waypoint at least ``distance`` of arc length ahead.

        Returns the last index if the path ends before that.
        """
        index = self.clamp_index(index)
        target = self.arc_length[index] + distance
        ahead = int(np.searchsorted(self.arc_length, target, side="left"))
        return max(index, min(ahead, self.last_index))

    def goal_in_path_frame(self, index: int, distance: float) -> GoalPosition:
        """Lookahead point relative to the projection point at ``index``.

        Args:
            index: Projection index.
            distance: Lookahead arc length (meters).

        Returns:
            GoalPosition in the path frame of the projection point.
        """
        index = self.clamp_index(index)
        goal_x, goal_y = self.point(self.lookahead_index(index, distance))
        origin_x, origin_y = self.point(index)
        theta = self.tangent(index)

        dx = goal_x - origin_x
        dy = goal_y - origin_y
        cos_t = math.cos(theta)
        sin_t = math.sin(theta)

        return GoalPosition(x=cos_t * dx + sin_t * dy, y=-sin_t * dx + cos_t * dy)

    def project(
        self,
        robot_x: float,
        robot_y: float,
        robot_theta: float,
        start_index: int = 0,
        window: Optional[float] = PROJECTION_WINDOW,
    ) -> TrackingError:
        """Project a robot pose onto the path.

        The closest waypoint is searched from ``start_index`` onwards, up to
        ``window`` meters of arc length ahead, so the projection never moves
        backwards and cannot jump to a later pass over the same place.

        Args:
            robot_x: Robot x position (m, world frame).
            robot_y: Robot y position (m, world frame).
            robot_theta: Robot heading (rad, world frame).
            start_index: First waypoint considered.
            window: Arc length searched past ``start_index`` (meters), or
                None to search to the end of the path.

        Returns:
            TrackingError for this pose.
        """
        start_index = self.clamp_index(start_index)
        end_index = len(self.x)
        if window is not None:
            end_index = int(
                np.searchsorted(self.arc_length, self.arc_length[start_index] + window, side="right")
            )
            end_index = max(end_index, start_index + 1)

        distances = np.hypot(
            self.x[start_index:end_index] - robot_x, self.y[start_index:end_index] - robot_y
        )
        index = start_index + int(np.argmin(distances))

        theta = self.tangent(index)
        origin_x, origin_y = self.point(index)
        dx = robot_x - origin_x
        dy = robot_y - origin_y
        lateral = -math.sin(theta) * dx + math.cos(theta) * dy

        return TrackingError(
            lateral=lateral,
            heading=wrap_angle(robot_theta - theta),
            projection_index=index,
        )


# ============================================================================
# Demo trajectory: Lemniscate of Gerono
# ============================================================================


def compute_k(t: float) -> float:
    """Compute the path parameter k based on time t.

    Args:
        t: Time in seconds

    Returns:
        Path parameter k in radians
    """
    k = np.pi * t / 10.0 - np.pi / 2.0 if t < 20.0 else 3.0 * np.pi / 2.0
    return k


def reference_position(t: float) -> tuple[float, float]:
    """Compute reference position (x, y) for the Lemniscate of Gerono at time t.

    The Lemniscate of Gerono is a figure-eight curve defined by:
        x = -2 * sin(k) * cos(k)
        y = 2 * (sin(k) + 1)

    Args:
        t: Time in seconds

    Returns:
        Tuple of (x_ref, y_ref) in meters
    """
    k = compute_k(t)
    x_ref = -2.0 * np.sin(k) * np.cos(k)
    y_ref = 2.0 * (np.sin(k) + 1.0)
    return float(x_ref), float(y_ref)


def path_trajectory(t_max: float = 20.0, dt: float = 0.1) -> dict[str, npt.NDArray[np.float64]]:
    """Sample the Lemniscate from t=0 to t=t_max.

    Returns:
        Dictionary containing 't', 'x' and 'y' arrays.
    """
    t_array = np.arange(0.0, t_max + dt, dt)
    x_array = np.zeros_like(t_array)
    y_array = np.zeros_like(t_array)

    for i, t in enumerate(t_array):
        x_array[i], y_array[i] = reference_position(t)

    return {
        "t": t_array,
        "x": x_array,
        "y": y_array,
    }


def lemniscate_path(t_max: float = 20.0, dt: float = 0.1) -> ReferencePath:
    """Build the Lemniscate demo trajectory as a ReferencePath."""
    data = path_trajectory(t_max=t_max, dt=dt)
    return ReferencePath(data["x"], data["y"])
