"""Configuration parameters for the potential-field controller.

This module centralizes all configuration parameters including:
- Potential-field gains and obstacle handling
- Command shaping limits
- Physical robot parameters used at the actuation boundary
- Visualization settings
- WebSocket connection parameters

Control parameters are bundled into the ``ControllerParameters`` dataclass,
which is built once at startup (optionally from a JSON override file) and
passed into the controller. There is no global parameter registry.
"""

import json
import math
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Union

# ============================================================================
# Physical Robot Parameters
# ============================================================================

WHEELBASE = 0.5
"""Distance between left and right wheels (meters).
Fixed by robot hardware design."""

# Velocity constraints (actuator limits)
V_MIN = -2.0
"""Minimum wheel velocity (m/s). Hardware limit."""

V_MAX = 2.0
"""Maximum wheel velocity (m/s). Hardware limit."""


# ============================================================================
# Potential Field Parameters
# ============================================================================

K_ATT = 0.2
"""Attractive gain (1/s, must be > 0).

Scales the vector from the robot's path-relative position to the lookahead
goal. With a 0.8m lookahead the attractive force is ~0.16 on a straight path.
"""

K_REP = 0.5
"""Repulsive gain (must be > 0).

Each sensed obstacle contributes a force of magnitude K_REP / d pointing away
from it. At d = 0.5m an obstacle balances ~1.25x the nominal attraction.
"""

SECTOR_COUNT = 2
"""Number of bearing sectors obstacles are grouped into (>= 2).

The default splits the surroundings into a right half (bearings [-pi, 0))
and a left half (bearings [0, pi)). One nearest obstacle is kept per sector.
"""

MIN_OBSTACLE_DISTANCE = 0.05
"""Distance floor for the repulsive law (meters).

Obstacles closer than this are treated as being exactly this far away so the
inverse-distance term stays finite.
"""

INFLUENCE_DISTANCE = math.inf
"""Obstacles farther than this contribute no repulsion (meters).

Infinite by default: every sensed obstacle pushes, weighted by 1/d.
"""

FORCE_EPSILON = 1e-9
"""Vector norm below which a force or offset counts as zero."""


# ============================================================================
# Command Shaping Parameters
# ============================================================================

NOMINAL_SPEED = 0.5
"""Cruise speed (m/s) used when the resultant force points straight ahead.

Forward speed is attenuated by cos(direction_angle) and drops to zero once
the resultant points sideways or backwards.
"""

K_ROTATION = 1.0
"""Rotational gain (1/s) mapping direction angle to angular velocity."""

MAX_ANGULAR_VELOCITY = 0.8
"""Angular velocity limit (rad/s, must be > 0). Rotation is clamped to
[-MAX_ANGULAR_VELOCITY, MAX_ANGULAR_VELOCITY]."""


# ============================================================================
# Path Tracking Parameters
# ============================================================================

LOOKAHEAD_DISTANCE = 0.8
"""Arc length ahead of the projection point used as the goal (meters)."""

GOAL_TOLERANCE = 0.1
"""Distance to the final waypoint at which the path counts as completed (meters)."""

PROJECTION_WINDOW = 2.0
"""Arc length past the previous projection searched for the closest waypoint
(meters). Keeps self-crossing or closed paths (like the Lemniscate, which
starts and ends at the origin) from snapping the projection to a later lap."""


# ============================================================================
# Visualization Colors
# ============================================================================

# Brand colors (hex codes for matplotlib)
MONUMENTAL_ORANGE = "#f74823"
"""Primary color - attractive force and speed."""

MONUMENTAL_BLUE = "#2374f7"
"""Secondary color - repulsive force and rotation."""

MONUMENTAL_CREAM = "#fffdee"
"""Light color for text and labels on dark backgrounds."""

MONUMENTAL_TAUPE = "#686a5f"
"""Neutral color for guides, grids, and secondary elements."""

MONUMENTAL_YELLOW_ORANGE = "#ffa726"
"""Accent color for the resultant force and invalid-command markers."""

MONUMENTAL_DARK_BLUE = "#0d1b2a"
"""Dark background color for dark mode displays."""

# Terminal color codes (ANSI escape sequences)
TERM_ORANGE = "\033[38;2;247;72;35m"
"""Terminal color code for orange (RGB: 247, 72, 35)."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for blue (RGB: 35, 116, 247)."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""


# ============================================================================
# WebSocket Configuration
# ============================================================================

WS_URI = "ws://localhost:8765"
"""WebSocket server URI of the robot bridge."""

WS_RETRY_DELAY_SECONDS = 1
"""Initial retry delay for failed WebSocket connections (seconds)."""

WS_MAX_RETRY_DELAY_SECONDS = 60
"""Maximum retry delay with exponential backoff (seconds)."""

WS_TIMEOUT_SECONDS = 5.0
"""Timeout for WebSocket message reception (seconds)."""


# ============================================================================
# Reference Path Configuration
# ============================================================================

PATH_DURATION = 20.0
"""Duration covered by the demo Lemniscate reference path (seconds)."""

PATH_DT = 0.1
"""Time step for path discretization (seconds).
Results in 200 waypoints for the 20-second Lemniscate."""


# ============================================================================
# Controller Parameter Block
# ============================================================================


@dataclass
class ControllerParameters:
    """Parameter block read by the controller on every tick.

    Values are read-only during a tick. Replace the whole block between ticks
    with ``PotentialFieldController.update_parameters``.
    """

    k_att: float = K_ATT
    k_rep: float = K_REP
    max_angular_velocity: float = MAX_ANGULAR_VELOCITY
    nominal_speed: float = NOMINAL_SPEED
    k_rotation: float = K_ROTATION
    sector_count: int = SECTOR_COUNT
    min_obstacle_distance: float = MIN_OBSTACLE_DISTANCE
    influence_distance: float = INFLUENCE_DISTANCE
    lookahead_distance: float = LOOKAHEAD_DISTANCE
    goal_tolerance: float = GOAL_TOLERANCE
    force_epsilon: float = FORCE_EPSILON

    def validate(self) -> "ControllerParameters":
        """Check parameter ranges.

        Returns:
            Self, so calls can be chained.

        Raises:
            ValueError: If any parameter is out of range.
        """
        positive = (
            "k_att",
            "k_rep",
            "max_angular_velocity",
            "k_rotation",
            "min_obstacle_distance",
            "influence_distance",
            "lookahead_distance",
            "goal_tolerance",
            "force_epsilon",
        )
        for name in positive + ("nominal_speed",):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")

        for name in positive:
            value = getattr(self, name)
            if math.isnan(value) or value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")

        if not math.isfinite(self.nominal_speed) or self.nominal_speed < 0:
            raise ValueError(f"nominal_speed must be finite and >= 0, got {self.nominal_speed}")

        if isinstance(self.sector_count, bool) or not isinstance(self.sector_count, int):
            raise ValueError(f"sector_count must be an integer, got {self.sector_count!r}")
        if self.sector_count < 2:
            raise ValueError(f"sector_count must be >= 2, got {self.sector_count}")

        return self

    def with_overrides(self, **overrides: Any) -> "ControllerParameters":
        """Return a validated copy with some fields replaced."""
        return replace(self, **overrides).validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ControllerParameters":
        """Build a validated parameter block from a dictionary of overrides.

        Args:
            data: Mapping of field name to value. Missing fields keep defaults.

        Raises:
            ValueError: If a key is unknown or a value is out of range.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown controller parameters: {', '.join(unknown)}")
        return cls(**data).validate()


def load_parameters(filepath: Union[str, Path]) -> ControllerParameters:
    """Load controller parameters from a JSON file of overrides.

    Args:
        filepath: Path to a JSON object, e.g. ``{"k_att": 0.3, "sector_count": 4}``.

    Returns:
        Validated ControllerParameters.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON object or holds invalid values.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Parameter file not found: {filepath}")

    with open(filepath) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {filepath}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Parameter file must contain a JSON object: {filepath}")

    return ControllerParameters.from_dict(data)
