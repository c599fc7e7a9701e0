"""Velocity command synthesis and validation.

This module turns a resultant force into a command record and guards the
actuation boundary:
- ``Command``: immutable speed / direction / rotation record
- ``CommandSynthesizer``: force vector -> bounded command
- ``CommandValidator``: replaces any non-finite command with a hard stop
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy.typing as npt

from .config import ControllerParameters


@dataclass(frozen=True)
class Command:
    """Motion command handed to the actuation boundary.

    Attributes:
        speed: Forward speed (m/s, >= 0).
        direction_angle: Direction of movement relative to the robot heading (rad).
        rotation: Angular velocity (rad/s).
    """

    speed: float = 0.0
    direction_angle: float = 0.0
    rotation: float = 0.0

    @classmethod
    def zero(cls) -> "Command":
        """The stop command."""
        return cls(0.0, 0.0, 0.0)

    def is_zero(self) -> bool:
        return self.speed == 0.0 and self.direction_angle == 0.0 and self.rotation == 0.0

    def invalid_fields(self) -> list[str]:
        """Names of fields holding NaN or infinite values."""
        return [
            name
            for name in ("speed", "direction_angle", "rotation")
            if not math.isfinite(getattr(self, name))
        ]

    def to_dict(self) -> dict[str, float]:
        return {
            "speed": self.speed,
            "direction_angle": self.direction_angle,
            "rotation": self.rotation,
        }


class CommandSynthesizer:
    """Converts a resultant force into a bounded command.

    direction_angle is the bearing of the force in the robot frame. Forward
    speed is the nominal speed scaled by max(0, cos(direction_angle)), so it
    never increases as the deviation from the heading grows. Rotation is
    proportional to direction_angle and clamped to max_angular_velocity.

    Args:
        params: Controller parameters.
    """

    def __init__(self, params: Optional[ControllerParameters] = None) -> None:
        self.params = params if params is not None else ControllerParameters()
        self.last_direction: float = 0.0

    def synthesize(self, resultant: npt.ArrayLike, nominal_speed: float) -> Command:
        """Build a command from the resultant force.

        Args:
            resultant: Resultant force (robot frame), shape (2,).
            nominal_speed: Cruise speed (m/s).

        Returns:
            Unvalidated Command. A zero resultant yields the last valid
            direction, no rotation and the nominal speed.
        """
        fx, fy = float(resultant[0]), float(resultant[1])

        if math.hypot(fx, fy) <= self.params.force_epsilon:
            return Command(speed=nominal_speed, direction_angle=self.last_direction, rotation=0.0)

        direction = math.atan2(fy, fx)
        speed = nominal_speed * max(0.0, math.cos(direction))

        limit = self.params.max_angular_velocity
        rotation = max(-limit, min(limit, self.params.k_rotation * direction))

        if math.isfinite(direction):
            self.last_direction = direction

        return Command(speed=speed, direction_angle=direction, rotation=rotation)

    def reset(self) -> None:
        self.last_direction = 0.0


class CommandValidator:
    """Safety gate in front of actuation.

    Args:
        on_invalid: Optional callback receiving the rejected command, used to
            report the event to an observer.
    """

    def __init__(self, on_invalid: Optional[Callable[[Command], None]] = None) -> None:
        self.on_invalid = on_invalid
        self.rejected_count: int = 0

    def validate(self, command: Command) -> Tuple[Command, bool]:
        """Check a command for non-finite values.

        Args:
            command: Command to check.

        Returns:
            Tuple of (command, True) if all fields are finite, otherwise
            (Command.zero(), False).
        """
        bad_fields = command.invalid_fields()
        if not bad_fields:
            return command, True

        self.rejected_count += 1
        logging.error(
            f"Non-numerical values in command ({', '.join(bad_fields)}): "
            f"speed={command.speed}, direction_angle={command.direction_angle}, "
            f"rotation={command.rotation} - sending stop command"
        )
        if self.on_invalid is not None:
            self.on_invalid(command)

        return Command.zero(), False
