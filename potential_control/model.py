"""
Actuation boundary mapping for a differential drive robot.

This module converts the controller's ``Command`` record into transport-level
values: first a (v, omega) twist, then individual wheel velocities.
"""

from .command import Command
from .config import V_MAX, V_MIN, WHEELBASE


def command_to_velocities(command: Command) -> tuple[float, float]:
    """
    Map a validated command to a (v, omega) twist.

    A differential drive cannot translate sideways, so the direction angle is
    realized through the rotation term while speed drives the robot forward.

    Args:
        command: Validated Command.

    Returns:
        tuple[float, float]: (v, omega) in m/s and rad/s.
    """
    return float(command.speed), float(command.rotation)


def inverse_kinematics(v_cmd: float, omega_cmd: float) -> tuple[float, float]:
    """
    Compute wheel velocities from desired linear and angular velocities.

    For a differential drive robot:
        v_left = v - (L/2) * omega
        v_right = v + (L/2) * omega

    where L is the wheelbase (distance between wheels).

    Args:
        v_cmd: Desired linear velocity of the robot center (m/s)
        omega_cmd: Desired angular velocity of the robot (rad/s)
                   Positive omega results in counter-clockwise rotation

    Returns:
        tuple[float, float]: (v_left, v_right) wheel velocities in m/s,
                            clamped to the range [V_MIN, V_MAX]

    Example:
        >>> v_left, v_right = inverse_kinematics(1.0, 0.5)
        >>> # Robot moves forward at 1 m/s while turning left
    """
    v_left = v_cmd - (WHEELBASE / 2.0) * omega_cmd
    v_right = v_cmd + (WHEELBASE / 2.0) * omega_cmd

    # Clamp velocities to respect actuator limits
    v_left = max(V_MIN, min(V_MAX, v_left))
    v_right = max(V_MIN, min(V_MAX, v_right))

    return v_left, v_right


def command_to_wheel_velocities(command: Command) -> tuple[float, float]:
    """Full boundary mapping: Command -> (v_left, v_right)."""
    return inverse_kinematics(*command_to_velocities(command))
