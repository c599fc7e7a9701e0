"""Potential-field path-following controller.

Ties the force model, command synthesizer and command validator together
behind a small lifecycle:

    UNINITIALIZED --initialize()--> IDLE --set_path()--> TRACKING
    TRACKING --path completed--> IDLE
    any state --stop_motion()--> STOPPED --initialize()--> IDLE
    STOPPED --set_path()/reset()--> TRACKING

``compute_move_command`` is the per-tick entry point. It computes only while
TRACKING, answers the zero command while STOPPED, and raises
ContractViolation otherwise. Every command it returns has passed the
validator.
"""

import logging
import math
from enum import Enum
from typing import List, Optional, Sequence

import numpy.typing as npt

from .command import Command, CommandSynthesizer, CommandValidator
from .config import ControllerParameters
from .forces import ForceModel, ForceSet
from .path import GoalPosition, ReferencePath, TrackingError


class ControllerState(Enum):
    UNINITIALIZED = "uninitialized"
    IDLE = "idle"
    TRACKING = "tracking"
    STOPPED = "stopped"


class ContractViolation(RuntimeError):
    """Raised when the controller is driven from a state that does not allow it."""


class ControllerObserver:
    """Side-channel receiver for per-tick controller data.

    Observers only receive plain values; nothing they do feeds back into
    control. Every tick that returns a command is reported, including the
    zero command of STOPPED and path-completion ticks (with empty forces).
    Subclass and override the hooks you need.
    """

    def on_forces(self, forces: ForceSet) -> None:
        pass

    def on_command(self, command: Command, valid: bool) -> None:
        pass

    def on_invalid_command(self, command: Command) -> None:
        pass


class PotentialFieldController:
    """Reactive controller following a reference path around obstacles.

    Attributes:
        params: Active ControllerParameters.
        force_model: Attractive/repulsive force computation.
        synthesizer: Resultant force -> command.
        validator: Non-finite command guard.
        observers: Registered side-channel observers.
    """

    def __init__(
        self,
        params: Optional[ControllerParameters] = None,
        observers: Optional[Sequence[ControllerObserver]] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            params: Controller parameters (default: module defaults).
            observers: Observers notified after every tick.

        Raises:
            ValueError: If params are out of range.
        """
        self.params = (params if params is not None else ControllerParameters()).validate()
        self.observers: List[ControllerObserver] = list(observers or [])

        self.force_model = ForceModel(self.params)
        self.synthesizer = CommandSynthesizer(self.params)
        self.validator = CommandValidator(on_invalid=self._report_invalid)

        self._state = ControllerState.UNINITIALIZED
        self._path: Optional[ReferencePath] = None
        self._projection_index: int = 0
        self._goal: Optional[GoalPosition] = None
        self._tracking_error: Optional[TrackingError] = None
        self._forces = ForceSet.empty(self.params.sector_count)
        self._last_command = Command.zero()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def path(self) -> Optional[ReferencePath]:
        return self._path

    @property
    def projection_index(self) -> int:
        return self._projection_index

    @property
    def goal(self) -> Optional[GoalPosition]:
        return self._goal

    @property
    def tracking_error(self) -> Optional[TrackingError]:
        return self._tracking_error

    @property
    def forces(self) -> ForceSet:
        return self._forces

    @property
    def last_command(self) -> Command:
        return self._last_command

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Reset all tracking state and drop the path. Enters IDLE."""
        self._path = None
        self._clear_tracking()
        self._transition(ControllerState.IDLE)

    def set_path(self, path: ReferencePath) -> None:
        """Assign a new reference path and start tracking it.

        The projection index restarts at the first waypoint and the goal is
        the path's initial lookahead point.

        Raises:
            ContractViolation: If the controller was never initialized.
            ValueError: If the path has no waypoints.
        """
        if self._state is ControllerState.UNINITIALIZED:
            raise ContractViolation("set_path() called before initialize()")
        if len(path) == 0:
            raise ValueError("Cannot track an empty path")

        self._path = path
        self._clear_tracking()
        self._goal = path.goal_in_path_frame(0, self.params.lookahead_distance)
        logging.debug(f"New path with {len(path)} waypoints ({path.length:.2f}m)")
        self._transition(ControllerState.TRACKING)

    def reset(self) -> None:
        """Clear forces, errors and projection index but keep the path.

        A stopped controller that still holds a path resumes TRACKING from
        the start of that path.
        """
        self._clear_tracking()
        if self._path is not None:
            self._goal = self._path.goal_in_path_frame(0, self.params.lookahead_distance)
            if self._state in (ControllerState.STOPPED, ControllerState.IDLE):
                self._transition(ControllerState.TRACKING)

    def stop_motion(self) -> Command:
        """Immediately stop. Takes effect before the next command is returned.

        Returns:
            The zero command.
        """
        self._state = ControllerState.STOPPED
        self._last_command = Command.zero()
        logging.info("Motion stopped")
        return Command.zero()

    def update_parameters(self, params: ControllerParameters) -> None:
        """Swap in a new parameter block between ticks.

        Raises:
            ValueError: If params are out of range.
        """
        params.validate()
        last_direction = self.synthesizer.last_direction

        self.params = params
        self.force_model = ForceModel(params)
        self.synthesizer = CommandSynthesizer(params)
        self.synthesizer.last_direction = last_direction
        if len(self._forces.sector_forces) != params.sector_count:
            self._forces = ForceSet.empty(params.sector_count)

    def add_observer(self, observer: ControllerObserver) -> None:
        self.observers.append(observer)

    # ------------------------------------------------------------------
    # Per-tick computation
    # ------------------------------------------------------------------

    def compute_move_command(
        self,
        tracking_error: TrackingError,
        obstacle_readings: Sequence[npt.ArrayLike],
    ) -> Command:
        """Compute the validated command for this tick.

        Args:
            tracking_error: Path-relative robot pose from the path projection.
            obstacle_readings: One entry of (dx, dy) candidates per sector.

        Returns:
            Validated command, or the zero command if the controller is
            STOPPED, the path is completed, the synthesized command was
            invalid, or a stop arrived meanwhile.

        Raises:
            ContractViolation: If the controller is UNINITIALIZED or IDLE.
            ValueError: If the number of obstacle sectors is wrong.
        """
        if self._state is ControllerState.STOPPED:
            self._notify(ForceSet.empty(self.params.sector_count), Command.zero(), True)
            return Command.zero()
        if self._state is not ControllerState.TRACKING or self._path is None:
            raise ContractViolation(
                f"compute_move_command() requires state TRACKING, controller is {self._state.value}"
            )

        path = self._path
        self._tracking_error = tracking_error
        self._projection_index = max(
            self._projection_index, path.clamp_index(tracking_error.projection_index)
        )
        goal = path.goal_in_path_frame(self._projection_index, self.params.lookahead_distance)
        self._goal = goal

        if self._path_completed(path, goal, tracking_error):
            logging.info("Path completed")
            self._forces = ForceSet.empty(self.params.sector_count)
            self._last_command = Command.zero()
            self._transition(ControllerState.IDLE)
            self._notify(self._forces, Command.zero(), True)
            return Command.zero()

        forces = self.force_model.compute(goal, tracking_error, obstacle_readings)
        self._forces = forces

        raw = self.synthesizer.synthesize(forces.resultant, self.params.nominal_speed)
        command, valid = self.validator.validate(raw)

        # A stop may have been requested while this tick was running
        if self._state is not ControllerState.TRACKING:
            command = Command.zero()

        self._last_command = command
        self._notify(forces, command, valid)
        return command

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _path_completed(
        self, path: ReferencePath, goal: GoalPosition, tracking_error: TrackingError
    ) -> bool:
        if self._projection_index < path.last_index:
            return False
        remaining = math.hypot(goal.x, goal.y - tracking_error.lateral)
        return remaining <= self.params.goal_tolerance

    def _clear_tracking(self) -> None:
        self._projection_index = 0
        self._goal = None
        self._tracking_error = None
        self._forces = ForceSet.empty(self.params.sector_count)
        self._last_command = Command.zero()
        self.synthesizer.reset()

    def _transition(self, new_state: ControllerState) -> None:
        if new_state is not self._state:
            logging.debug(f"Controller state: {self._state.value} -> {new_state.value}")
        self._state = new_state

    def _report_invalid(self, command: Command) -> None:
        for observer in self.observers:
            observer.on_invalid_command(command)

    def _notify(self, forces: ForceSet, command: Command, valid: bool) -> None:
        for observer in self.observers:
            observer.on_forces(forces)
            observer.on_command(command, valid)
