"""Potential Control - Reactive Potential-Field Path Following

A local-navigation controller that advances a robot along a reference path
while steering it away from nearby obstacles. Every control tick turns the
robot's path tracking error and obstacle readings into a bounded, validated
velocity command.

## Architecture Overview

Each tick runs a three-stage pipeline:

### Stage 1: Force Model (forces.py)
Superposes an attractive and a repulsive vector field.
- Attractive: from the robot's path-relative position toward the lookahead
  goal, scaled by kAtt
- Repulsive: nearest obstacle per bearing sector, magnitude kRep / d,
  pointing away from the obstacle
- Output: attractive, repulsive and resultant force vectors

### Stage 2: Command Synthesis (command.py)
Turns the resultant force into a command.
- Direction: bearing of the resultant relative to the robot heading
- Speed: cruise speed attenuated by cos(direction)
- Rotation: proportional to direction, clamped to max_angular_velocity

### Stage 3: Validation (command.py)
Replaces any command holding NaN or infinite values with a hard stop.

The lifecycle (controller.py) runs the stages in order and enforces the
Uninitialized -> Idle -> Tracking -> Stopped state machine.

## Modules

### Core Control Modules
- `config.py` - Documented defaults and the ControllerParameters block
- `forces.py` - Attractive/repulsive force computation
- `command.py` - Command record, synthesizer and validator
- `controller.py` - Lifecycle and per-tick orchestration
- `path.py` - Reference path, projection and lookahead goal
- `model.py` - Command -> twist -> wheel velocity mapping

### Communication & Data
- `client.py` - WebSocket bridge client and control loop
- `force_logger.py` - CSV logging of forces and commands

### Visualization
- `plot_styles.py` - Shared plotting utilities and color scheme
- `visualization.py` - Force and command plots of logged runs
- `plot_results.py` - CLI for visualization tools

## Quick Start

```python
from potential_control import PotentialFieldController, ReferencePath, TrackingError

controller = PotentialFieldController()
controller.initialize()
controller.set_path(ReferencePath([0.0, 5.0], [0.0, 0.0]))
command = controller.compute_move_command(
    TrackingError(lateral=0.0, heading=0.0, projection_index=0),
    obstacle_readings=[[[1.0, -0.3]], []],  # right sector, left sector
)
```

Or run against a robot bridge:
```bash
python -m potential_control --uri ws://localhost:8765
```
"""

__version__ = "0.1.0"

from .command import Command, CommandSynthesizer, CommandValidator
from .config import ControllerParameters, load_parameters
from .controller import (
    ContractViolation,
    ControllerObserver,
    ControllerState,
    PotentialFieldController,
)
from .force_logger import ForceLogger
from .forces import ForceModel, ForceSet, partition_points
from .path import GoalPosition, ReferencePath, TrackingError

__all__ = [
    "Command",
    "CommandSynthesizer",
    "CommandValidator",
    "ContractViolation",
    "ControllerObserver",
    "ControllerParameters",
    "ControllerState",
    "ForceLogger",
    "ForceModel",
    "ForceSet",
    "GoalPosition",
    "PotentialFieldController",
    "ReferencePath",
    "TrackingError",
    "load_parameters",
    "partition_points",
]
