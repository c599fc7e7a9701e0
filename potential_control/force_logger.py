"""CSV logging of controller forces and commands.

This module provides a controller observer that writes, per tick:
- Attractive, repulsive and resultant force vectors
- Per-sector repulsive contributions
- Validated commands and their validity flag
- Rejected (non-finite) commands
- The controller parameters of the run (parameters.json)
"""

import csv
import json
import logging
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, TextIO

from .command import Command
from .config import TERM_BLUE, TERM_RESET, ControllerParameters
from .controller import ControllerObserver
from .forces import ForceSet

FORCE_COLUMNS = [
    "timestamp",
    "f_att_x",
    "f_att_y",
    "f_rep_x",
    "f_rep_y",
    "f_res_x",
    "f_res_y",
]
COMMAND_COLUMNS = ["timestamp", "speed", "direction_angle", "rotation", "valid"]


class ForceLogger(ControllerObserver):
    """Writes controller side-channel data to CSV files.

    Attributes:
        run_dir: Directory path for this run's output files.
        sector_count: Number of obstacle sectors (one column pair each).
        clock: Callable returning the timestamp written with each row.
    """

    def __init__(
        self,
        output_dir: str = ".",
        run_dir: Optional[str] = None,
        sector_count: int = 2,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the force logger.

        Args:
            output_dir: Base directory for output files (default: current directory).
            run_dir: Optional specific run directory. If None, creates a
                timestamped directory. Can also be set via RUN_DIR.
            sector_count: Number of obstacle sectors logged per tick.
            clock: Timestamp source (default: time.time).

        Raises:
            ValueError: If output_dir is not a valid directory.
        """
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        self.sector_count = sector_count
        self.clock = clock

        self.forces_csv_file: Optional[TextIO] = None
        self.forces_csv_writer: Any = None
        self.commands_csv_file: Optional[TextIO] = None
        self.commands_csv_writer: Any = None
        self.invalid_count: int = 0

        if run_dir:
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            self.run_dir = Path(env_run_dir)
        else:
            # results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / "results" / f"run_{timestamp}"

        self.forces_output_path: Path = self.run_dir / "forces.csv"
        self.commands_output_path: Path = self.run_dir / "commands.csv"
        self.parameters_output_path: Path = self.run_dir / "parameters.json"

    def setup(self) -> None:
        """Create the run directory and open CSV files with headers.

        Must be called before logging.
        """
        self.run_dir.mkdir(parents=True, exist_ok=True)

        sector_columns = []
        for i in range(self.sector_count):
            sector_columns += [f"f_rep{i}_x", f"f_rep{i}_y"]

        self.forces_csv_file = open(self.forces_output_path, "w", newline="")
        self.forces_csv_writer = csv.writer(self.forces_csv_file)
        self.forces_csv_writer.writerow(FORCE_COLUMNS + sector_columns)
        self.forces_csv_file.flush()

        self.commands_csv_file = open(self.commands_output_path, "w", newline="")
        self.commands_csv_writer = csv.writer(self.commands_csv_file)
        self.commands_csv_writer.writerow(COMMAND_COLUMNS)
        self.commands_csv_file.flush()

        logging.info(
            f"{TERM_BLUE}✓ Initialized force logging to {self.run_dir}/{TERM_RESET}"
        )

    def on_forces(self, forces: ForceSet) -> None:
        """Log one tick's force vectors."""
        if self.forces_csv_writer is None:
            return

        sector_values = []
        for i in range(self.sector_count):
            if i < len(forces.sector_forces):
                sector_values += [forces.sector_forces[i][0], forces.sector_forces[i][1]]
            else:
                sector_values += ["", ""]

        self.forces_csv_writer.writerow(
            [
                self.clock(),
                forces.attractive[0],
                forces.attractive[1],
                forces.repulsive[0],
                forces.repulsive[1],
                forces.resultant[0],
                forces.resultant[1],
            ]
            + sector_values
        )
        if self.forces_csv_file:
            self.forces_csv_file.flush()

    def on_command(self, command: Command, valid: bool) -> None:
        """Log the validated command of one tick."""
        if self.commands_csv_writer is None:
            return

        self.commands_csv_writer.writerow(
            [self.clock(), command.speed, command.direction_angle, command.rotation, int(valid)]
        )
        if self.commands_csv_file:
            self.commands_csv_file.flush()

    def on_invalid_command(self, command: Command) -> None:
        self.invalid_count += 1

    def log_parameters(self, params: ControllerParameters) -> None:
        """Save the parameter block the run was started with.

        Args:
            params: Controller parameters in use for this run.
        """
        self.run_dir.mkdir(parents=True, exist_ok=True)
        with open(self.parameters_output_path, "w") as f:
            json.dump(params.to_dict(), f, indent=2)
        logging.debug(f"Saved controller parameters to {self.parameters_output_path.name}")

    def cleanup(self) -> None:
        """Close all CSV files and log the output location."""
        if self.forces_csv_file:
            self.forces_csv_file.close()
        if self.commands_csv_file:
            self.commands_csv_file.close()
        self.forces_csv_writer = None
        self.commands_csv_writer = None

        message = f"{TERM_BLUE}✓ Saved force data to {self.run_dir}/{TERM_RESET}"
        if self.invalid_count:
            message += f" ({self.invalid_count} invalid commands replaced by stop)"
        logging.info(message)

    def __enter__(self) -> "ForceLogger":
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.cleanup()
