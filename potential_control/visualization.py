"""
Visualization of logged controller runs.

This module loads the forces.csv and commands.csv files written by
``ForceLogger``, together with the run's parameters.json, and plots force
components and command fields over time.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from .config import MONUMENTAL_BLUE, MONUMENTAL_DARK_BLUE, MONUMENTAL_ORANGE, MONUMENTAL_YELLOW_ORANGE
from .force_logger import COMMAND_COLUMNS, FORCE_COLUMNS
from .plot_styles import FORCE_COLORS, add_legend, load_csv_to_dict, save_figure, style_axis


def load_run(run_dir: Path) -> Dict[str, Dict[str, np.ndarray]]:
    """Load the force and command logs of a run.

    Args:
        run_dir: Directory containing forces.csv and commands.csv.

    Returns:
        Dictionary with 'forces' and 'commands' column dictionaries. Time
        columns are shifted to start at zero.

    Raises:
        FileNotFoundError: If a CSV file is missing.
        ValueError: If a CSV file lacks expected columns.
    """
    forces = load_csv_to_dict(run_dir / "forces.csv")
    commands = load_csv_to_dict(run_dir / "commands.csv")

    for name, data, columns in (
        ("forces.csv", forces, FORCE_COLUMNS),
        ("commands.csv", commands, COMMAND_COLUMNS),
    ):
        missing = [c for c in columns if c not in data]
        if missing:
            raise ValueError(f"{name} is missing columns: {missing}")

    t0 = np.nanmin(
        np.concatenate((forces["timestamp"], commands["timestamp"], [np.inf]))
    )
    if np.isfinite(t0):
        forces["time"] = forces["timestamp"] - t0
        commands["time"] = commands["timestamp"] - t0
    else:
        forces["time"] = forces["timestamp"]
        commands["time"] = commands["timestamp"]

    return {"forces": forces, "commands": commands}


def load_run_parameters(run_dir: Path) -> Optional[Dict[str, Any]]:
    """Load the parameters.json saved with a run, if there is one.

    Raises:
        ValueError: If the file exists but is not a JSON object.
    """
    params_path = run_dir / "parameters.json"
    if not params_path.exists():
        return None

    with open(params_path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {params_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Parameter file must contain a JSON object: {params_path}")
    return data


def plot_forces(
    forces: Dict[str, np.ndarray],
    title: str = "Potential Field Forces",
    save_path: Optional[Path] = None,
    dark_mode: bool = False,
) -> Figure:
    """Plot x and y components of the three force vectors over time.

    Args:
        forces: Column dictionary from ``load_run``.
        title: Figure title.
        save_path: Optional path to save the figure.
        dark_mode: Whether to use dark mode styling.

    Returns:
        Matplotlib figure object.
    """
    facecolor = MONUMENTAL_DARK_BLUE if dark_mode else None
    fig, (ax_x, ax_y) = plt.subplots(2, 1, figsize=(12, 8), sharex=True, facecolor=facecolor)

    t = forces["time"]
    for key, label in (("att", "Attractive"), ("rep", "Repulsive"), ("res", "Resultant")):
        linewidth = 2.0 if key == "res" else 1.2
        ax_x.plot(t, forces[f"f_{key}_x"], color=FORCE_COLORS[key], linewidth=linewidth, label=label)
        ax_y.plot(t, forces[f"f_{key}_y"], color=FORCE_COLORS[key], linewidth=linewidth, label=label)

    style_axis(ax_x, title=f"{title} - forward (x)", ylabel="Force", dark_mode=dark_mode)
    style_axis(ax_y, title=f"{title} - lateral (y)", xlabel="Time (s)", ylabel="Force", dark_mode=dark_mode)
    add_legend(ax_x, dark_mode=dark_mode)

    fig.tight_layout()
    if save_path:
        save_figure(fig, save_path)

    return fig


def plot_commands(
    commands: Dict[str, np.ndarray],
    max_angular_velocity: Optional[float] = None,
    title: str = "Commands",
    save_path: Optional[Path] = None,
    dark_mode: bool = False,
) -> Figure:
    """Plot speed, direction angle and rotation over time.

    Ticks whose command failed validation are marked on the speed axis.

    Args:
        commands: Column dictionary from ``load_run``.
        max_angular_velocity: If given, draw the rotation limits.
        title: Figure title.
        save_path: Optional path to save the figure.
        dark_mode: Whether to use dark mode styling.

    Returns:
        Matplotlib figure object.
    """
    facecolor = MONUMENTAL_DARK_BLUE if dark_mode else None
    fig, (ax_v, ax_dir, ax_rot) = plt.subplots(
        3, 1, figsize=(12, 9), sharex=True, facecolor=facecolor
    )
    t = commands["time"]

    ax_v.plot(t, commands["speed"], color=MONUMENTAL_ORANGE, label="Speed")
    invalid = commands["valid"] == 0
    if np.any(invalid):
        ax_v.scatter(
            t[invalid],
            np.zeros(np.count_nonzero(invalid)),
            color=MONUMENTAL_YELLOW_ORANGE,
            marker="x",
            zorder=5,
            label="Invalid -> stop",
        )
    style_axis(ax_v, title=f"{title} - speed", ylabel="Speed (m/s)", dark_mode=dark_mode)
    add_legend(ax_v, dark_mode=dark_mode)

    ax_dir.plot(t, commands["direction_angle"], color=MONUMENTAL_BLUE)
    style_axis(ax_dir, title=f"{title} - direction", ylabel="Angle (rad)", dark_mode=dark_mode)

    ax_rot.plot(t, commands["rotation"], color=MONUMENTAL_BLUE)
    if max_angular_velocity is not None:
        for limit in (-max_angular_velocity, max_angular_velocity):
            ax_rot.axhline(limit, color=MONUMENTAL_ORANGE, linestyle="--", linewidth=1.0)
    style_axis(
        ax_rot,
        title=f"{title} - rotation",
        xlabel="Time (s)",
        ylabel="Angular velocity (rad/s)",
        dark_mode=dark_mode,
    )

    fig.tight_layout()
    if save_path:
        save_figure(fig, save_path)

    return fig


def plot_run_summary(
    run_dir: Path,
    save_plots: bool = False,
    show_plots: bool = True,
    max_angular_velocity: Optional[float] = None,
) -> Dict[str, Figure]:
    """Generate force and command plots for a logged run.

    Args:
        run_dir: Directory containing forces.csv and commands.csv.
        save_plots: If True, save PNGs into the run directory.
        show_plots: If True, display plots interactively.
        max_angular_velocity: Optional rotation limit to draw.

    Returns:
        Dictionary of figure name to figure.

    Raises:
        FileNotFoundError: If required CSV files are not found.
    """
    run = load_run(run_dir)

    figures = {
        "forces": plot_forces(
            run["forces"],
            title=f"Forces ({run_dir.name})",
            save_path=run_dir / "forces.png" if save_plots else None,
        ),
        "commands": plot_commands(
            run["commands"],
            max_angular_velocity=max_angular_velocity,
            title=f"Commands ({run_dir.name})",
            save_path=run_dir / "commands.png" if save_plots else None,
        ),
    }

    if show_plots:
        plt.show()

    return figures
