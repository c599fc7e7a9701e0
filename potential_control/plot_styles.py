"""Shared plotting utilities for force and command visualizations.

This module provides:
- The color scheme used for force vectors and command fields
- CSV loading into numpy arrays
- Common axis styling
"""

import csv
from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes

from .config import (
    MONUMENTAL_BLUE,
    MONUMENTAL_CREAM,
    MONUMENTAL_DARK_BLUE,
    MONUMENTAL_ORANGE,
    MONUMENTAL_TAUPE,
    MONUMENTAL_YELLOW_ORANGE,
)

__all__ = [
    "FORCE_COLORS",
    "load_csv_to_dict",
    "style_axis",
    "add_legend",
    "save_figure",
]

FORCE_COLORS = {
    "att": MONUMENTAL_ORANGE,
    "rep": MONUMENTAL_BLUE,
    "res": MONUMENTAL_YELLOW_ORANGE,
}
"""Line color per force vector (attractive, repulsive, resultant)."""


def load_csv_to_dict(csv_path: Path) -> Dict[str, np.ndarray]:
    """Load CSV file into dictionary of numpy arrays.

    Non-numeric or empty values become NaN.

    Args:
        csv_path: Path to CSV file.

    Returns:
        Dictionary mapping column names to numpy arrays.

    Raises:
        FileNotFoundError: If the CSV file does not exist.

    Example:
        >>> data = load_csv_to_dict(Path("forces.csv"))
        >>> data["f_res_x"].shape
        (400,)
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        data: Dict[str, List[float]] = {name: [] for name in reader.fieldnames or []}
        for row in reader:
            for key, value in row.items():
                try:
                    data[key].append(float(value))
                except (ValueError, TypeError):
                    data[key].append(np.nan)

    return {key: np.array(values) for key, values in data.items()}


def style_axis(
    ax: Axes,
    title: str = "",
    xlabel: str = "",
    ylabel: str = "",
    grid: bool = True,
    dark_mode: bool = False,
) -> None:
    """Apply consistent styling to a matplotlib axis.

    Example:
        >>> fig, ax = plt.subplots()
        >>> style_axis(ax, title="Resultant force", xlabel="Time (s)", ylabel="F")
    """
    text_kwargs = {"color": MONUMENTAL_CREAM} if dark_mode else {}

    if title:
        ax.set_title(title, fontweight="bold", **text_kwargs)
    if xlabel:
        ax.set_xlabel(xlabel, **text_kwargs)
    if ylabel:
        ax.set_ylabel(ylabel, **text_kwargs)

    if grid:
        ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)

    if dark_mode:
        ax.set_facecolor(MONUMENTAL_DARK_BLUE)
        ax.tick_params(colors=MONUMENTAL_CREAM)
        for spine in ax.spines.values():
            spine.set_edgecolor(MONUMENTAL_TAUPE)


def add_legend(ax: Axes, loc: str = "best", dark_mode: bool = False, **kwargs) -> None:
    """Add a legend with the shared styling.

    Args:
        ax: Matplotlib axis to add legend to.
        loc: Legend location (default: "best").
        dark_mode: Whether to use dark mode styling (default: False).
        **kwargs: Additional keyword arguments passed to ax.legend().
    """
    legend_kwargs = {
        "loc": loc,
        "framealpha": 0.9,
        "edgecolor": MONUMENTAL_TAUPE,
    }
    if dark_mode:
        legend_kwargs["facecolor"] = MONUMENTAL_DARK_BLUE
        legend_kwargs["labelcolor"] = MONUMENTAL_CREAM

    # User kwargs take precedence
    legend_kwargs.update(kwargs)
    ax.legend(**legend_kwargs)


def save_figure(fig: plt.Figure, filepath: Path, dpi: int = 150) -> None:
    fig.savefig(filepath, dpi=dpi, bbox_inches="tight")
