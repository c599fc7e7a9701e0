#!/usr/bin/env python3
"""
Standalone script to visualize logged potential-field controller runs.

Loads forces.csv and commands.csv from a run directory and plots the force
vectors and commands over time.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import MAX_ANGULAR_VELOCITY, TERM_BLUE, TERM_RESET
from .visualization import load_run_parameters, plot_run_summary


def find_run_dirs(results_dir: Path) -> List[Path]:
    """List run directories in chronological (name) order.

    Raises:
        FileNotFoundError: If the results directory does not exist.
    """
    if not results_dir.exists():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")

    return sorted(d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_"))


def find_latest_run(results_dir: Path) -> Path:
    """Find the most recent run directory.

    Raises:
        FileNotFoundError: If no run directories are found.
    """
    run_dirs = find_run_dirs(results_dir)
    if not run_dirs:
        raise FileNotFoundError(f"No run directories found in {results_dir}")
    return run_dirs[-1]


def resolve_max_angular_velocity(run_dir: Path, override: Optional[float] = None) -> float:
    """Rotation limit to draw for a run.

    An explicit override wins, then the value saved in the run's
    parameters.json, then the default MAX_ANGULAR_VELOCITY.

    Raises:
        ValueError: If parameters.json is not a JSON object.
    """
    if override is not None:
        return override

    saved = load_run_parameters(run_dir)
    if saved is not None and "max_angular_velocity" in saved:
        return float(saved["max_angular_velocity"])

    return MAX_ANGULAR_VELOCITY


def list_available_runs(results_dir: Path) -> None:
    try:
        run_dirs = find_run_dirs(results_dir)
    except FileNotFoundError as e:
        logging.error(str(e))
        return

    if not run_dirs:
        logging.info(f"No run directories found in {results_dir}")
        return

    logging.info("Available runs:")
    for i, run_dir in enumerate(run_dirs, 1):
        logging.info(f"  {i}. {run_dir.name}")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the plotting script."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(
        description="Visualize forces and commands from logged controller runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plot the most recent run
  python -m potential_control.plot_results

  # Plot a specific run and save PNGs without opening windows
  python -m potential_control.plot_results --run run_20260101_120000 --save --no-show

  # List all available runs
  python -m potential_control.plot_results --list
        """,
    )
    parser.add_argument(
        "--run",
        type=str,
        default=None,
        help="Name of the run directory to plot. Defaults to the most recent run.",
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        default="results",
        help="Path to the results directory (default: results)",
    )
    parser.add_argument(
        "--save", action="store_true", help="Save plots as PNG files in the run directory"
    )
    parser.add_argument(
        "--no-show",
        action="store_true",
        help="Do not display plots interactively (useful with --save)",
    )
    parser.add_argument(
        "--max-angular-velocity",
        type=float,
        default=None,
        help="Rotation limit to draw (default: value saved with the run, else the built-in default)",
    )
    parser.add_argument("--list", action="store_true", help="List all available runs and exit")

    args = parser.parse_args(argv)
    results_dir = Path(args.results_dir)

    if args.list:
        list_available_runs(results_dir)
        return

    if args.run:
        run_dir = results_dir / args.run
        if not run_dir.exists():
            logging.error(f"Error: Run directory not found: {run_dir}")
            list_available_runs(results_dir)
            sys.exit(1)
    else:
        try:
            run_dir = find_latest_run(results_dir)
            logging.info(f"{TERM_BLUE}Plotting most recent run: {run_dir.name}{TERM_RESET}")
        except FileNotFoundError as e:
            logging.error(f"Error: {e}")
            sys.exit(1)

    try:
        plot_run_summary(
            run_dir=run_dir,
            save_plots=args.save,
            show_plots=not args.no_show,
            max_angular_velocity=resolve_max_angular_velocity(run_dir, args.max_angular_velocity),
        )
        if args.save:
            logging.info(f"{TERM_BLUE}✓ Saved plots to {run_dir}/{TERM_RESET}")
    except FileNotFoundError as e:
        logging.error(f"Error: {e}")
        logging.info(f"Make sure {run_dir} contains forces.csv and commands.csv")
        sys.exit(1)
    except ValueError as e:
        logging.error(f"Error reading run data: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
