"""
Main entry point when running the potential_control module with python -m.
"""

import argparse
import asyncio
import logging
import sys

from .client import main, setup_logging
from .config import WS_URI, ControllerParameters, load_parameters

if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Potential-field path-following controller over a WebSocket robot bridge"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    parser.add_argument("--uri", default=WS_URI, help=f"Bridge WebSocket URI (default: {WS_URI})")
    parser.add_argument(
        "--params", default=None, help="JSON file overriding controller parameters"
    )
    parser.add_argument(
        "--output-dir", default=".", help="Base directory for force logs (default: .)"
    )
    parser.add_argument("--no-log", action="store_true", help="Disable CSV force logging")
    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        params = load_parameters(args.params) if args.params else ControllerParameters()
    except (FileNotFoundError, ValueError) as e:
        logging.error(f"Invalid parameters: {e}")
        sys.exit(2)

    logging.debug(f"Controller parameters: {params.to_dict()}")

    try:
        asyncio.run(
            main(uri=args.uri, params=params, output_dir=None if args.no_log else args.output_dir)
        )
    except KeyboardInterrupt:
        logging.info("\nExiting...")
        sys.exit(0)
