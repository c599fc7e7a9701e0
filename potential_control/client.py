#!/usr/bin/env python3
"""
WebSocket Client running the potential-field controller against a robot bridge.

The bridge streams robot state messages; every state message is one control
tick. The client projects the pose onto the reference path, groups the
reported obstacle points into sectors, runs the controller and answers with
wheel velocities.

Incoming messages (JSON):
    {"message_type": "state",
     "pose": {"x": 0.0, "y": 0.0, "theta": 0.0},
     "obstacles": [[dx, dy], ...]}          # robot frame, optional
    {"message_type": "stop"}                # safety stop
    {"message_type": "resume"}              # restart tracking after a stop
    {"message_type": "done"}                # end of session

Outgoing messages (JSON):
    {"v_left": 0.0, "v_right": 0.0}
"""

import asyncio
import json
import logging
import signal
from typing import Any, Dict, Optional, Tuple, Union

import websockets

from .config import (
    PATH_DT,
    PATH_DURATION,
    TERM_BLUE,
    TERM_RESET,
    WS_MAX_RETRY_DELAY_SECONDS,
    WS_RETRY_DELAY_SECONDS,
    WS_TIMEOUT_SECONDS,
    WS_URI,
    ControllerParameters,
)
from .controller import ControllerState, PotentialFieldController
from .force_logger import ForceLogger
from .forces import partition_points
from .model import command_to_wheel_velocities
from .path import ReferencePath, lemniscate_path

STOP = (0.0, 0.0)


class CustomFormatter(logging.Formatter):
    """Logging formatter that removes timestamps from INFO messages.

    INFO messages are printed bare; WARNING, ERROR and DEBUG keep their
    timestamp and level.
    """

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return record.getMessage()
        else:
            return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


class FieldClient:
    """Control loop connecting the controller to a robot bridge.

    Attributes:
        uri: WebSocket URI to connect to.
        controller: Potential-field controller.
        path: Reference path being followed.
        force_logger: Optional CSV observer.
        should_stop: Flag indicating whether to stop the control loop.
    """

    def __init__(
        self,
        uri: str,
        params: Optional[ControllerParameters] = None,
        path: Optional[ReferencePath] = None,
        output_dir: Optional[str] = ".",
    ) -> None:
        """Initialize the client.

        Args:
            uri: WebSocket URI (must start with ws:// or wss://).
            params: Controller parameters (default: module defaults).
            path: Reference path (default: Lemniscate demo path).
            output_dir: Base directory for force logs, or None to disable logging.

        Raises:
            ValueError: If URI format is invalid or params are out of range.
        """
        if not uri or not uri.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URI: {uri}. Must start with 'ws://' or 'wss://'")

        self.uri: str = uri
        self.should_stop: bool = False

        self.controller = PotentialFieldController(params)
        self.path = path if path is not None else lemniscate_path(PATH_DURATION, PATH_DT)

        self.force_logger: Optional[ForceLogger] = None
        if output_dir is not None:
            self.force_logger = ForceLogger(
                output_dir=output_dir, sector_count=self.controller.params.sector_count
            )
            self.controller.add_observer(self.force_logger)

        self.controller.initialize()
        self.controller.set_path(self.path)
        self.tick_count: int = 0

    def process_state_message(self, data: Dict[str, Any]) -> Tuple[float, float]:
        """Run one control tick for a robot state message.

        Args:
            data: Parsed state message.

        Returns:
            (v_left, v_right) to send.

        Raises:
            KeyError, TypeError, ValueError: If the message is malformed.
        """
        if self.controller.state is not ControllerState.TRACKING:
            return STOP

        pose = data["pose"]
        tracking_error = self.path.project(
            float(pose["x"]),
            float(pose["y"]),
            float(pose["theta"]),
            start_index=self.controller.projection_index,
        )
        readings = partition_points(data.get("obstacles") or [], self.controller.params.sector_count)

        command = self.controller.compute_move_command(tracking_error, readings)
        self.tick_count += 1

        if self.controller.state is ControllerState.IDLE:
            logging.info(f"{TERM_BLUE}✓ Reached end of path after {self.tick_count} ticks{TERM_RESET}")

        return command_to_wheel_velocities(command)

    def handle_message(self, message: Union[str, bytes]) -> Optional[Tuple[float, float]]:
        """Parse an incoming message and route it.

        Args:
            message: Raw JSON message string or bytes.

        Returns:
            Wheel velocities to send, or None if no reply is needed.
        """
        try:
            if isinstance(message, bytes):
                message = message.decode("utf-8")
            data = json.loads(message)
            message_type = data.get("message_type")

            if message_type == "state":
                return self.process_state_message(data)
            elif message_type == "stop":
                logging.warning("Stop requested by bridge")
                return command_to_wheel_velocities(self.controller.stop_motion())
            elif message_type == "resume":
                logging.info("Resuming path tracking")
                self.controller.reset()
                return None
            elif message_type == "done":
                self.should_stop = True
                return STOP
            else:
                logging.debug(f"Received unknown message: {json.dumps(data)}")
                return None

        except json.JSONDecodeError as e:
            logging.error(f"Error parsing JSON: {e}")
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logging.error(f"Error processing message data: {e}")

        # Malformed input: answer with a stop for this tick
        return STOP

    async def send_velocity_command(self, websocket: Any, v_left: float, v_right: float) -> None:
        await websocket.send(json.dumps({"v_left": v_left, "v_right": v_right}))
        logging.debug(f"Sent command: v_left={v_left:.3f}, v_right={v_right:.3f}")

    async def run_control_loop(self) -> None:
        """Connect to the bridge and run until told to stop.

        Reconnects with exponential backoff on connection errors.
        """
        retry_delay = WS_RETRY_DELAY_SECONDS

        while not self.should_stop:
            try:
                async with websockets.connect(self.uri) as websocket:
                    logging.info(f"{TERM_BLUE}✓ Connected to {self.uri}{TERM_RESET}")
                    retry_delay = WS_RETRY_DELAY_SECONDS

                    while not self.should_stop:
                        try:
                            message = await asyncio.wait_for(
                                websocket.recv(), timeout=WS_TIMEOUT_SECONDS
                            )
                        except asyncio.TimeoutError:
                            continue
                        except websockets.exceptions.ConnectionClosed:
                            logging.warning("Connection closed by server")
                            break

                        reply = self.handle_message(message)
                        if reply is not None:
                            await self.send_velocity_command(websocket, *reply)

            except (OSError, websockets.exceptions.WebSocketException) as e:
                if self.should_stop:
                    break
                logging.error(f"Connection error: {e}")
                logging.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 2, WS_MAX_RETRY_DELAY_SECONDS)

    def stop(self) -> None:
        """Stop the robot and end the control loop."""
        self.controller.stop_motion()
        self.should_stop = True

    def __enter__(self) -> "FieldClient":
        if self.force_logger is not None:
            self.force_logger.setup()
            self.force_logger.log_parameters(self.controller.params)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.force_logger is not None:
            self.force_logger.cleanup()


async def main(
    uri: str = WS_URI,
    params: Optional[ControllerParameters] = None,
    output_dir: Optional[str] = ".",
) -> None:
    """Main entry point for the WebSocket client.

    Args:
        uri: Bridge WebSocket URI.
        params: Controller parameters.
        output_dir: Base directory for force logs, or None to disable logging.
    """
    with FieldClient(uri, params=params, output_dir=output_dir) as client:
        loop = asyncio.get_running_loop()

        def signal_handler() -> None:
            logging.info("\nShutdown signal received...")
            client.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

        await client.run_control_loop()
