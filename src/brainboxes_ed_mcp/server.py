"""MCP server entry point for Brainboxes ED digital I/O devices.

Exposes the device operations as tools via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from mcp.server.fastmcp import FastMCP

from .device import DEFAULT_ADDRESS, DEFAULT_NUM_INPUTS, DEFAULT_NUM_OUTPUTS, EDDevice
from .errors import EDDeviceError
from .models.device import LineStates
from .transport.tcp_connection import DEFAULT_PORT

logger = logging.getLogger(__name__)

# How long a tool call waits for the device to answer. The command stays
# queued after this expires; only the tool call gives up.
RESPONSE_WAIT_S = 5.0

mcp = FastMCP(
    "brainboxes-ed",
    instructions="MCP server for Brainboxes ED digital I/O controllers",
)

# Global connection state
_device: EDDevice | None = None


def _get_device() -> EDDevice:
    """Get the connected device, raising if not connected."""
    if _device is None or not _device.connected:
        raise RuntimeError(
            "Not connected to device. Use the 'connect' tool first."
        )
    return _device


def _wait(future) -> tuple[Any, str | None]:
    """Wait for a device future, returning ``(value, error_message)``."""
    try:
        return future.result(timeout=RESPONSE_WAIT_S), None
    except FutureTimeoutError:
        return None, f"No response from device within {RESPONSE_WAIT_S} s"
    except EDDeviceError as e:
        return None, str(e)


def _log_device_error(exc: Exception) -> None:
    logger.warning("Device error: %s", exc)


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    host: str,
    port: int = DEFAULT_PORT,
    address: int = DEFAULT_ADDRESS,
    num_inputs: int = DEFAULT_NUM_INPUTS,
    num_outputs: int = DEFAULT_NUM_OUTPUTS,
) -> dict[str, Any]:
    """Open a TCP connection to a Brainboxes ED device.

    Args:
        host: Device IP address or hostname.
        port: ASCII command port (default 9500).
        address: Device bus address 0-255 (default 1).
        num_inputs: Number of digital input lines on the device.
        num_outputs: Number of digital output lines on the device.
    """
    global _device
    if _device is not None and _device.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "device": _device.info.to_dict(),
        }

    device = EDDevice(
        host,
        num_inputs,
        num_outputs,
        port=port,
        address=address,
    )
    device.on("error", _log_device_error)
    try:
        info = device.connect()
    except EDDeviceError as e:
        return {"connected": False, "error": str(e)}

    _device = device
    return {"connected": True, "device": info.to_dict()}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the TCP connection to the device."""
    global _device
    if _device is None:
        return {"disconnected": True}
    _device.disconnect()
    _device = None
    return {"disconnected": True}


@mcp.tool()
def send_command(command: str) -> dict[str, Any]:
    """Send a raw ASCII command (without the trailing carriage return).

    Commands that the protocol never answers (``#**``, ``~**``, ``$AARS``)
    return immediately with a null response.

    Args:
        command: Command text, e.g. ``@01``.
    """
    device = _get_device()
    response, error = _wait(device.send(command))
    if error:
        return {"command": command, "error": error}
    return {"command": command, "response": response}


# ─── DIGITAL I/O TOOLS ───────────────────────────────────────────────

@mcp.tool()
def get_all_digital_line_states() -> dict[str, Any]:
    """Read the state of every input and output line.

    Lines are numbered from 0; inputs come first, then outputs.
    """
    device = _get_device()
    lines, error = _wait(device.get_all_digital_line_states())
    if error:
        return {"error": error}
    return LineStates(lines=lines, num_inputs=device.num_inputs).to_dict()


@mcp.tool()
def set_digital_output_line_state(line: int, state: int) -> dict[str, Any]:
    """Switch a single output line on or off.

    Args:
        line: Output line 0-15.
        state: 1 for on, 0 for off.
    """
    device = _get_device()
    try:
        future = device.set_digital_output_line_state(line, state)
    except ValueError as e:
        return {"error": str(e)}
    ok, error = _wait(future)
    if error:
        return {"error": error}
    return {"line": line, "state": state, "success": ok}


@mcp.tool()
def set_all_digital_output_states(states: list[int]) -> dict[str, Any]:
    """Set every output line at once.

    Args:
        states: One 0/1 entry per output line, index 0 = output line 0.
    """
    device = _get_device()
    try:
        future = device.set_all_digital_output_states(states)
    except ValueError as e:
        return {"error": str(e)}
    ok, error = _wait(future)
    if error:
        return {"error": error}
    return {"states": states, "success": ok}


@mcp.tool()
def get_digital_input_line_count(line: int) -> dict[str, Any]:
    """Read the pulse counter of one digital input channel.

    Args:
        line: Input channel 0-15.
    """
    device = _get_device()
    try:
        future = device.get_digital_input_line_count(line)
    except ValueError as e:
        return {"error": str(e)}
    count, error = _wait(future)
    if error:
        return {"error": error}
    return {"line": line, "count": count}


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("ed://device/info")
def resource_device_info() -> str:
    """Device address, I/O layout and connection state."""
    if _device is None:
        return json.dumps({"connected": False})
    return json.dumps(
        {
            "connected": _device.connected,
            "pending_commands": _device.pending_count,
            **_device.info.to_dict(),
        }
    )


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
