"""Command classification, hex helpers and command builders.

ED commands are ASCII strings that start with a delimiter character
(``@``, ``#``, ``$``, ``~``) followed by the two-digit hex bus address
and command-specific fields. A handful of commands never produce a
response frame; :func:`classify_command` identifies them from the
command text alone.
"""

from __future__ import annotations

from enum import Enum
from string import hexdigits

from .framing import DELIMITER

MAX_ADDRESS = 0xFF
MAX_LINES = 16
MAX_COUNTER_CHANNEL = 0xF


class CommandKind(Enum):
    """Command classes, keyed on whether the device answers them."""

    SYNCHRONIZED_SAMPLING = "#**"
    HOST_OK = "~**"
    RESTART = "$AARS"
    REQUEST = "request"

    @property
    def expects_response(self) -> bool:
        return self is CommandKind.REQUEST


def _is_restart(command: str) -> bool:
    return (
        len(command) >= 5
        and command[0] == "$"
        and all(c in hexdigits for c in command[1:3])
        and command[3:5] == "RS"
    )


def classify_command(command: str) -> CommandKind:
    """Classify a command by its prefix and shape."""
    if command.startswith(CommandKind.SYNCHRONIZED_SAMPLING.value):
        return CommandKind.SYNCHRONIZED_SAMPLING
    if command.startswith(CommandKind.HOST_OK.value):
        return CommandKind.HOST_OK
    if _is_restart(command):
        return CommandKind.RESTART
    return CommandKind.REQUEST


def to_hex(value: int, width: int = 2) -> str:
    """Zero-padded lowercase hex, e.g. ``to_hex(1) == "01"``."""
    return f"{value:0{width}x}"


def output_hex_width(num_outputs: int) -> int:
    """Hex digits used for the output bitmask of a device."""
    if num_outputs <= 8:
        return 2
    if num_outputs <= 16:
        return 4
    return 6


def pack_states(states: list[int]) -> int:
    """Pack 0/1 line states into a bitmask, bit 0 = line 0."""
    value = 0
    for index, state in enumerate(states):
        value += state << index
    return value


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_address(address: int) -> None:
    if not _is_int(address) or not 0 <= address <= MAX_ADDRESS:
        raise ValueError(f"Bus address must be 0-255, got {address}")


def _check_state(state: int) -> None:
    if not _is_int(state) or state not in (0, 1):
        raise ValueError(f"Line state must be 0 or 1, got {state!r}")


def build_read_all_lines(address: int) -> str:
    """``@AA``: read every input and output line."""
    _check_address(address)
    return "@" + to_hex(address)


def build_set_output_line(address: int, line: int, state: int) -> str:
    """``#AABcDD``: set a single output line.

    Bank ``A`` addresses lines 0-7 and bank ``B`` lines 8-15; the channel
    within the bank is ``line % 8`` and the data field is ``0`` followed by
    the state digit.

    Args:
        address: Device bus address.
        line: Output line index 0-15.
        state: 0 or 1.
    """
    _check_address(address)
    _check_state(state)
    if not _is_int(line) or not 0 <= line < MAX_LINES:
        raise ValueError(f"Output line must be 0-15, got {line}")
    bank = "A" if line < 8 else "B"
    return f"#{to_hex(address)}{bank}{line % 8}0{state}"


def build_set_all_outputs(address: int, states: list[int], num_outputs: int) -> str:
    """``@AA(Data)``: set every output line at once.

    The bitmask is padded to 2, 4 or 6 hex digits depending on the number
    of outputs the device has.
    """
    _check_address(address)
    if len(states) > num_outputs:
        raise ValueError(
            f"Got {len(states)} output states for a device with {num_outputs} outputs"
        )
    for state in states:
        _check_state(state)
    data = to_hex(pack_states(states), output_hex_width(num_outputs))
    return "@" + to_hex(address) + data


def build_read_input_count(address: int, line: int | str) -> str:
    """``#AAN``: read the counter of input channel N (0-F).

    An integer channel is written as one uppercase hex digit; a string is
    appended verbatim.
    """
    _check_address(address)
    if isinstance(line, str):
        if DELIMITER in line:
            raise ValueError(f"Input channel must not contain a carriage return, got {line!r}")
        channel = line
    else:
        if not _is_int(line) or not 0 <= line <= MAX_COUNTER_CHANNEL:
            raise ValueError(f"Input channel must be 0-15, got {line}")
        channel = f"{line:X}"
    return "#" + to_hex(address) + channel


def build_synchronized_sampling() -> str:
    """``#**``: latch all inputs on every device on the bus. No response."""
    return CommandKind.SYNCHRONIZED_SAMPLING.value


def build_host_ok() -> str:
    """``~**``: host watchdog heartbeat. No response."""
    return CommandKind.HOST_OK.value


def build_restart(address: int) -> str:
    """``$AARS``: restart the device to its power-on settings. No response."""
    _check_address(address)
    return f"${address:02X}RS"
