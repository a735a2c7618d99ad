"""Response parsing for device replies.

Each parser takes the command that was sent and the response frame the
device returned for it, and either returns the decoded result or raises a
:class:`~brainboxes_ed_mcp.errors.ResponseError` subclass.
"""

from __future__ import annotations

from string import hexdigits

from ..errors import DeviceIgnoredError, DeviceRejectedError, ProtocolMismatchError
from .commands import to_hex

RESPONSE_OK = ">"
RESPONSE_INVALID = "?"
RESPONSE_VALUE = "!"


def parse_line_states(command: str, response: str, num_lines: int) -> list[int]:
    """Parse a ``>(hex mask)`` reply into one 0/1 entry per line."""
    data = response[1:]
    if not response.startswith(RESPONSE_OK) or not data or not all(c in hexdigits for c in data):
        raise ProtocolMismatchError(
            f"Failed to get all Digital Line States response: {response}",
            command,
            response,
        )
    mask = int(data, 16)
    return [(mask >> i) & 0x1 for i in range(num_lines)]


def parse_set_line(command: str, response: str) -> bool:
    """A single-line write succeeds only on a bare ``>``."""
    if response != RESPONSE_OK:
        raise ProtocolMismatchError(f"Invalid Response {response}", command, response)
    return True


def parse_set_all_outputs(command: str, response: str) -> bool:
    """``>`` is success, ``?`` is an invalid command, anything else was ignored."""
    if response == RESPONSE_OK:
        return True
    if response == RESPONSE_INVALID:
        raise DeviceRejectedError(
            f"INVALID command. The ED Device reported that the "
            f"SetAllOutputLineStates Command {command} was INVALID",
            command,
            response,
        )
    raise DeviceIgnoredError(
        f"IGNORED command. The ED Device reported that the "
        f"SetAllOutputLineStates Command {command} was IGNORED",
        command,
        response,
    )


def parse_input_count(command: str, response: str, address: int) -> int:
    """Parse a ``!AA(decimal)`` counter reply."""
    prefix = RESPONSE_VALUE + to_hex(address)
    digits = response[len(prefix) :]
    if not response.lower().startswith(prefix) or not digits.isdecimal():
        raise ProtocolMismatchError(f"Invalid Response {response}", command, response)
    # value already in base 10
    return int(digits)
