"""Protocol layer: carriage-return framing, command builders, and response parsing."""

from .framing import FrameDecoder, decode, encode_command
from .commands import CommandKind, classify_command, to_hex
