"""Carriage-return framing for the ED ASCII protocol.

Wire layout::

    command:   <ASCII command text> \\r
    response:  <ASCII response text> \\r

There are no length prefixes, checksums or escapes. Text is decoded as
latin-1 so that any byte the device sends survives the round trip.
"""

from __future__ import annotations

import logging
from typing import Iterator

logger = logging.getLogger(__name__)

DELIMITER = "\r"
ENCODING = "latin-1"


def encode_command(command: str) -> bytes:
    """Build the wire frame for a command.

    No validation is done on the command text; the device manual's fixed
    field widths are the caller's concern.
    """
    return (command + DELIMITER).encode(ENCODING)


def _as_text(chunk: str | bytes) -> str:
    if isinstance(chunk, (bytes, bytearray)):
        return bytes(chunk).decode(ENCODING)
    return chunk


def decode(buffer: str, chunk: str | bytes) -> tuple[list[str], str]:
    """Append ``chunk`` to ``buffer`` and slice out every complete frame.

    Args:
        buffer: Undelimited text left over from earlier chunks.
        chunk: Newly received stream data.

    Returns:
        The complete frames in arrival order (delimiters stripped) and the
        remaining buffer, which never contains a delimiter.
    """
    decoder = FrameDecoder(buffer)
    frames = list(decoder.feed(chunk))
    return frames, decoder.buffer


class FrameDecoder:
    """Streaming decoder that owns the receive buffer.

    The buffer only grows by appended stream data and only shrinks by
    removing a fully delimited prefix.
    """

    def __init__(self, buffer: str = "") -> None:
        self._buffer = buffer

    @property
    def buffer(self) -> str:
        return self._buffer

    def reset(self) -> None:
        self._buffer = ""

    def feed(self, chunk: str | bytes) -> Iterator[str]:
        """Append a chunk and lazily yield the frames it completes.

        The returned generator is single-use. Each frame is removed from the
        buffer just before it is yielded, so abandoning the generator part
        way leaves the unyielded frames in the buffer for the next call.
        """
        self._buffer += _as_text(chunk)
        return self._drain()

    def _drain(self) -> Iterator[str]:
        while True:
            index = self._buffer.find(DELIMITER)
            if index < 0:
                return
            frame = self._buffer[:index]
            self._buffer = self._buffer[index + 1 :]
            if not frame:
                logger.debug("Dropping empty response frame")
                continue
            yield frame
