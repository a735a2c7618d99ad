"""Exception hierarchy for the ED device client."""

from __future__ import annotations


class EDDeviceError(Exception):
    """Base class for every error raised by this package."""


class TransportError(EDDeviceError, ConnectionError):
    """The TCP connection could not be opened, written to, or was lost."""


class CorrelationError(EDDeviceError):
    """The request/response pairing is out of step with the device."""


class QueueUnderflowError(CorrelationError):
    """A response frame arrived while no command was awaiting one."""

    def __init__(self, frame: str) -> None:
        super().__init__(
            f"Received response {frame!r} with no pending command; "
            f"the connection is desynchronized"
        )
        self.frame = frame


class ResponseError(EDDeviceError):
    """A device response could not be turned into an operation result."""

    def __init__(self, message: str, command: str = "", response: str = "") -> None:
        super().__init__(message)
        self.command = command
        self.response = response


class ProtocolMismatchError(ResponseError):
    """The response does not have the shape the operation expects."""


class DeviceRejectedError(ResponseError):
    """The device answered with its error code (``?``)."""


class DeviceIgnoredError(ResponseError):
    """The device answered with neither success nor a known error code."""
