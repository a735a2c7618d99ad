"""Client and MCP server for Brainboxes ED digital I/O controllers."""

__version__ = "0.1.0"

from .device import EDDevice
from .errors import (
    CorrelationError,
    DeviceIgnoredError,
    DeviceRejectedError,
    EDDeviceError,
    ProtocolMismatchError,
    QueueUnderflowError,
    ResponseError,
    TransportError,
)
