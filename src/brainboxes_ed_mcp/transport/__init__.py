"""Transport layer: the TCP socket to the device."""

from .tcp_connection import DEFAULT_PORT, TCPConnection
