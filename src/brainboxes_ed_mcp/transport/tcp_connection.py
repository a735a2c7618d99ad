"""TCP connection to a Brainboxes ED device.

ED devices accept ASCII commands on TCP port 9500. The connection is
persistent; a daemon reader thread hands every received chunk to the
``on_data`` callback as it arrives.
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable, Optional

from ..errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 9500
CONNECT_TIMEOUT_S = 5.0
KEEPALIVE_INTERVAL_S = 2
RECV_SIZE = 4096


class TCPConnection:
    """Manages the TCP socket to one ED device.

    Usage::

        conn = TCPConnection("192.168.127.254", on_data=handle_chunk)
        conn.open()
        conn.write(b"@01\\r")
        conn.close()
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        *,
        on_data: Optional[Callable[[bytes], None]] = None,
        on_close: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._host = host
        self._port = port
        self._on_data = on_data
        self._on_close = on_close
        self._on_error = on_error
        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._write_lock = threading.Lock()
        self._state_lock = threading.Lock()

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def open(self, timeout: float = CONNECT_TIMEOUT_S) -> None:
        """Connect to the device and start the reader thread.

        Raises:
            TransportError: If the connection cannot be established.
        """
        if self.connected:
            return
        try:
            sock = socket.create_connection((self._host, self._port), timeout=timeout)
        except OSError as e:
            raise TransportError(
                f"Could not connect to ED device at {self._host}:{self._port}: {e}"
            ) from e

        sock.settimeout(None)
        _enable_keepalive(sock)
        stop_event = threading.Event()
        with self._state_lock:
            self._socket = sock
            self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._reader,
            args=(sock, stop_event),
            name=f"ed-reader-{self._host}",
            daemon=True,
        )
        self._thread.start()
        logger.info("Connected to %s:%d", self._host, self._port)

    def close(self) -> None:
        """Close the socket and wait for the reader thread to exit."""
        with self._state_lock:
            sock = self._socket
            if sock is None:
                return
            self._socket = None
            self._stop_event.set()
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug("Error shutting down socket: %s", e)
        finally:
            sock.close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None
        logger.info("Disconnected from %s:%d", self._host, self._port)

    def write(self, data: bytes) -> None:
        """Write raw bytes to the device.

        Raises:
            TransportError: If not connected or the write fails.
        """
        sock = self._socket
        if sock is None:
            raise TransportError("Not connected to device")
        try:
            with self._write_lock:
                sock.sendall(data)
        except OSError as e:
            raise TransportError(f"Write to {self._host}:{self._port} failed: {e}") from e

    def _reader(self, sock: socket.socket, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                chunk = sock.recv(RECV_SIZE)
            except OSError as e:
                if not stop_event.is_set():
                    logger.error("Read from %s:%d failed: %s", self._host, self._port, e)
                    if self._on_error:
                        self._on_error(TransportError(str(e)))
                break
            if not chunk:
                if not stop_event.is_set():
                    logger.info("Connection closed by %s:%d", self._host, self._port)
                break
            if self._on_data:
                self._on_data(chunk)

        # A socket already released by close() belongs to a finished session
        with self._state_lock:
            lost = sock is self._socket
            if lost:
                self._socket = None
                stop_event.set()
        if not lost:
            return
        sock.close()
        if self._on_close:
            self._on_close()


def _enable_keepalive(sock: socket.socket) -> None:
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    # Not every platform exposes the tuning knobs
    for name in ("TCP_KEEPIDLE", "TCP_KEEPINTVL"):
        option = getattr(socket, name, None)
        if option is not None:
            sock.setsockopt(socket.IPPROTO_TCP, option, KEEPALIVE_INTERVAL_S)
