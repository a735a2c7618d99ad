"""ED device client: FIFO request/response correlation over one TCP stream.

The ED protocol carries no request identifiers. Every command that expects
an answer gets exactly one ``\\r``-terminated response, and the device
answers in the order it received the commands, so responses are paired
with commands purely by arrival order::

    send("@01")  -> pending: [f1]
    send("#010") -> pending: [f1, f2]
    ">ff\\r"     -> f1 resolved, pending: [f2]
    "!01007\\r"  -> f2 resolved, pending: []

Commands the protocol defines as unanswered (``#**``, ``~**``, ``$AARS``)
never enter the pending queue; their futures are resolved as soon as the
write succeeds.

There is no timeout. A response that never arrives leaves its future at the
head of the queue and every later response is paired one step behind.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable, Optional

from .errors import EDDeviceError, QueueUnderflowError, ResponseError, TransportError
from .models.device import DeviceInfo
from .protocol.commands import (
    build_host_ok,
    build_read_all_lines,
    build_read_input_count,
    build_restart,
    build_set_all_outputs,
    build_set_output_line,
    build_synchronized_sampling,
    classify_command,
)
from .protocol.framing import FrameDecoder, encode_command
from .protocol.parser import (
    parse_input_count,
    parse_line_states,
    parse_set_all_outputs,
    parse_set_line,
)
from .transport.tcp_connection import CONNECT_TIMEOUT_S, DEFAULT_PORT, TCPConnection

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = 1
DEFAULT_NUM_INPUTS = 8
DEFAULT_NUM_OUTPUTS = 8

EVENTS = ("connect", "disconnect", "error", "response")


def _new_future() -> Future:
    future: Future = Future()
    # Futures are never cancellable; the queue slot must stay in place.
    future.set_running_or_notify_cancel()
    return future


class EDDevice:
    """Client for one Brainboxes ED digital I/O device.

    Usage::

        device = EDDevice("192.168.127.254")
        device.on("response", print)
        device.connect()
        states = device.get_all_digital_line_states().result(timeout=5)
        device.set_digital_output_line_state(9, 1).result(timeout=5)
        device.disconnect()

    Observers may subscribe to ``connect``, ``disconnect``, ``error`` (one
    argument, the exception) and ``response`` (one argument, the raw frame
    text). Observers run on whichever thread raised the event, which for
    ``response`` is the connection's reader thread.
    """

    def __init__(
        self,
        host: str,
        num_inputs: int = DEFAULT_NUM_INPUTS,
        num_outputs: int = DEFAULT_NUM_OUTPUTS,
        *,
        port: int = DEFAULT_PORT,
        address: int = DEFAULT_ADDRESS,
        connection: Optional[Any] = None,
    ) -> None:
        self._info = DeviceInfo(
            host=host,
            port=port,
            address=address,
            num_inputs=num_inputs,
            num_outputs=num_outputs,
        )
        self._connection = connection
        self._decoder = FrameDecoder()
        self._pending: deque[Future] = deque()
        self._lock = threading.Lock()
        self._open = False
        self._observers: dict[str, list[Callable[..., None]]] = {e: [] for e in EVENTS}

    # ─── PROPERTIES ──────────────────────────────────────────────────

    @property
    def info(self) -> DeviceInfo:
        return self._info

    @property
    def address(self) -> int:
        return self._info.address

    @property
    def num_inputs(self) -> int:
        return self._info.num_inputs

    @property
    def num_outputs(self) -> int:
        return self._info.num_outputs

    @property
    def num_lines(self) -> int:
        return self._info.num_lines

    @property
    def connected(self) -> bool:
        return self._open and self._connection is not None and self._connection.connected

    @property
    def pending_count(self) -> int:
        """Number of sent commands still waiting for their response."""
        with self._lock:
            return len(self._pending)

    # ─── OBSERVERS ───────────────────────────────────────────────────

    def on(self, event: str, callback: Callable[..., None]) -> None:
        """Subscribe ``callback`` to ``event``."""
        if event not in self._observers:
            raise ValueError(f"Unknown event '{event}'. Valid: {list(EVENTS)}")
        self._observers[event].append(callback)

    def off(self, event: str, callback: Callable[..., None]) -> None:
        """Remove a callback added with :meth:`on`."""
        if event not in self._observers:
            raise ValueError(f"Unknown event '{event}'. Valid: {list(EVENTS)}")
        if callback in self._observers[event]:
            self._observers[event].remove(callback)

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._observers[event]):
            try:
                callback(*args)
            except Exception:
                logger.warning("Observer for '%s' raised", event, exc_info=True)

    # ─── CONNECTION ──────────────────────────────────────────────────

    def connect(self, timeout: float = CONNECT_TIMEOUT_S) -> DeviceInfo:
        """Open the TCP connection to the device.

        Raises:
            TransportError: If the connection cannot be established.
        """
        if self._connection is None:
            self._connection = TCPConnection(
                self._info.host,
                self._info.port,
                on_data=self.feed,
                on_close=self._handle_close,
                on_error=self._handle_error,
            )
        self._decoder.reset()
        try:
            self._connection.open(timeout)
        except TransportError as e:
            self._emit("error", e)
            raise
        self._open = True
        self._emit("connect")
        return self._info

    def disconnect(self) -> None:
        """Close the connection and fail every outstanding command."""
        if self._connection is not None:
            self._connection.close()
        self._handle_close()

    def _handle_close(self) -> None:
        with self._lock:
            if not self._open:
                return
            self._open = False
            abandoned = list(self._pending)
            self._pending.clear()
        for future in abandoned:
            future.set_exception(TransportError("Connection closed before a response arrived"))
        if abandoned:
            logger.warning("Failed %d pending command(s) on disconnect", len(abandoned))
        self._emit("disconnect")

    def _handle_error(self, exc: Exception) -> None:
        self._emit("error", exc)

    # ─── CORRELATION ─────────────────────────────────────────────────

    def send(self, command: str) -> Future:
        """Send a raw command and return a future for its response frame.

        Commands that never get a response resolve to ``None`` as soon as
        they are written. Every other command resolves to the response text
        once the matching frame arrives.

        Raises:
            TransportError: If the device is not connected.
        """
        expects_response = classify_command(command).expects_response
        frame = encode_command(command)
        future = _new_future()

        with self._lock:
            if not self._open or self._connection is None:
                raise TransportError("Not connected to device")
            if expects_response:
                self._pending.append(future)
            try:
                self._connection.write(frame)
            except TransportError as e:
                if expects_response:
                    self._pending.pop()
                write_error: Optional[TransportError] = e
            else:
                write_error = None

        if write_error is not None:
            logger.error("TX failed for %r: %s", command, write_error)
            future.set_exception(write_error)
            self._emit("error", write_error)
            return future

        logger.debug("TX => %s", command)
        if not expects_response:
            future.set_result(None)
        return future

    def dispatch(self, frame: str) -> None:
        """Resolve the oldest pending command with ``frame``.

        Raises:
            QueueUnderflowError: If no command is waiting for a response.
        """
        self._emit("response", frame)
        with self._lock:
            if not self._pending:
                raise QueueUnderflowError(frame)
            future = self._pending.popleft()
        future.set_result(frame)

    def feed(self, chunk: bytes | str) -> None:
        """Decode a chunk of received stream data and dispatch each frame.

        A frame with nothing waiting for it means the stream can no longer
        be trusted; the connection is closed.
        """
        for frame in self._decoder.feed(chunk):
            logger.debug("RX <= %s", frame)
            try:
                self.dispatch(frame)
            except QueueUnderflowError as e:
                logger.error("%s", e)
                self._emit("error", e)
                self.disconnect()
                return

    # ─── DEVICE OPERATIONS ───────────────────────────────────────────

    def _request(self, command: str, parse: Callable[[str], Any]) -> Future:
        result = _new_future()

        def _resolve(sent: Future) -> None:
            try:
                response = sent.result()
            except EDDeviceError as e:
                result.set_exception(e)
                return
            try:
                value = parse(response)
            except ResponseError as e:
                logger.warning("%s", e)
                self._emit("error", e)
                result.set_exception(e)
                return
            result.set_result(value)

        self.send(command).add_done_callback(_resolve)
        return result

    def get_all_digital_line_states(self) -> Future:
        """Read every line; resolves to a list of 0/1, index = line number."""
        command = build_read_all_lines(self.address)
        return self._request(
            command, lambda response: parse_line_states(command, response, self.num_lines)
        )

    def set_digital_output_line_state(self, line: int, state: int) -> Future:
        """Set one output line; resolves to ``True``.

        Args:
            line: Output line 0-15. Lines 8 and up are on bank B.
            state: 0 or 1.
        """
        command = build_set_output_line(self.address, line, state)
        return self._request(command, lambda response: parse_set_line(command, response))

    def set_all_digital_output_states(self, states: list[int]) -> Future:
        """Set all outputs at once; ``states[i]`` is output line i."""
        command = build_set_all_outputs(self.address, states, self.num_outputs)
        return self._request(
            command, lambda response: parse_set_all_outputs(command, response)
        )

    def get_digital_input_line_count(self, line: int | str) -> Future:
        """Read the counter of one input channel; resolves to an int."""
        command = build_read_input_count(self.address, line)
        return self._request(
            command, lambda response: parse_input_count(command, response, self.address)
        )

    def synchronized_sampling(self) -> Future:
        """Broadcast the synchronized sampling trigger (no response)."""
        return self.send(build_synchronized_sampling())

    def host_ok(self) -> Future:
        """Send the host watchdog heartbeat (no response)."""
        return self.send(build_host_ok())

    def restart(self) -> Future:
        """Restart the device to its power-on settings (no response)."""
        return self.send(build_restart(self.address))
