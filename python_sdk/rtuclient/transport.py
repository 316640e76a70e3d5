"""
Blocking request/reply exchange over a byte-stream transport.

The transport is anything with ``write(bytes)`` and ``read(size)``, usually a
:class:`SerialTransport` around a ``serial.Serial``. It is owned by the caller:
nothing here opens or closes it.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Protocol

import serial
import serial.tools.list_ports

from .const import BROADCAST_ADDRESS, DEFAULT_QUIESCENCE, TCP_FRAME_MAXSIZE
from .exceptions import TargetDeviceUnresponsive
from .frame import RTURequest, encode_frame, validate_response

logger = logging.getLogger(__name__)

# Minimum silent interval between frames above 19200 baud
MIN_FRAME_GAP = 0.00175

# How often a pending read checks the cancel event
CANCEL_POLL = 0.01


class Transport(Protocol):
    def write(self, data: bytes) -> Optional[int]: ...

    def read(self, size: int) -> bytes: ...


def exchange(
    request: RTURequest,
    transport: Transport,
    *,
    quiescence: float = DEFAULT_QUIESCENCE,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> bytes:
    """Send one request and return its validated reply.

    Args:
        request: The request to encode and send.
        transport: Open, caller-owned byte stream.
        quiescence: Seconds to wait after the write before reading.
        timeout: Read timeout for this exchange; applied to ``transport.timeout``
            when the transport has one, and restored afterwards.
        cancel: Setting this event aborts the wait before the read, and the
            read itself when the transport has ``cancel_read``.

    Returns:
        The reply ADU, or ``b""`` for broadcast requests (slaves never answer
        those).

    Raises:
        TargetDeviceUnresponsive: The write or read failed, or the exchange
            was cancelled.
        ProtocolViolation: The reply failed validation.
        SlaveException: The slave answered with an exception code.
    """
    adu = encode_frame(request)
    logger.debug("TX: %s", adu.hex(" "))

    try:
        written = transport.write(adu)
    except OSError as e:
        raise TargetDeviceUnresponsive(
            f"Write to slave {request.slave_address} failed: {e}", request.function_code
        ) from e
    if written is not None and written != len(adu):
        raise TargetDeviceUnresponsive(
            f"Short write to slave {request.slave_address}: {written} of {len(adu)} bytes",
            request.function_code,
        )

    _quiesce(request, quiescence, cancel)

    if request.slave_address == BROADCAST_ADDRESS:
        return b""

    response = _read_reply(request, transport, timeout, cancel)
    logger.debug("RX: %s", response.hex(" "))
    return validate_response(request, response)


def _quiesce(request: RTURequest, quiescence: float, cancel: Optional[threading.Event]):
    if cancel is None:
        time.sleep(quiescence)
    elif cancel.wait(quiescence):
        raise TargetDeviceUnresponsive(
            f"Exchange with slave {request.slave_address} cancelled", request.function_code
        )


def _watch_cancel(transport: Transport, cancel: threading.Event, done: threading.Event):
    while not done.is_set():
        if cancel.wait(CANCEL_POLL):
            if not done.is_set():
                transport.cancel_read()
            return


def _read_reply(
    request: RTURequest,
    transport: Transport,
    timeout: Optional[float],
    cancel: Optional[threading.Event] = None,
) -> bytes:
    override = timeout is not None and hasattr(transport, "timeout")
    if override:
        previous = transport.timeout
        transport.timeout = timeout

    watcher = None
    if cancel is not None and hasattr(transport, "cancel_read"):
        done = threading.Event()
        watcher = threading.Thread(
            target=_watch_cancel, args=(transport, cancel, done), daemon=True
        )
        watcher.start()
    try:
        response = transport.read(TCP_FRAME_MAXSIZE)
    except OSError as e:
        raise TargetDeviceUnresponsive(
            f"Read from slave {request.slave_address} failed: {e}", request.function_code
        ) from e
    finally:
        if override:
            transport.timeout = previous
        if watcher is not None:
            done.set()
            watcher.join()

    if cancel is not None and cancel.is_set():
        raise TargetDeviceUnresponsive(
            f"Read from slave {request.slave_address} cancelled", request.function_code
        )
    if not response:
        raise TargetDeviceUnresponsive(
            f"No response from slave {request.slave_address}", request.function_code
        )
    return bytes(response)


class SerialTransport:
    """Adapts a ``serial.Serial`` port to one-read-per-reply semantics.

    ``read`` blocks for the first byte (bounded by the port timeout), then
    keeps draining until the line has been silent for one inter-frame gap.
    """

    def __init__(self, port: serial.Serial):
        self.port = port
        self._cancelled = threading.Event()

    @property
    def timeout(self) -> Optional[float]:
        return self.port.timeout

    @timeout.setter
    def timeout(self, value: Optional[float]):
        self.port.timeout = value

    @property
    def frame_gap(self) -> float:
        # 3.5 character times, 11 bits per character
        return max(3.5 * 11 / self.port.baudrate, MIN_FRAME_GAP)

    def write(self, data: bytes) -> int:
        self._cancelled.clear()
        self.port.reset_input_buffer()
        written = self.port.write(data)
        self.port.flush()
        return written

    def read(self, size: int) -> bytes:
        buffer = bytearray(self.port.read(1))
        if not buffer:
            return b""

        deadline = time.monotonic() + self.frame_gap
        while len(buffer) < size:
            if self._cancelled.is_set():
                break
            waiting = self.port.in_waiting
            if waiting:
                buffer += self.port.read(min(waiting, size - len(buffer)))
                deadline = time.monotonic() + self.frame_gap
            elif time.monotonic() >= deadline:
                break
            else:
                time.sleep(0.0005)
        return bytes(buffer)

    def cancel_read(self):
        """Abort a read blocked in another thread."""
        self._cancelled.set()
        self.port.cancel_read()

    def close(self):
        if self.port and self.port.is_open:
            self.port.close()


def open_serial(config, port: Optional[str] = None) -> SerialTransport:
    """Open the serial port described by a :class:`~rtuclient.config.SerialConfig`."""
    name = port or config.port
    if not name:
        raise ValueError("Port name not specified")
    ser = serial.Serial(
        port=name,
        baudrate=config.baudrate,
        bytesize=config.bytesize,
        parity=config.parity,
        stopbits=config.stopbits,
        timeout=config.timeout,
    )
    logger.info("Opened %s at %d baud", name, config.baudrate)
    return SerialTransport(ser)


def auto_connect(config) -> SerialTransport:
    """Open the first FTDI RS485 adapter found."""
    for p in serial.tools.list_ports.comports():
        desc = (p.description or "").lower()
        if "ftdi" in desc:
            return open_serial(config, p.device)
    raise RuntimeError("No FTDI RS485 adapter found")
