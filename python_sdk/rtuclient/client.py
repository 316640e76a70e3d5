"""
Register-level client over a single serial line.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence, Union

from .const import (
    BROADCAST_ADDRESS,
    DEFAULT_QUIESCENCE,
    REGISTER_READ_FUNCTIONS,
    FunctionCode,
)
from .exceptions import ProtocolViolation
from .frame import RTURequest, encode_frame
from .transport import Transport, auto_connect, exchange, open_serial

logger = logging.getLogger(__name__)


def registers_to_bytes(values: Sequence[int]) -> bytes:
    """Pack 16-bit register values big-endian."""
    out = bytearray()
    for v in values:
        if not 0 <= v <= 0xFFFF:
            raise ValueError(f"Register value must be 0-65535, got {v}")
        out += v.to_bytes(2, "big")
    return bytes(out)


def bytes_to_registers(data: bytes) -> List[int]:
    return [int.from_bytes(data[i:i + 2], "big") for i in range(0, len(data) - 1, 2)]


class RTUClient:
    """Serializes exchanges on one transport.

    Only one request is ever in flight on the line: every exchange holds the
    client's lock from the write until the reply has been validated.

    Usage::

        with RTUClient.from_config(load_config()) as client:
            values = client.read_holding_registers(1, 0, 10)
    """

    def __init__(
        self,
        transport: Transport,
        quiescence: float = DEFAULT_QUIESCENCE,
        timeout: Optional[float] = None,
    ):
        self.transport = transport
        self.quiescence = quiescence
        self.timeout = timeout
        self._lock = threading.Lock()
        self._owns_transport = False

    @classmethod
    def from_config(cls, config, port: Optional[str] = None) -> "RTUClient":
        """Open the configured port (or the first FTDI adapter) and wrap it."""
        if port or config.port:
            transport = open_serial(config, port)
        else:
            transport = auto_connect(config)
        client = cls(transport, quiescence=config.quiescence, timeout=config.timeout)
        client._owns_transport = True
        return client

    def close(self):
        if self._owns_transport:
            self.transport.close()
            self._owns_transport = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def execute(self, request: RTURequest, cancel: Optional[threading.Event] = None) -> bytes:
        with self._lock:
            return exchange(
                request,
                self.transport,
                quiescence=self.quiescence,
                timeout=self.timeout,
                cancel=cancel,
            )

    # ------------------------
    # Reads
    # ------------------------
    def read_registers(
        self,
        slave: int,
        start: int,
        count: int,
        function_code: int = FunctionCode.READ_HOLDING_REGISTERS,
    ) -> bytes:
        """Read ``count`` items and return the data bytes of the reply."""
        if slave == BROADCAST_ADDRESS:
            raise ValueError("Reads cannot be broadcast")
        if function_code in REGISTER_READ_FUNCTIONS and not 1 <= count <= 125:
            raise ValueError(f"Register count must be 1-125, got {count}")
        if count < 1:
            raise ValueError(f"Count must be positive, got {count}")

        request = RTURequest(slave, function_code, start, count)
        response = self.execute(request)

        byte_count = response[2]
        if function_code in REGISTER_READ_FUNCTIONS and byte_count != count * 2:
            raise ProtocolViolation(
                f"Expected {count * 2} data bytes, got {byte_count}", response
            )
        return response[3:3 + byte_count]

    def read_holding_registers(self, slave: int, start: int, count: int) -> List[int]:
        data = self.read_registers(slave, start, count, FunctionCode.READ_HOLDING_REGISTERS)
        return bytes_to_registers(data)

    def read_input_registers(self, slave: int, start: int, count: int) -> List[int]:
        data = self.read_registers(slave, start, count, FunctionCode.READ_INPUT_REGISTERS)
        return bytes_to_registers(data)

    # ------------------------
    # Writes
    # ------------------------
    def write_registers(
        self, slave: int, start: int, values: Union[bytes, bytearray, Sequence[int]]
    ) -> None:
        """Write Multiple Registers (0x10); accepts raw bytes or 16-bit values."""
        if isinstance(values, (bytes, bytearray)):
            data = bytes(values)
        else:
            data = registers_to_bytes(values)
        if not data or len(data) % 2:
            raise ValueError(f"Register payload must be a non-empty even length, got {len(data)}")

        request = RTURequest(
            slave, FunctionCode.WRITE_MULTIPLE_REGISTERS, start, len(data) // 2, data
        )
        response = self.execute(request)
        if slave == BROADCAST_ADDRESS:
            return

        # Reply echoes start register and count
        if response[2:6] != encode_frame(request)[2:6]:
            raise ProtocolViolation(
                f"Write echo mismatch: {response[2:6].hex(' ')}", response
            )
        logger.debug("Wrote %d registers at %d on slave %d", len(data) // 2, start, slave)
