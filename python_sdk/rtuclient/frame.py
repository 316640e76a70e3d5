"""
RTU application data unit (ADU) encoding and reply validation.

Request layout::

    +-------+------+-------------+-------------+------------+---------+--------+
    | Slave | Func | Start (BE)  | Count (BE)  | Byte count | Payload | CRC    |
    | 1 B   | 1 B  | 2 B         | 2 B         | 1 B        | n B     | 2 B LE |
    +-------+------+-------------+-------------+------------+---------+--------+

Byte count and payload are only present when the request carries data.
Register fields are big-endian, the trailing CRC is little-endian.
"""

from __future__ import annotations

from dataclasses import dataclass

from .const import (
    CRC_SIZE,
    EXCEPTION_BIT,
    HEADER_SIZE,
    MIN_RESPONSE_SIZE,
    READ_FUNCTIONS,
    RTU_FRAME_MAXSIZE,
    WRITE_FUNCTIONS,
)
from .crc import check_crc, compute_crc, crc_bytes
from .exceptions import ProtocolViolation, SlaveException


@dataclass(frozen=True)
class RTURequest:
    """One register read or write request."""

    slave_address: int
    function_code: int
    start_register: int
    number_of_registers: int
    data: bytes = b""

    def __post_init__(self):
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Payload must be bytes-like, got {type(self.data).__name__}")
        object.__setattr__(self, "data", bytes(self.data))
        if not 0 <= self.slave_address <= 0xFF:
            raise ValueError(f"Slave address must be 0-255, got {self.slave_address}")
        if not 0 <= self.function_code <= 0xFF:
            raise ValueError(f"Function code must be 0-255, got {self.function_code}")
        if not 0 <= self.start_register <= 0xFFFF:
            raise ValueError(f"Start register must be 0-65535, got {self.start_register}")
        if not 0 <= self.number_of_registers <= 0xFFFF:
            raise ValueError(
                f"Number of registers must be 0-65535, got {self.number_of_registers}"
            )
        if self.data:
            expected = self.number_of_registers * 2
            if len(self.data) != expected:
                raise ValueError(
                    f"Payload must be {expected} bytes for {self.number_of_registers} "
                    f"registers, got {len(self.data)}"
                )
            if HEADER_SIZE + 1 + expected + CRC_SIZE > RTU_FRAME_MAXSIZE:
                raise ValueError(
                    f"{self.number_of_registers} registers do not fit in a "
                    f"{RTU_FRAME_MAXSIZE}-byte RTU frame"
                )

    @property
    def is_write(self) -> bool:
        return bool(self.data)

    def __repr__(self) -> str:
        return (
            f"RTURequest(slave={self.slave_address}, "
            f"function=0x{self.function_code:02X}, "
            f"start={self.start_register}, count={self.number_of_registers}, "
            f"data={self.data.hex(' ') if self.data else '(empty)'})"
        )


def encode_frame(request: RTURequest) -> bytes:
    """Build the ADU for a request: 8 bytes for reads, 9 + payload for writes."""
    frame = bytes([
        request.slave_address,
        request.function_code,
        (request.start_register >> 8) & 0xFF,
        request.start_register & 0xFF,
        (request.number_of_registers >> 8) & 0xFF,
        request.number_of_registers & 0xFF,
    ])
    if request.data:
        frame += bytes([len(request.data)]) + request.data
    return frame + crc_bytes(frame)


def decode_header(frame: bytes) -> RTURequest:
    """Recover the request an encoded ADU was built from.

    Raises:
        ProtocolViolation: If the frame is too short, its CRC is wrong or the
            byte count disagrees with the frame length.
    """
    if len(frame) < HEADER_SIZE + CRC_SIZE:
        raise ProtocolViolation(f"Request frame too short: {len(frame)} bytes", frame)
    if not check_crc(frame):
        raise ProtocolViolation("Request frame CRC mismatch", frame)

    data = b""
    if len(frame) > HEADER_SIZE + CRC_SIZE:
        byte_count = frame[HEADER_SIZE]
        if len(frame) != HEADER_SIZE + 1 + byte_count + CRC_SIZE:
            raise ProtocolViolation(
                f"Byte count {byte_count} does not match frame length {len(frame)}",
                frame,
            )
        data = frame[HEADER_SIZE + 1:-CRC_SIZE]

    return RTURequest(
        slave_address=frame[0],
        function_code=frame[1],
        start_register=int.from_bytes(frame[2:4], "big"),
        number_of_registers=int.from_bytes(frame[4:6], "big"),
        data=data,
    )


def validate_response(request: RTURequest, response: bytes) -> bytes:
    """Check a reply against the request that produced it.

    Returns:
        The reply, unchanged, once address, function code, length and CRC
        have all been verified.

    Raises:
        SlaveException: The slave answered with an exception code.
        ProtocolViolation: Anything else about the reply is wrong.
    """
    response = bytes(response)
    if len(response) < MIN_RESPONSE_SIZE:
        raise ProtocolViolation(f"Response too short: {len(response)} bytes", response)

    if not check_crc(response):
        received = int.from_bytes(response[-CRC_SIZE:], "little")
        calculated = compute_crc(response[:-CRC_SIZE])
        raise ProtocolViolation(
            f"CRC mismatch: received=0x{received:04X}, calculated=0x{calculated:04X}",
            response,
        )

    slave, function = response[0], response[1]
    if slave != request.slave_address:
        raise ProtocolViolation(
            f"Reply from slave {slave}, expected {request.slave_address}", response
        )

    if function & EXCEPTION_BIT:
        if function & 0x7F != request.function_code:
            raise ProtocolViolation(
                f"Exception reply for function 0x{function & 0x7F:02X}, "
                f"expected 0x{request.function_code:02X}",
                response,
            )
        if len(response) != MIN_RESPONSE_SIZE:
            raise ProtocolViolation(
                f"Exception reply must be {MIN_RESPONSE_SIZE} bytes, got {len(response)}",
                response,
            )
        raise SlaveException(slave, request.function_code, response[2])

    if function != request.function_code:
        raise ProtocolViolation(
            f"Reply function 0x{function:02X}, expected 0x{request.function_code:02X}",
            response,
        )

    if function in READ_FUNCTIONS:
        expected = 3 + response[2] + CRC_SIZE
    elif function in WRITE_FUNCTIONS:
        expected = HEADER_SIZE + CRC_SIZE
    else:
        return response

    if len(response) != expected:
        raise ProtocolViolation(
            f"Reply length {len(response)} does not match expected {expected}",
            response,
        )
    return response
