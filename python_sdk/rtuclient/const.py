"""
Modbus RTU wire constants.
"""

from enum import IntEnum

# Frame sizes
RTU_FRAME_MAXSIZE = 256
TCP_FRAME_MAXSIZE = 260
HEADER_SIZE = 6
CRC_SIZE = 2
MIN_RESPONSE_SIZE = 5   # slave + func + 1 byte + crc

EXCEPTION_BIT = 0x80
BROADCAST_ADDRESS = 0

# Seconds to leave the line quiet before reading the reply
DEFAULT_QUIESCENCE = 0.3


class FunctionCode(IntEnum):
    READ_COILS = 0x01
    READ_DISCRETE_INPUTS = 0x02
    READ_HOLDING_REGISTERS = 0x03
    READ_INPUT_REGISTERS = 0x04
    WRITE_SINGLE_COIL = 0x05
    WRITE_SINGLE_REGISTER = 0x06
    WRITE_MULTIPLE_COILS = 0x0F
    WRITE_MULTIPLE_REGISTERS = 0x10


# Replies carry [byte count][data]
READ_FUNCTIONS = frozenset({
    FunctionCode.READ_COILS,
    FunctionCode.READ_DISCRETE_INPUTS,
    FunctionCode.READ_HOLDING_REGISTERS,
    FunctionCode.READ_INPUT_REGISTERS,
})

# Replies echo the 4 bytes after the function code
WRITE_FUNCTIONS = frozenset({
    FunctionCode.WRITE_SINGLE_COIL,
    FunctionCode.WRITE_SINGLE_REGISTER,
    FunctionCode.WRITE_MULTIPLE_COILS,
    FunctionCode.WRITE_MULTIPLE_REGISTERS,
})

REGISTER_READ_FUNCTIONS = frozenset({
    FunctionCode.READ_HOLDING_REGISTERS,
    FunctionCode.READ_INPUT_REGISTERS,
})


class ExceptionCode(IntEnum):
    ILLEGAL_FUNCTION = 0x01
    ILLEGAL_ADDRESS = 0x02
    ILLEGAL_VALUE = 0x03
    ILLEGAL_OPERATION = 0x04   # slave device failure
    ACKNOWLEDGE = 0x05
    SLAVE_DEVICE_BUSY = 0x06
    MEMORY_PARITY_ERROR = 0x08
    GATEWAY_PATH_UNAVAILABLE = 0x0A
    GATEWAY_TARGET_FAILED_TO_RESPOND = 0x0B


# Codes a caller may reasonably retry
TRANSIENT_EXCEPTIONS = frozenset({
    ExceptionCode.ACKNOWLEDGE,
    ExceptionCode.SLAVE_DEVICE_BUSY,
    ExceptionCode.GATEWAY_TARGET_FAILED_TO_RESPOND,
})
