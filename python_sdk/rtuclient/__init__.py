"""Modbus RTU client: frame encoding, CRC and request/reply exchange over a serial line."""

from .client import RTUClient
from .config import SerialConfig, load_config
from .const import ExceptionCode, FunctionCode
from .crc import check_crc, compute_crc, crc_bytes
from .exceptions import (
    ProtocolViolation,
    RTUError,
    SlaveException,
    TargetDeviceUnresponsive,
)
from .frame import RTURequest, decode_header, encode_frame, validate_response
from .modbus import ModbusHelper
from .transport import SerialTransport, auto_connect, exchange, open_serial

__version__ = "0.1.0"
