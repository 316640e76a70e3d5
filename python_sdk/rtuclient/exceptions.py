"""
Error taxonomy for RTU exchanges.

All of these derive from pymodbus' ``ModbusException`` so code that already
handles pymodbus errors (``except ModbusIOException`` etc.) keeps working.
"""

from typing import Optional, Union

from pymodbus.exceptions import ModbusException, ModbusIOException

from .const import ExceptionCode, TRANSIENT_EXCEPTIONS


class RTUError(ModbusException):
    """Base class for everything raised by an RTU exchange."""


class TargetDeviceUnresponsive(RTUError, ModbusIOException):
    """The write or the read on the transport failed; the frame is presumed lost."""

    def __init__(self, message: str, function_code: Optional[int] = None):
        ModbusIOException.__init__(self, message, function_code)


class ProtocolViolation(RTUError):
    """The reply failed address, function, length or CRC validation."""

    def __init__(self, message: str, response: bytes = b""):
        self.response = bytes(response)
        RTUError.__init__(self, message)


class SlaveException(RTUError):
    """The slave answered with an exception function code."""

    def __init__(self, slave_address: int, function_code: int, code: int):
        self.slave_address = slave_address
        self.function_code = function_code
        try:
            self.code: Union[ExceptionCode, int] = ExceptionCode(code)
        except ValueError:
            self.code = code
        RTUError.__init__(
            self,
            f"slave {slave_address} rejected function 0x{function_code:02X}: "
            f"{self.code_name}",
        )

    @property
    def code_name(self) -> str:
        if isinstance(self.code, ExceptionCode):
            return self.code.name
        return f"UNKNOWN_EXCEPTION_0x{self.code:02X}"

    @property
    def transient(self) -> bool:
        return self.code in TRANSIENT_EXCEPTIONS
