"""
Modbus API helper returning ``(result, error)`` pairs for console and GUI code.
"""

from .client import RTUClient
from .exceptions import ProtocolViolation, SlaveException, TargetDeviceUnresponsive


class ModbusHelper:

    def __init__(self, client: RTUClient, slave: int = 1):
        """Initialize with an RTU client and the slave to talk to"""
        self.client = client
        self.slave = slave

    # ------------------------
    # SAFE CALL WRAPPER
    # ------------------------
    def _safe_call(self, func, *args, **kwargs):
        """Executes a client function, turning RTU errors into messages."""
        try:
            return func(*args, **kwargs), None
        except TargetDeviceUnresponsive:
            return None, "No response from device (TargetDeviceUnresponsive)"
        except SlaveException as e:
            return None, f"Error from device: {e.code_name}"
        except ProtocolViolation as e:
            return None, f"Modbus protocol error: {e}"
        except ValueError as e:
            return None, f"Invalid request: {e}"

    # ------------------------
    # READ FUNCTIONS
    # ------------------------
    def read_registers(self, start, count=1):
        """Read N consecutive holding registers starting at 'start'."""
        return self._safe_call(self.client.read_holding_registers, self.slave, start, count)

    def read_input_registers(self, start, count=1):
        return self._safe_call(self.client.read_input_registers, self.slave, start, count)

    # ------------------------
    # WRITE FUNCTIONS
    # ------------------------
    def write_register(self, address, value):
        """Write a single holding register."""
        return self.write_registers(address, [value])

    def write_registers(self, start, values):
        result, err = self._safe_call(self.client.write_registers, self.slave, start, values)
        if err:
            return None, err
        return True, None
