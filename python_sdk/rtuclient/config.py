"""
Serial line settings loaded from the ``"modbus"`` section of a JSON file.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

import serial

from .const import DEFAULT_QUIESCENCE

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.json")

BYTESIZES = (serial.FIVEBITS, serial.SIXBITS, serial.SEVENBITS, serial.EIGHTBITS)
STOPBITS = (serial.STOPBITS_ONE, serial.STOPBITS_ONE_POINT_FIVE, serial.STOPBITS_TWO)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class SerialConfig:
    port: Optional[str] = None
    baudrate: int = 9600
    bytesize: int = serial.EIGHTBITS
    parity: str = serial.PARITY_NONE
    stopbits: float = serial.STOPBITS_ONE
    timeout: Optional[float] = 1.0   # None blocks until data arrives
    target: int = 1
    quiescence: float = DEFAULT_QUIESCENCE

    def __post_init__(self):
        if self.port is not None and not isinstance(self.port, str):
            raise ValueError(f"Port must be a string, got {self.port!r}")
        if not isinstance(self.baudrate, int) or isinstance(self.baudrate, bool) or self.baudrate <= 0:
            raise ValueError(f"Baudrate must be a positive integer, got {self.baudrate!r}")
        if self.bytesize not in BYTESIZES:
            raise ValueError(f"Unsupported bytesize {self.bytesize!r}")
        if not isinstance(self.parity, str) or self.parity not in serial.PARITY_NAMES:
            raise ValueError(f"Unsupported parity {self.parity!r}")
        if self.stopbits not in STOPBITS:
            raise ValueError(f"Unsupported stopbits {self.stopbits!r}")
        if self.timeout is not None and (not _is_number(self.timeout) or self.timeout < 0):
            raise ValueError(f"Timeout must be a non-negative number or null, got {self.timeout!r}")
        if not _is_number(self.quiescence) or self.quiescence < 0:
            raise ValueError(f"Quiescence must be a non-negative number, got {self.quiescence!r}")
        if not isinstance(self.target, int) or not 1 <= self.target <= 247:
            raise ValueError(f"Target slave must be 1-247, got {self.target!r}")


def load_config(path: Union[str, Path, None] = None) -> SerialConfig:
    """Load the ``"modbus"`` section of a config file.

    Missing keys fall back to the ``SerialConfig`` defaults and unknown keys
    are ignored.
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    with open(path, "r") as f:
        data = json.load(f)
    if "modbus" not in data:
        raise ValueError(f"{path} has no 'modbus' section")

    known = {f.name for f in fields(SerialConfig)}
    return SerialConfig(**{k: v for k, v in data["modbus"].items() if k in known})
