"""
CRC-16 as used by Modbus serial line framing (reflected polynomial 0xA001,
seed 0xFFFF), computed bit by bit.
"""

from .const import CRC_SIZE


def compute_crc(data: bytes) -> int:
    """Checksum of ``data`` as an unsigned 16-bit integer; ``b""`` gives 0xFFFF."""
    crc = 0xFFFF
    for b in data:
        crc ^= b
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ 0xA001
            else:
                crc >>= 1
    return crc


def crc_bytes(data: bytes) -> bytes:
    """CRC of data as it goes on the wire: low byte, then high byte."""
    return compute_crc(data).to_bytes(CRC_SIZE, "little")


def check_crc(frame: bytes) -> bool:
    """True if the last two bytes of frame are the CRC of everything before them."""
    if len(frame) < CRC_SIZE + 1:
        return False
    return crc_bytes(frame[:-CRC_SIZE]) == bytes(frame[-CRC_SIZE:])
