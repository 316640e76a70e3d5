"""Tests for Modbus CRC-16."""

from rtuclient.crc import check_crc, compute_crc, crc_bytes


def test_empty_input_is_initial_value():
    assert compute_crc(b"") == 0xFFFF


def test_read_holding_registers_vector():
    data = bytes.fromhex("01 03 00 00 00 0A")
    assert compute_crc(data) == 0xCDC5
    assert crc_bytes(data) == b"\xC5\xCD"


def test_known_vectors():
    assert crc_bytes(bytes.fromhex("01 03 00 00 00 01")) == bytes.fromhex("84 0A")
    assert compute_crc(bytes.fromhex("01 03 01 00 00 01")) == 0xF685
    assert crc_bytes(bytes.fromhex("12 34 23 45 34 56 45 67")) == bytes.fromhex("E2 DB")


def test_deterministic_and_accepts_bytearray():
    data = bytes(range(64))
    assert compute_crc(data) == compute_crc(bytearray(data))
    assert 0 <= compute_crc(data) <= 0xFFFF


def test_check_crc():
    assert check_crc(bytes.fromhex("01 03 00 00 00 0A C5 CD"))
    assert not check_crc(bytes.fromhex("01 03 00 00 00 0A CD C5"))
    assert not check_crc(b"\x01")
    assert not check_crc(b"")
