"""Tests for RTUClient and ModbusHelper."""

import pytest

from rtuclient.client import RTUClient, bytes_to_registers, registers_to_bytes
from rtuclient.config import SerialConfig
from rtuclient.const import FunctionCode
from rtuclient.exceptions import ProtocolViolation, TargetDeviceUnresponsive
from rtuclient.frame import decode_header
from rtuclient.modbus import ModbusHelper

from conftest import FakeTransport, make_reply


def client_for(*replies, **kwargs):
    transport = FakeTransport(replies, **kwargs)
    return RTUClient(transport, quiescence=0), transport


class TestReads:
    def test_read_holding_registers(self):
        client, transport = client_for(make_reply(1, 3, 4, 0x01, 0xE6, 0x00, 0xFA))
        assert client.read_holding_registers(1, 0x0100, 2) == [486, 250]
        sent = decode_header(transport.written[0])
        assert sent.function_code == FunctionCode.READ_HOLDING_REGISTERS
        assert (sent.start_register, sent.number_of_registers) == (0x0100, 2)

    def test_read_input_registers(self):
        client, transport = client_for(make_reply(5, 4, 2, 0x12, 0x34))
        assert client.read_input_registers(5, 7, 1) == [0x1234]
        assert transport.written[0][1] == FunctionCode.READ_INPUT_REGISTERS

    def test_read_registers_returns_payload(self):
        client, _ = client_for(make_reply(1, 3, 4, 1, 2, 3, 4))
        assert client.read_registers(1, 0, 2) == b"\x01\x02\x03\x04"

    def test_read_coils_byte_count_not_tied_to_count(self):
        client, _ = client_for(make_reply(1, 1, 2, 0xFF, 0x03))
        assert client.read_registers(1, 0, 10, FunctionCode.READ_COILS) == b"\xFF\x03"

    def test_short_payload_is_violation(self):
        client, _ = client_for(make_reply(1, 3, 2, 0, 1))
        with pytest.raises(ProtocolViolation, match="Expected 4 data bytes"):
            client.read_holding_registers(1, 0, 2)

    def test_broadcast_read_rejected(self):
        client, transport = client_for()
        with pytest.raises(ValueError):
            client.read_holding_registers(0, 0, 1)
        assert transport.written == []

    @pytest.mark.parametrize("count", [0, 126])
    def test_register_count_limits(self, count):
        client, _ = client_for()
        with pytest.raises(ValueError):
            client.read_holding_registers(1, 0, count)


class TestWrites:
    def test_write_registers_values(self):
        request_echo = bytes.fromhex("11 10 00 01 00 02 12 98")
        client, transport = client_for(request_echo)
        client.write_registers(0x11, 1, [0x000A, 0x0102])
        assert transport.written[0] == bytes.fromhex(
            "11 10 00 01 00 02 04 00 0A 01 02 C6 F0"
        )

    def test_write_registers_raw_bytes(self):
        client, transport = client_for(make_reply(1, 0x10, 0, 5, 0, 1))
        client.write_registers(1, 5, b"\xBE\xEF")
        assert decode_header(transport.written[0]).data == b"\xBE\xEF"

    def test_echo_mismatch(self):
        client, _ = client_for(make_reply(1, 0x10, 0, 6, 0, 1))
        with pytest.raises(ProtocolViolation, match="echo"):
            client.write_registers(1, 5, [1])

    def test_broadcast_write(self):
        client, transport = client_for()
        client.write_registers(0, 5, [1, 2])
        assert len(transport.written) == 1
        assert transport.read_sizes == []

    @pytest.mark.parametrize("values", [[], b"\x01", [0x10000]])
    def test_bad_payload(self, values):
        client, transport = client_for()
        with pytest.raises(ValueError):
            client.write_registers(1, 0, values)
        assert transport.written == []


class TestExclusiveAccess:
    def test_lock_held_during_exchange(self):
        client, transport = client_for(make_reply(1, 3, 2, 0, 1))
        seen = []
        original_write = transport.write

        def write(data):
            seen.append(client._lock.locked())
            return original_write(data)

        transport.write = write
        client.read_holding_registers(1, 0, 1)
        assert seen == [True]
        assert not client._lock.locked()

    def test_lock_released_on_error(self):
        client, _ = client_for(write_error=OSError("gone"))
        with pytest.raises(TargetDeviceUnresponsive):
            client.read_holding_registers(1, 0, 1)
        assert not client._lock.locked()

    def test_client_timeout_used_for_read(self):
        transport = FakeTransport([make_reply(1, 3, 2, 0, 1)])
        RTUClient(transport, quiescence=0, timeout=0.25).read_holding_registers(1, 0, 1)
        assert transport.read_timeouts == [0.25]


class TestFromConfig:
    def test_owns_and_closes_transport(self, monkeypatch):
        closed = []

        class Opened(FakeTransport):
            def close(self):
                closed.append(True)

        monkeypatch.setattr("rtuclient.client.open_serial", lambda config, port: Opened())
        config = SerialConfig(port="COM3", timeout=0.5, quiescence=0.1)
        with RTUClient.from_config(config) as client:
            assert client.timeout == 0.5
            assert client.quiescence == 0.1
        assert closed == [True]

    def test_borrowed_transport_not_closed(self):
        transport = FakeTransport()
        transport.close = pytest.fail
        with RTUClient(transport):
            pass

    def test_auto_connect_without_port(self, monkeypatch):
        monkeypatch.setattr("rtuclient.client.auto_connect", lambda config: FakeTransport())
        client = RTUClient.from_config(SerialConfig())
        assert isinstance(client.transport, FakeTransport)


def test_register_packing():
    assert registers_to_bytes([0x1234, 1]) == b"\x12\x34\x00\x01"
    assert bytes_to_registers(b"\x12\x34\x00\x01") == [0x1234, 1]


class TestModbusHelper:
    def test_read_ok(self):
        client, _ = client_for(make_reply(1, 3, 2, 0, 42))
        assert ModbusHelper(client).read_registers(0) == ([42], None)

    def test_no_response(self):
        client, _ = client_for()
        values, err = ModbusHelper(client).read_registers(0, 2)
        assert values is None
        assert "No response" in err

    def test_slave_exception(self):
        client, _ = client_for(bytes.fromhex("01 83 02 C0 F1"))
        values, err = ModbusHelper(client).read_registers(0, 2)
        assert values is None
        assert err == "Error from device: ILLEGAL_ADDRESS"

    def test_protocol_error(self):
        client, _ = client_for(b"\x01\x03\x02\x00\x2A\x00\x00")
        _, err = ModbusHelper(client).read_registers(0)
        assert err.startswith("Modbus protocol error")

    def test_invalid_request(self):
        client, _ = client_for()
        _, err = ModbusHelper(client).write_register(0, -1)
        assert err.startswith("Invalid request")

    def test_write_register(self):
        client, transport = client_for(make_reply(9, 0x10, 0, 20, 0, 1))
        assert ModbusHelper(client, slave=9).write_register(20, 1) == (True, None)
        assert transport.written[0][0] == 9
