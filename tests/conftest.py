import pytest

from rtuclient.crc import crc_bytes


def make_reply(*body: int) -> bytes:
    """Frame raw reply bytes with a valid CRC."""
    data = bytes(body)
    return data + crc_bytes(data)


class FakeTransport:
    """In-memory transport recording writes and serving canned replies."""

    def __init__(self, replies=(), write_error=None, read_error=None, short_write=False):
        self.replies = list(replies)
        self.write_error = write_error
        self.read_error = read_error
        self.short_write = short_write
        self.timeout = 1.0
        self.written = []
        self.read_sizes = []
        self.read_timeouts = []

    def write(self, data):
        if self.write_error:
            raise self.write_error
        self.written.append(bytes(data))
        return len(data) - 1 if self.short_write else len(data)

    def read(self, size):
        self.read_sizes.append(size)
        self.read_timeouts.append(self.timeout)
        if self.read_error:
            raise self.read_error
        return self.replies.pop(0) if self.replies else b""


@pytest.fixture
def transport():
    return FakeTransport()
