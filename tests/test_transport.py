import errno
import socket

import pytest

from ebuskit.base import EbusTimeoutError
from ebuskit.transport import (
    InfoRequester,
    RawTransport,
    StreamEvent,
    StreamEventKind,
    StreamEventReader,
    is_closed,
    is_timeout,
)


class _Recorder(RawTransport):
    def __init__(self):
        self.data = bytearray()
        self.closed = False

    def read_byte(self):
        return self.data.pop(0)

    def write(self, payload):
        self.data.extend(payload)
        return len(payload)

    def close(self):
        self.closed = True


def test_raw_transport_is_abstract_with_three_methods():
    with pytest.raises(TypeError):
        RawTransport()
    assert RawTransport.__abstractmethods__ == frozenset({"read_byte", "write", "close"})


def test_stream_event_reader_is_abstract():
    with pytest.raises(TypeError):
        StreamEventReader()
    assert StreamEventReader.__abstractmethods__ == frozenset({"read_event"})


def test_info_requester_is_abstract():
    with pytest.raises(TypeError):
        InfoRequester()
    assert InfoRequester.__abstractmethods__ == frozenset({"request_info"})


def test_context_manager_closes():
    tr = _Recorder()
    entered = RawTransport.__enter__(tr)
    assert entered is tr
    assert entered.write(b"\x01\x02") == 2
    assert entered.read_byte() == 0x01
    RawTransport.__exit__(tr, None, None, None)
    assert tr.closed is True


def test_stream_event_defaults():
    event = StreamEvent(StreamEventKind.RESET)
    assert event.byte == 0
    assert event.kind == StreamEventKind.RESET
    assert StreamEventKind.BYTE == 1
    assert StreamEventKind.RESET == 2


@pytest.mark.parametrize(
    "exc, expected",
    [
        (socket.timeout("timed out"), True),
        (TimeoutError(), True),
        (EbusTimeoutError("x"), True),
        (OSError("boom"), False),
        (None, False),
    ],
)
def test_is_timeout(exc, expected):
    assert is_timeout(exc) is expected


@pytest.mark.parametrize(
    "exc, expected",
    [
        (None, False),
        (EOFError(), True),
        (BrokenPipeError(), True),
        (ConnectionResetError(), True),
        (OSError(errno.EBADF, "Bad file descriptor"), True),
        (ValueError("I/O operation on Closed file"), True),
        (OSError("something else"), False),
        (TimeoutError("timed out"), False),
    ],
)
def test_is_closed(exc, expected):
    assert is_closed(exc) is expected