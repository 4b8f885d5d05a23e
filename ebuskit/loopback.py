"""In-memory transport that reads back what was written."""

from __future__ import annotations

import threading

from .base import TransportClosedError
from .transport import RawTransport


class Loopback(RawTransport):
    """In-memory RawTransport for tests and simulations."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._buffer = bytearray()
        self._closed = False

    def read_byte(self) -> int:
        """Block until a byte is written or the loopback is closed."""
        with self._cond:
            self._cond.wait_for(lambda: self._buffer or self._closed)
            if not self._buffer:
                raise TransportClosedError("loopback closed")
            return self._buffer.pop(0)

    def write(self, payload: bytes) -> int:
        with self._cond:
            if self._closed:
                raise TransportClosedError("loopback closed")
            if not payload:
                return 0
            self._buffer.extend(payload)
            self._cond.notify_all()
            return len(payload)

    def close(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._cond.notify_all()