"""Plain TCP and UDP transports that exchange raw eBUS bytes without framing."""

from __future__ import annotations

import threading

from .base import EbusError, EbusTimeoutError, InvalidPayloadError, TransportClosedError
from .transport import RawTransport, is_closed, is_timeout

_TCP_READ_CHUNK = 4096
_UDP_READ_CHUNK = 65535


class _PlainTransport(RawTransport):
    """Shared timeout, close and error handling for unframed socket transports.

    ``conn`` must provide ``send``, ``recv``, ``settimeout`` and ``close``.
    Timeouts are in seconds; zero or less means no timeout.
    """

    _label = "plain"
    _chunk = _TCP_READ_CHUNK

    def __init__(self, conn, read_timeout: float = 0.0, write_timeout: float = 0.0) -> None:
        self._conn = conn
        self._read_timeout = read_timeout
        self._write_timeout = write_timeout
        self._read_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._closed_lock = threading.Lock()
        self._closed = False
        self._buffer = b""
        self._pos = 0

    def _close_once(self) -> None:
        with self._closed_lock:
            if self._closed:
                return
            self._closed = True
            if self._conn is not None:
                self._conn.close()

    def _is_closed(self) -> bool:
        with self._closed_lock:
            return self._closed

    def _take_buffered(self) -> int | None:
        if self._pos < len(self._buffer):
            value = self._buffer[self._pos]
            self._pos += 1
            return value
        return None

    def _recv(self) -> bytes:
        timeout = self._read_timeout if self._read_timeout > 0 else None
        try:
            self._conn.settimeout(timeout)
            return self._conn.recv(self._chunk)
        except OSError as exc:
            raise self._map_error(exc, "read") from exc

    def _set_write_timeout(self) -> None:
        timeout = self._write_timeout if self._write_timeout > 0 else None
        self._conn.settimeout(timeout)

    def _map_error(self, exc: BaseException, operation: str) -> EbusError:
        prefix = f"{self._label} transport {operation}"
        if is_timeout(exc):
            return EbusTimeoutError(f"{prefix} timeout")
        if is_closed(exc) or self._is_closed():
            return TransportClosedError(f"{prefix} closed")
        return TransportClosedError(f"{prefix} failed: {exc}")


class TCPPlainTransport(_PlainTransport):
    """RawTransport over a plain TCP byte stream; bytes are exchanged as-is.

    When a write fails part way, the raised error carries the number of bytes
    sent in its ``written`` attribute.
    """

    _label = "tcp-plain"
    _chunk = _TCP_READ_CHUNK

    def __init__(self, conn, read_timeout: float = 0.0, write_timeout: float = 0.0) -> None:
        super().__init__(conn, read_timeout, write_timeout)

    def read_byte(self) -> int:
        """Return the next byte from the stream."""
        with self._read_lock:
            if self._is_closed():
                raise TransportClosedError("tcp-plain transport closed")
            value = self._take_buffered()
            if value is not None:
                return value
            data = self._recv()
            if not data:
                raise TransportClosedError("tcp-plain transport read closed")
            self._buffer, self._pos = data, 1
            return data[0]

    def write(self, payload: bytes) -> int:
        """Send all of ``payload`` and return its length."""
        with self._write_lock:
            if not payload:
                return 0
            if self._is_closed():
                raise TransportClosedError("tcp-plain transport closed")
            data = bytes(payload)
            written = 0
            while written < len(data):
                try:
                    self._set_write_timeout()
                    sent = self._conn.send(data[written:])
                except OSError as exc:
                    err = self._map_error(exc, "write")
                    err.written = written
                    raise err from exc
                if not sent:
                    break
                written += sent
            if written != len(data):
                err = InvalidPayloadError("tcp-plain transport write incomplete")
                err.written = written
                raise err
            return written

    def close(self) -> None:
        """Close the connection; later calls do nothing."""
        self._close_once()


class UDPPlainTransport(_PlainTransport):
    """RawTransport over a connected UDP socket carrying raw eBUS bytes.

    Each datagram is a contiguous chunk of the byte stream.
    """

    _label = "udp-plain"
    _chunk = _UDP_READ_CHUNK

    def __init__(self, conn, read_timeout: float = 0.0, write_timeout: float = 0.0) -> None:
        super().__init__(conn, read_timeout, write_timeout)

    def read_byte(self) -> int:
        """Return the next byte, receiving a new datagram when none is buffered."""
        with self._read_lock:
            while True:
                value = self._take_buffered()
                if value is not None:
                    return value
                if self._is_closed():
                    raise TransportClosedError("udp-plain transport closed")
                data = self._recv()
                if data:
                    self._buffer, self._pos = data, 0

    def write(self, payload: bytes) -> int:
        """Send ``payload`` as one datagram and return its length."""
        with self._write_lock:
            if not payload:
                return 0
            if self._is_closed():
                raise TransportClosedError("udp-plain transport closed")
            data = bytes(payload)
            try:
                self._set_write_timeout()
                sent = self._conn.send(data)
            except OSError as exc:
                err = self._map_error(exc, "write")
                err.written = 0
                raise err from exc
            if sent != len(data):
                err = InvalidPayloadError("udp-plain transport write incomplete")
                err.written = sent
                raise err
            return sent

    def close(self) -> None:
        """Close the socket; later calls do nothing."""
        self._close_once()