"""Enhanced (ENH/ENS) adapter transport over a connected socket-like object."""

from __future__ import annotations

import threading
import time
from collections import deque

from .base import (
    BusCollisionError,
    EbusError,
    EbusTimeoutError,
    InvalidPayloadError,
    TransportClosedError,
)
from .enh import ENHCommand, ENHMessageKind, ENHParser, encode_enh
from .transport import (
    InfoRequester,
    RawTransport,
    StreamEvent,
    StreamEventKind,
    StreamEventReader,
    is_closed,
    is_timeout,
)

_READ_CHUNK = 256
_DEFAULT_INIT_WAIT = 2.0
_MIN_TIMEOUT = 1e-3


class _AdapterReportedError(InvalidPayloadError):
    """An error frame reported by the adapter during an INFO exchange."""


def _map_error(exc: BaseException, operation: str) -> EbusError:
    if is_timeout(exc):
        return EbusTimeoutError(f"enh transport {operation} timeout")
    if is_closed(exc):
        return TransportClosedError(f"enh transport {operation} closed")
    return TransportClosedError(f"enh transport {operation} failed: {exc}")


class ENHTransport(RawTransport, StreamEventReader, InfoRequester):
    """RawTransport using enhanced protocol framing over a socket-like connection.

    ``conn`` must provide ``send``, ``recv``, ``settimeout`` and ``close``.
    Timeouts are in seconds; zero or less means no timeout. When a write fails
    part way, the raised error carries the number of payload bytes sent in its
    ``written`` attribute.
    """

    def __init__(self, conn, read_timeout: float = 0.0, write_timeout: float = 0.0) -> None:
        self._conn = conn
        self._read_timeout = read_timeout
        self._write_timeout = write_timeout
        # START arbitration already transmits the source symbol on the wire.
        self._arbitration_sends_source = True
        self._read_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._parser = ENHParser()
        self._pending: deque[int] = deque()
        self._resets = 0

    def arbitration_sends_source(self) -> bool:
        """Whether START arbitration already placed the source byte on the wire."""
        return self._arbitration_sends_source

    def initialize(self, features: int) -> None:
        """Send INIT(features) and wait for RESETTED, or until the wait expires."""
        with self._read_lock:
            self._send_frame(ENHCommand.REQ_INIT, features, "init")
            max_wait = self._read_timeout if self._read_timeout > 0 else _DEFAULT_INIT_WAIT
            start = time.monotonic()
            while True:
                remaining = max_wait - (time.monotonic() - start)
                if remaining <= 0:
                    return
                try:
                    data = self._recv(remaining)
                except EbusTimeoutError:
                    return
                for msg in self._parser.parse(data):
                    if msg.kind is ENHMessageKind.DATA:
                        self._pending.append(msg.byte)
                        continue
                    command = msg.command
                    if command == ENHCommand.RES_RECEIVED:
                        self._pending.append(msg.data)
                    elif command == ENHCommand.RES_RESETTED:
                        self._reset_state()
                        return
                    elif command == ENHCommand.RES_ERROR_EBUS:
                        raise InvalidPayloadError(f"enh init ebus error 0x{msg.data:02x}")
                    elif command == ENHCommand.RES_ERROR_HOST:
                        raise InvalidPayloadError(f"enh init host error 0x{msg.data:02x}")

    def read_byte(self) -> int:
        """Return the next received bus byte, skipping reset boundaries."""
        with self._read_lock:
            while True:
                if self._resets > 0:
                    self._resets -= 1
                    continue
                if self._pending:
                    return self._pending.popleft()
                self._fill_pending()

    def read_event(self) -> StreamEvent:
        """Return the next bus byte or adapter reset boundary."""
        with self._read_lock:
            while True:
                if self._resets > 0:
                    self._resets -= 1
                    return StreamEvent(StreamEventKind.RESET)
                if self._pending:
                    return StreamEvent(StreamEventKind.BYTE, self._pending.popleft())
                self._fill_pending()

    def write(self, payload: bytes) -> int:
        """Send each payload byte as a SEND frame in a single batch."""
        with self._write_lock:
            if not payload:
                return 0
            encoded = b"".join(encode_enh(ENHCommand.REQ_SEND, value) for value in payload)
            try:
                written = self._send_all(encoded)
            except EbusError as exc:
                exc.written = getattr(exc, "written", 0) // 2
                raise
            if written != len(encoded):
                err = InvalidPayloadError("enh transport write incomplete")
                err.written = written // 2
                raise err
            return len(payload)

    def start_arbitration(self, initiator: int) -> None:
        """Request bus ownership; raise BusCollisionError when it is not granted."""
        with self._read_lock:
            self._send_frame(ENHCommand.REQ_START, initiator, "start")
            while True:
                data = self._recv(self._timeout(self._read_timeout))
                done = False
                failure: EbusError | None = None
                for msg in self._parser.parse(data):
                    if msg.kind is ENHMessageKind.DATA:
                        self._pending.append(msg.byte)
                        continue
                    command = msg.command
                    if command == ENHCommand.RES_RECEIVED:
                        # Bus bytes seen while waiting are dropped; the protocol resyncs.
                        continue
                    if command == ENHCommand.RES_RESETTED:
                        self._reset_state()
                    elif command == ENHCommand.RES_STARTED:
                        if msg.data == initiator:
                            done = True
                    elif command == ENHCommand.RES_FAILED:
                        done = True
                        failure = BusCollisionError(
                            f"enh arbitration failed (initiator 0x{initiator:02x}, "
                            f"winner 0x{msg.data:02x})"
                        )
                    elif command == ENHCommand.RES_ERROR_EBUS:
                        done = True
                        failure = BusCollisionError(f"enh arbitration ebus error 0x{msg.data:02x}")
                    elif command == ENHCommand.RES_ERROR_HOST:
                        done = True
                        failure = BusCollisionError(f"enh arbitration host error 0x{msg.data:02x}")
                if done:
                    # A half frame left over from the same batch would corrupt the next echo.
                    self._parser.reset()
                    self._pending.clear()
                    if failure is not None:
                        raise failure
                    return

    def request_info(self, info_id: int) -> bytes:
        """Send an INFO request and return the response payload.

        Raises EbusTimeoutError when the response does not arrive within the read
        timeout and TransportClosedError when the adapter resets mid-exchange.
        """
        with self._read_lock:
            try:
                self._send_frame(ENHCommand.REQ_INFO, int(info_id), "info request")
                deadline = (
                    time.monotonic() + self._read_timeout if self._read_timeout > 0 else None
                )
                return self._collect_info(deadline)
            except _AdapterReportedError:
                raise
            except EbusError as exc:
                self._parser.reset()
                # Buffered bus bytes survive timeouts; only a dead transport drops them.
                if isinstance(exc, TransportClosedError):
                    self._pending.clear()
                raise

    def close(self) -> None:
        self._conn.close()

    def _collect_info(self, deadline: float | None) -> bytes:
        length: int | None = None
        payload = bytearray()
        complete = False
        reset_early = False
        while True:
            timeout = None
            if deadline is not None:
                timeout = deadline - time.monotonic()
                if timeout <= 0:
                    raise EbusTimeoutError("enh info exchange deadline exceeded")
            data = self._recv(timeout)
            for msg in self._parser.parse(data):
                if msg.kind is ENHMessageKind.DATA:
                    self._pending.append(msg.byte)
                    continue
                command = msg.command
                if command == ENHCommand.RES_INFO:
                    if length is None:
                        length = msg.data
                        if length == 0:
                            complete = True
                    elif len(payload) < length:
                        payload.append(msg.data)
                        if len(payload) >= length:
                            complete = True
                elif command == ENHCommand.RES_RECEIVED:
                    self._pending.append(msg.data)
                elif command == ENHCommand.RES_RESETTED:
                    self._surface_reset()
                    if not complete:
                        reset_early = True
                elif command == ENHCommand.RES_ERROR_EBUS:
                    raise _AdapterReportedError(f"enh info ebus error 0x{msg.data:02x}")
                elif command == ENHCommand.RES_ERROR_HOST:
                    raise _AdapterReportedError(f"enh info host error 0x{msg.data:02x}")
            if reset_early:
                raise TransportClosedError("enh adapter resetted during info request")
            if complete:
                return bytes(payload)

    def _fill_pending(self) -> None:
        data = self._recv(self._timeout(self._read_timeout))
        for msg in self._parser.parse(data):
            if msg.kind is ENHMessageKind.DATA:
                self._pending.append(msg.byte)
            elif msg.command == ENHCommand.RES_RECEIVED:
                self._pending.append(msg.data)
            elif msg.command == ENHCommand.RES_RESETTED:
                self._surface_reset()

    def _reset_state(self) -> None:
        self._parser.reset()
        self._pending.clear()

    def _surface_reset(self) -> None:
        self._reset_state()
        self._resets += 1

    @staticmethod
    def _timeout(value: float) -> float | None:
        return value if value > 0 else None

    def _recv(self, timeout: float | None) -> bytes:
        if timeout is not None:
            timeout = max(timeout, _MIN_TIMEOUT)
        try:
            self._conn.settimeout(timeout)
            data = self._conn.recv(_READ_CHUNK)
        except OSError as exc:
            raise _map_error(exc, "read") from exc
        if not data:
            raise TransportClosedError("enh transport read closed")
        return data

    def _send_all(self, data: bytes) -> int:
        written = 0
        while written < len(data):
            try:
                self._conn.settimeout(self._timeout(self._write_timeout))
                sent = self._conn.send(data[written:])
            except OSError as exc:
                err = _map_error(exc, "write")
                err.written = written
                raise err from exc
            if not sent:
                break
            written += sent
        return written

    def _send_frame(self, command: ENHCommand, data: int, what: str) -> None:
        sequence = encode_enh(command, data)
        with self._write_lock:
            written = self._send_all(sequence)
        if written != len(sequence):
            raise InvalidPayloadError(f"enh {what} write incomplete")


def ens_transport(conn, read_timeout: float = 0.0, write_timeout: float = 0.0) -> ENHTransport:
    """ENS transport: ENH framing where START arbitration also sends the source byte."""
    return ENHTransport(conn, read_timeout, write_timeout)