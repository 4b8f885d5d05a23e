"""Enhanced (ENH) adapter protocol framing: two-byte command/data sequences."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .base import InvalidPayloadError

_BYTE_FLAG = 0x80
_BYTE_MASK = 0xC0
_BYTE1 = 0xC0
_BYTE2 = 0x80


class ENHCommand(IntEnum):
    """Enhanced protocol request and response identifiers.

    Requests and responses share a numeric space, so some names are aliases.
    """

    REQ_INIT = 0x0
    REQ_SEND = 0x1
    REQ_START = 0x2
    REQ_INFO = 0x3

    RES_RESETTED = 0x0
    RES_RECEIVED = 0x1
    RES_STARTED = 0x2
    RES_INFO = 0x3
    RES_FAILED = 0xA
    RES_ERROR_EBUS = 0xB
    RES_ERROR_HOST = 0xC


def _command(value: int) -> int:
    try:
        return ENHCommand(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class ENHFrame:
    """A decoded two-byte enhanced protocol frame."""

    command: int
    data: int


def encode_enh(command: int, data: int) -> bytes:
    """Encode a command (0-15) and a data byte into a two-byte sequence."""
    if not 0 <= int(command) <= 0x0F:
        raise InvalidPayloadError(f"ENH command {command!r} out of range")
    if not 0 <= data <= 0xFF:
        raise InvalidPayloadError(f"ENH data {data!r} out of range")
    byte1 = _BYTE1 | (int(command) << 2) | ((data & 0xC0) >> 6)
    byte2 = _BYTE2 | (data & 0x3F)
    return bytes([byte1, byte2])


def decode_enh(byte1: int, byte2: int) -> ENHFrame:
    """Decode a two-byte enhanced protocol sequence."""
    if byte1 & _BYTE_MASK != _BYTE1 or byte2 & _BYTE_MASK != _BYTE2:
        raise InvalidPayloadError(f"invalid ENH sequence 0x{byte1:02x} 0x{byte2:02x}")
    command = (byte1 >> 2) & 0x0F
    data = ((byte1 & 0x03) << 6) | (byte2 & 0x3F)
    return ENHFrame(_command(command), data)


class ENHMessageKind(IntEnum):
    """Kind of a parsed enhanced stream item."""

    DATA = 0
    FRAME = 1


@dataclass(frozen=True)
class ENHMessage:
    """Either a raw data byte or an enhanced frame."""

    kind: ENHMessageKind
    byte: int = 0
    command: int = 0
    data: int = 0


class ENHParser:
    """Incremental parser for enhanced protocol byte streams."""

    def __init__(self) -> None:
        self._byte1: int | None = None

    def reset(self) -> None:
        """Discard any half-received frame."""
        self._byte1 = None

    def feed(self, value: int) -> ENHMessage | None:
        """Consume one byte; return a message when one is complete."""
        if self._byte1 is None:
            if value & _BYTE_FLAG == 0:
                return ENHMessage(ENHMessageKind.FRAME, command=ENHCommand.RES_RECEIVED, data=value)
            if value & _BYTE_MASK == _BYTE2:
                raise InvalidPayloadError(f"unexpected ENH second byte 0x{value:02x}")
            self._byte1 = value
            return None

        byte1, self._byte1 = self._byte1, None
        if value & _BYTE_MASK != _BYTE2:
            raise InvalidPayloadError(f"expected ENH second byte, got 0x{value:02x}")
        frame = decode_enh(byte1, value)
        return ENHMessage(ENHMessageKind.FRAME, command=frame.command, data=frame.data)

    def parse(self, data: bytes) -> list[ENHMessage]:
        """Consume a chunk of bytes and return all complete messages."""
        messages = []
        for value in data:
            message = self.feed(value)
            if message is not None:
                messages.append(message)
        return messages