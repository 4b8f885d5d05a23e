"""Transport interfaces, stream events and error classification helpers."""

from __future__ import annotations

import errno
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum


class RawTransport(ABC):
    """Low-level byte transport for eBUS communication.

    ``read_byte`` raises TransportClosedError once the transport is closed.
    """

    @abstractmethod
    def read_byte(self) -> int:
        """Block until a byte is available and return it."""

    @abstractmethod
    def write(self, payload: bytes) -> int:
        """Send raw bytes and return how many were written."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class StreamEventKind(IntEnum):
    """Kind of item surfaced by a stream event reader."""

    BYTE = 1
    RESET = 2


@dataclass(frozen=True)
class StreamEvent:
    """A transport stream item; ``byte`` is meaningful only for BYTE events."""

    kind: StreamEventKind
    byte: int = 0


class StreamEventReader(ABC):
    """Transports that can surface non-byte boundaries such as adapter resets."""

    @abstractmethod
    def read_event(self) -> StreamEvent:
        """Return the next byte or reset event."""


class InfoRequester(ABC):
    """Transports that support enhanced protocol INFO queries."""

    @abstractmethod
    def request_info(self, info_id: int) -> bytes:
        """Send an INFO request and return the raw response payload."""


def is_timeout(exc: BaseException | None) -> bool:
    """Whether ``exc`` signals an expired deadline."""
    return isinstance(exc, (TimeoutError, socket.timeout))


def is_closed(exc: BaseException | None) -> bool:
    """Whether ``exc`` signals a closed connection or end of stream."""
    if exc is None:
        return False
    if isinstance(exc, (EOFError, BrokenPipeError, ConnectionAbortedError, ConnectionResetError)):
        return True
    if isinstance(exc, OSError) and exc.errno in (errno.EBADF, errno.EPIPE, errno.ENOTCONN):
        return True
    return "closed" in str(exc).lower()