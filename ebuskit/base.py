"""Core value container, data type protocol, errors and numeric coercion helpers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class EbusError(Exception):
    """Base class for all eBUS errors."""


class InvalidPayloadError(EbusError, ValueError):
    """Raised when a payload or value cannot be encoded or decoded."""


class EbusTimeoutError(EbusError, TimeoutError):
    """Raised when an operation does not complete in time."""


class TransportClosedError(EbusError, ConnectionError):
    """Raised when the underlying transport has been closed."""


class BusCollisionError(EbusError):
    """Raised when bus arbitration is lost or a collision is detected."""


@dataclass(frozen=True)
class Value:
    """A decoded value together with its validity.

    An invalid value (the wire carried the replacement pattern) has ``value`` None.
    """

    value: Any = None
    valid: bool = False


class DataType(ABC):
    """Encoding and decoding of a single eBUS data type."""

    @abstractmethod
    def decode(self, payload: bytes) -> Value:
        """Decode the leading bytes of ``payload``."""

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Encode ``value`` into wire bytes."""

    @abstractmethod
    def size(self) -> int:
        """Number of bytes this type occupies on the wire."""

    @abstractmethod
    def replacement_value(self) -> bytes:
        """Wire bytes that mark the value as unavailable."""


def to_int(value: Any) -> int | None:
    """Return ``value`` as an integer if it is one within the 64-bit signed range."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < _INT64_MIN or value > _INT64_MAX:
        return None
    return int(value)


def to_float(value: Any) -> float | None:
    """Return ``value`` as a float if it is an int or float, otherwise None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return value
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    return None