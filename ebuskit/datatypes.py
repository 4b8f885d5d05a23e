"""Primitive eBUS data types: BCD, bit fields, signed and fixed-point numbers, floats, words."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Any

from .base import DataType, InvalidPayloadError, Value, to_float, to_int

_EPSILON = 1e-9
_INT16_REPLACEMENT = 0x8000
_INT16_MIN = -32767
_INT16_MAX = 32767


def _require(payload: bytes, size: int) -> bytes:
    if len(payload) < size:
        raise InvalidPayloadError(f"payload too short: need {size} bytes, got {len(payload)}")
    return bytes(payload[:size])


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


def _decode_scaled(payload: bytes, divisor: float) -> Value:
    raw = int.from_bytes(_require(payload, 2), "little")
    if raw == _INT16_REPLACEMENT:
        return Value(valid=False)
    signed = raw - 0x10000 if raw >= 0x8000 else raw
    return Value(signed / divisor, True)


def _encode_scaled(value: Any, divisor: float) -> bytes:
    f = to_float(value)
    if f is None or math.isnan(f) or math.isinf(f):
        raise InvalidPayloadError(f"cannot encode {value!r}")
    if f < _INT16_MIN / divisor or f > _INT16_MAX / divisor:
        raise InvalidPayloadError(f"value {f} out of range")
    scaled = f * divisor
    rounded = _round_half_away(scaled)
    if abs(scaled - rounded) > _EPSILON:
        raise InvalidPayloadError(f"value {f} not representable exactly")
    i = int(rounded)
    if not _INT16_MIN <= i <= _INT16_MAX:
        raise InvalidPayloadError(f"value {f} out of range")
    return (i & 0xFFFF).to_bytes(2, "little")


class BCD(DataType):
    """Packed binary-coded decimal (00-99) in one byte; 0xFF is the replacement."""

    _REPLACEMENT = 0xFF

    def size(self) -> int:
        return 1

    def replacement_value(self) -> bytes:
        return bytes([self._REPLACEMENT])

    def decode(self, payload: bytes) -> Value:
        raw = _require(payload, 1)[0]
        if raw == self._REPLACEMENT:
            return Value(valid=False)
        tens, ones = raw >> 4, raw & 0x0F
        if tens > 9 or ones > 9:
            raise InvalidPayloadError(f"invalid BCD byte 0x{raw:02x}")
        return Value(tens * 10 + ones, True)

    def encode(self, value: Any) -> bytes:
        i = to_int(value)
        if i is None:
            raise InvalidPayloadError(f"BCD cannot encode {value!r}")
        if not 0 <= i <= 99:
            raise InvalidPayloadError(f"BCD value {i} out of range")
        return bytes([((i // 10) << 4) | (i % 10)])


@dataclass(frozen=True)
class Bitfield(DataType):
    """Packed bit mask over a fixed number of bytes, least significant bit first."""

    size_bytes: int

    _REPLACEMENT = 0xFF

    def size(self) -> int:
        return self.size_bytes

    def replacement_value(self) -> bytes:
        if self.size_bytes <= 0:
            return b""
        return bytes([self._REPLACEMENT]) * self.size_bytes

    def decode(self, payload: bytes) -> Value:
        if self.size_bytes <= 0:
            raise InvalidPayloadError("bitfield size must be positive")
        segment = _require(payload, self.size_bytes)
        if self._is_replacement(segment):
            return Value(valid=False)
        bits = [bool(byte & (1 << bit)) for byte in segment for bit in range(8)]
        return Value(bits, True)

    def encode(self, value: Any) -> bytes:
        if self.size_bytes <= 0:
            raise InvalidPayloadError("bitfield size must be positive")
        if isinstance(value, (bytes, bytearray, memoryview)):
            out = bytes(value)
            if len(out) != self.size_bytes:
                raise InvalidPayloadError("bitfield byte length mismatch")
        elif isinstance(value, (list, tuple)) and all(isinstance(v, bool) for v in value):
            if len(value) != self.size_bytes * 8:
                raise InvalidPayloadError("bitfield bit count mismatch")
            buf = bytearray(self.size_bytes)
            for index, flag in enumerate(value):
                if flag:
                    buf[index // 8] |= 1 << (index % 8)
            out = bytes(buf)
        elif isinstance(value, int) and not isinstance(value, bool):
            out = self._encode_unsigned(value)
        else:
            raise InvalidPayloadError(f"bitfield cannot encode {value!r}")
        if self._is_replacement(out):
            raise InvalidPayloadError("bitfield value equals replacement")
        return out

    def _encode_unsigned(self, value: int) -> bytes:
        if value < 0 or self.size_bytes > 8:
            raise InvalidPayloadError(f"bitfield cannot encode {value!r}")
        if value > (1 << (8 * self.size_bytes)) - 1:
            raise InvalidPayloadError(f"bitfield value {value} too large")
        return value.to_bytes(self.size_bytes, "little")

    @classmethod
    def _is_replacement(cls, data: bytes) -> bool:
        return len(data) > 0 and all(b == cls._REPLACEMENT for b in data)


class Data1b(DataType):
    """One-byte signed integer (D1B); 0x80 is the replacement."""

    _REPLACEMENT = 0x80

    def size(self) -> int:
        return 1

    def replacement_value(self) -> bytes:
        return bytes([self._REPLACEMENT])

    def decode(self, payload: bytes) -> Value:
        raw = _require(payload, 1)[0]
        if raw == self._REPLACEMENT:
            return Value(valid=False)
        return Value(raw - 0x100 if raw >= 0x80 else raw, True)

    def encode(self, value: Any) -> bytes:
        i = to_int(value)
        if i is None:
            raise InvalidPayloadError(f"D1B cannot encode {value!r}")
        if not -127 <= i <= 127:
            raise InvalidPayloadError(f"D1B value {i} out of range")
        return bytes([i & 0xFF])


class Data2b(DataType):
    """Two-byte signed value with divisor 256 (D2B); 0x8000 is the replacement."""

    _DIVISOR = 256.0

    def size(self) -> int:
        return 2

    def replacement_value(self) -> bytes:
        return b"\x00\x80"

    def decode(self, payload: bytes) -> Value:
        return _decode_scaled(payload, self._DIVISOR)

    def encode(self, value: Any) -> bytes:
        return _encode_scaled(value, self._DIVISOR)


class Data2c(DataType):
    """Two-byte signed value with divisor 16 (D2C); 0x8000 is the replacement."""

    _DIVISOR = 16.0

    def size(self) -> int:
        return 2

    def replacement_value(self) -> bytes:
        return b"\x00\x80"

    def decode(self, payload: bytes) -> Value:
        return _decode_scaled(payload, self._DIVISOR)

    def encode(self, value: Any) -> bytes:
        return _encode_scaled(value, self._DIVISOR)


class Exp(DataType):
    """Four-byte little-endian IEEE 754 single-precision float."""

    _REPLACEMENT = 0x7FC00000

    def size(self) -> int:
        return 4

    def replacement_value(self) -> bytes:
        return b"\x00\x00\xc0\x7f"

    def decode(self, payload: bytes) -> Value:
        data = _require(payload, 4)
        if int.from_bytes(data, "little") == self._REPLACEMENT:
            return Value(valid=False)
        (value,) = struct.unpack("<f", data)
        if math.isnan(value) or math.isinf(value):
            return Value(valid=False)
        return Value(value, True)

    def encode(self, value: Any) -> bytes:
        if isinstance(value, bool) or not isinstance(value, float):
            raise InvalidPayloadError(f"EXP cannot encode {value!r}")
        if math.isnan(value) or math.isinf(value):
            raise InvalidPayloadError("EXP cannot encode NaN or infinity")
        try:
            data = struct.pack("<f", value)
        except OverflowError as exc:
            raise InvalidPayloadError(f"EXP value {value} out of range") from exc
        (narrowed,) = struct.unpack("<f", data)
        if math.isinf(narrowed) or int.from_bytes(data, "little") == self._REPLACEMENT:
            raise InvalidPayloadError(f"EXP value {value} out of range")
        return data


class Word(DataType):
    """Unsigned 16-bit little-endian value; 0xFFFF is the replacement."""

    _REPLACEMENT = 0xFFFF

    def size(self) -> int:
        return 2

    def replacement_value(self) -> bytes:
        return b"\xff\xff"

    def decode(self, payload: bytes) -> Value:
        raw = int.from_bytes(_require(payload, 2), "little")
        if raw == self._REPLACEMENT:
            return Value(valid=False)
        return Value(raw, True)

    def encode(self, value: Any) -> bytes:
        i = to_int(value)
        if i is None:
            raise InvalidPayloadError(f"WORD cannot encode {value!r}")
        if not 0 <= i <= 65534:
            raise InvalidPayloadError(f"WORD value {i} out of range")
        return i.to_bytes(2, "little")