"""Sequential decoding of named fields from a payload."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .base import DataType, EbusError, InvalidPayloadError, Value


@dataclass(frozen=True)
class Field:
    """A named data type within a structured payload."""

    name: str
    data_type: DataType | None


def decode_fields(payload: bytes, fields: Iterable[Field]) -> dict[str, Value]:
    """Decode consecutive fields from ``payload`` into a mapping by field name."""
    values: dict[str, Value] = {}
    offset = 0
    for field in fields:
        if field.data_type is None:
            raise InvalidPayloadError(f"field {field.name!r} missing type")
        size = field.data_type.size()
        if size <= 0:
            raise InvalidPayloadError(f"field {field.name!r} invalid size")
        if offset + size > len(payload):
            raise InvalidPayloadError(f"field {field.name!r} short payload")
        try:
            values[field.name] = field.data_type.decode(payload[offset:offset + size])
        except EbusError as exc:
            raise type(exc)(f"field {field.name!r} decode: {exc}") from exc
        offset += size
    return values


def total_size(fields: Iterable[Field]) -> int:
    """Total wire size of the fields, ignoring untyped or non-positive ones."""
    return sum(
        size
        for size in (f.data_type.size() for f in fields if f.data_type is not None)
        if size > 0
    )