"""Enhanced protocol INFO identifiers and parsers for adapter INFO responses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .base import InvalidPayloadError


class AdapterInfoID(IntEnum):
    """Enhanced protocol INFO query identifier (0x00-0x07)."""

    VERSION = 0x00
    HARDWARE_ID = 0x01
    HARDWARE_CONF = 0x02
    TEMPERATURE = 0x03
    SUPPLY_VOLT = 0x04
    BUS_VOLTAGE = 0x05
    RESET_INFO = 0x06
    WIFI_RSSI = 0x07

    def __str__(self) -> str:
        return info_id_name(self)


_INFO_ID_NAMES = (
    "version",
    "hw_id",
    "hw_config",
    "temperature",
    "supply_voltage",
    "bus_voltage",
    "reset_info",
    "wifi_rssi",
)

_RESET_CAUSE_NAMES = {
    1: "power_on",
    2: "brown_out",
    3: "watchdog",
    4: "clear",
    5: "external_reset",
    6: "stack_overflow",
    7: "memory_failure",
}

_BASIC_INFO_IDS = frozenset(
    {
        AdapterInfoID.VERSION,
        AdapterInfoID.HARDWARE_ID,
        AdapterInfoID.HARDWARE_CONF,
        AdapterInfoID.TEMPERATURE,
        AdapterInfoID.SUPPLY_VOLT,
        AdapterInfoID.BUS_VOLTAGE,
    }
)


def info_id_name(info_id: int) -> str:
    """Human-readable name of an INFO identifier, or ``unknown(0xNN)``."""
    value = int(info_id) & 0xFF
    if value < len(_INFO_ID_NAMES):
        return _INFO_ID_NAMES[value]
    return f"unknown(0x{value:02x})"


@dataclass(frozen=True)
class AdapterVersion:
    """Parsed INFO 0x00 response; optional fields are set only for longer responses."""

    version: int = 0
    features: int = 0
    checksum: int = 0
    jumpers: int = 0
    bootloader_version: int = 0
    bootloader_checksum: int = 0
    has_checksum: bool = False
    has_bootloader: bool = False
    supports_info: bool = False
    is_wifi: bool = False
    is_ethernet: bool = False
    is_high_speed: bool = False
    is_v31: bool = False

    def version_response_len(self) -> int:
        """Length category of the original wire response: 2, 5 or 8."""
        if self.has_bootloader:
            return 8
        if self.has_checksum:
            return 5
        return 2

    def supports_info_id(self, info_id: int) -> bool:
        """Whether the adapter is known to answer the given INFO identifier."""
        if not self.supports_info:
            return False
        if info_id in _BASIC_INFO_IDS:
            return True
        if info_id == AdapterInfoID.RESET_INFO:
            return self.has_bootloader
        if info_id == AdapterInfoID.WIFI_RSSI:
            return self.has_checksum and self.is_wifi
        return False


def parse_adapter_version(data: bytes) -> AdapterVersion:
    """Parse an INFO 0x00 response of 2, 5 or 8 bytes."""
    if len(data) not in (2, 5, 8):
        raise InvalidPayloadError(
            f"adapter version response has invalid length ({len(data)} bytes)"
        )
    fields: dict = {
        "version": data[0],
        "features": data[1],
        "supports_info": bool(data[1] & 0x01),
    }
    if len(data) >= 5:
        jumpers = data[4]
        fields.update(
            has_checksum=True,
            checksum=int.from_bytes(data[2:4], "big"),
            jumpers=jumpers,
            is_wifi=bool(jumpers & 0x08),
            is_ethernet=bool(jumpers & 0x04),
            is_high_speed=bool(jumpers & 0x02),
            is_v31=bool(jumpers & 0x10),
        )
    if len(data) == 8:
        fields.update(
            has_bootloader=True,
            bootloader_version=data[5],
            bootloader_checksum=int.from_bytes(data[6:8], "big"),
        )
    return AdapterVersion(**fields)


@dataclass(frozen=True)
class AdapterResetInfo:
    """Parsed INFO 0x06 response."""

    cause: str
    cause_code: int
    restart_count: int


def parse_adapter_reset_info(data: bytes) -> AdapterResetInfo:
    """Parse an INFO 0x06 response (at least 2 bytes)."""
    if len(data) < 2:
        raise InvalidPayloadError(f"adapter reset info too short ({len(data)} bytes)")
    return AdapterResetInfo(
        cause=_RESET_CAUSE_NAMES.get(data[0], "unknown"),
        cause_code=data[0],
        restart_count=data[1],
    )