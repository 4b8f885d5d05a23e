import pytest

from ebuskit.adapter_info import (
    AdapterInfoID,
    AdapterVersion,
    info_id_name,
    parse_adapter_reset_info,
    parse_adapter_version,
)
from ebuskit.base import InvalidPayloadError


def test_parse_version_2_bytes():
    v = parse_adapter_version(bytes([0x23, 0x01]))
    assert v.version == 0x23
    assert v.supports_info
    assert not v.has_checksum
    assert not v.has_bootloader
    assert v.version_response_len() == 2


def test_parse_version_5_bytes():
    v = parse_adapter_version(bytes([0x23, 0x01, 0xAB, 0xCD, 0x19]))
    assert v.has_checksum
    assert v.checksum == 0xABCD
    assert v.jumpers == 0x19
    assert v.is_wifi
    assert not v.is_ethernet
    assert v.is_v31
    assert not v.has_bootloader
    assert v.version_response_len() == 5


def test_parse_version_8_bytes():
    v = parse_adapter_version(bytes([0x23, 0x01, 0xAB, 0xCD, 0x19, 0x10, 0xEF, 0x01]))
    assert v.has_bootloader
    assert v.bootloader_version == 0x10
    assert v.bootloader_checksum == 0xEF01
    assert v.version_response_len() == 8


@pytest.mark.parametrize("length", [0, 1, 3, 4, 6, 7, 9])
def test_parse_version_invalid_lengths(length):
    data = bytearray(length)
    if length:
        data[0] = 0x23
    with pytest.raises(InvalidPayloadError):
        parse_adapter_version(bytes(data))


def test_parse_version_no_info_support():
    v = parse_adapter_version(bytes([0x23, 0x00]))
    assert v.supports_info is False


@pytest.mark.parametrize(
    "version, info_id, expected",
    [
        (AdapterVersion(supports_info=False), AdapterInfoID.TEMPERATURE, False),
        (AdapterVersion(supports_info=True), AdapterInfoID.TEMPERATURE, True),
        (AdapterVersion(supports_info=True), AdapterInfoID.VERSION, True),
        (AdapterVersion(supports_info=True, has_checksum=True), AdapterInfoID.RESET_INFO, False),
        (AdapterVersion(supports_info=True, has_bootloader=True), AdapterInfoID.RESET_INFO, True),
        (
            AdapterVersion(supports_info=True, has_checksum=True, is_wifi=False),
            AdapterInfoID.WIFI_RSSI,
            False,
        ),
        (
            AdapterVersion(supports_info=True, has_checksum=True, is_wifi=True),
            AdapterInfoID.WIFI_RSSI,
            True,
        ),
        (
            AdapterVersion(supports_info=True, has_checksum=False, is_wifi=True),
            AdapterInfoID.WIFI_RSSI,
            False,
        ),
        (AdapterVersion(supports_info=True), 0x42, False),
    ],
)
def test_supports_info_id(version, info_id, expected):
    assert version.supports_info_id(info_id) is expected


@pytest.mark.parametrize(
    "data, cause, code, count",
    [
        (bytes([1, 5]), "power_on", 1, 5),
        (bytes([3, 0]), "watchdog", 3, 0),
        (bytes([0xFF, 10]), "unknown", 0xFF, 10),
    ],
)
def test_parse_reset_info(data, cause, code, count):
    info = parse_adapter_reset_info(data)
    assert info.cause == cause
    assert info.cause_code == code
    assert info.restart_count == count


def test_parse_reset_info_too_short():
    with pytest.raises(InvalidPayloadError):
        parse_adapter_reset_info(bytes([1]))


def test_info_id_names():
    assert info_id_name(AdapterInfoID.VERSION) == "version"
    assert info_id_name(AdapterInfoID.WIFI_RSSI) == "wifi_rssi"
    assert info_id_name(0xFF) == "unknown(0xff)"
    assert str(AdapterInfoID.SUPPLY_VOLT) == "supply_voltage"