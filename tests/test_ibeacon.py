from __future__ import annotations

import struct
import uuid

from beaconwatch.core.ibeacon import (
    APPLE_COMPANY_ID,
    IBeaconFrame,
    parse_ibeacon,
    parse_ibeacon_payload,
)

BEACON_UUID = uuid.UUID("5A4BCFCE-174E-4BAC-A814-092E77F6B7E5")


def _payload(frame: IBeaconFrame) -> bytes:
    return b"\x02\x15" + struct.pack(">16sHHb", frame.uuid.bytes, frame.major, frame.minor, frame.tx_power)


def test_parse_known_payload() -> None:
    payload = bytes.fromhex("0215" "5a4bcfce174e4baca814092e77f6b7e5" "007b" "01c8" "c5")
    frame = parse_ibeacon({APPLE_COMPANY_ID: payload})
    assert frame == IBeaconFrame(uuid=BEACON_UUID, major=123, minor=456, tx_power=-59)


def test_negative_tx_power_and_trailing_bytes() -> None:
    frame = IBeaconFrame(uuid=BEACON_UUID, major=1, minor=2, tx_power=-65)
    assert parse_ibeacon_payload(_payload(frame) + b"\x00") == frame


def test_other_manufacturers_ignored() -> None:
    assert parse_ibeacon({0x0006: b"\x02\x15" + bytes(21)}) is None
    assert parse_ibeacon({}) is None


def test_non_ibeacon_apple_frames_ignored() -> None:
    assert parse_ibeacon_payload(b"\x10\x05\x01\x18\x00\x00\x00") is None
    assert parse_ibeacon_payload(b"\x02\x15" + bytes(10)) is None
