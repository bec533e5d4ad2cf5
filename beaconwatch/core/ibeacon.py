"""iBeacon advertisement decoding.

Manufacturer-specific data layout after the Apple company ID (0x004C)::

    Offset  Length  Value
    0       1       0x02        iBeacon type
    1       1       0x15        length of the remaining 21 bytes
    2-17    16      proximity UUID (big-endian)
    18-19   2       major (big-endian)
    20-21   2       minor (big-endian)
    22      1       calibrated TX power at 1 m (signed int8)
"""

from __future__ import annotations

import struct
import uuid
from collections.abc import Mapping
from dataclasses import dataclass

APPLE_COMPANY_ID = 0x004C
IBEACON_TYPE = 0x02
IBEACON_DATA_LENGTH = 0x15
IBEACON_PAYLOAD_LENGTH = 2 + IBEACON_DATA_LENGTH

_BODY = struct.Struct(">16sHHb")


@dataclass(frozen=True)
class IBeaconFrame:
    uuid: uuid.UUID
    major: int
    minor: int
    tx_power: int


def parse_ibeacon_payload(payload: bytes) -> IBeaconFrame | None:
    if len(payload) < IBEACON_PAYLOAD_LENGTH:
        return None
    if payload[0] != IBEACON_TYPE or payload[1] != IBEACON_DATA_LENGTH:
        return None
    uuid_bytes, major, minor, tx_power = _BODY.unpack_from(payload, 2)
    return IBeaconFrame(uuid=uuid.UUID(bytes=uuid_bytes), major=major, minor=minor, tx_power=tx_power)


def parse_ibeacon(manufacturer_data: Mapping[int, bytes]) -> IBeaconFrame | None:
    """Decode the iBeacon frame from a company-id keyed manufacturer data mapping."""
    payload = manufacturer_data.get(APPLE_COMPANY_ID)
    if payload is None:
        return None
    return parse_ibeacon_payload(bytes(payload))

