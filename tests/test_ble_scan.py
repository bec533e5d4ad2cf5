from __future__ import annotations

import asyncio
import struct
import uuid
from types import SimpleNamespace

import pytest

from beaconwatch.core.errors import ScannerError
from beaconwatch.core.ibeacon import APPLE_COMPANY_ID
from beaconwatch.core.model import AuthorizationStatus, BeaconIdentity, ProximityClass, RangedBeacon, RangingSettings
from beaconwatch.transports.ble_scan import BleakRangingSource, discover_ibeacons

BEACON_UUID = uuid.UUID("5A4BCFCE-174E-4BAC-A814-092E77F6B7E5")
IDENTITY = BeaconIdentity(uuid=BEACON_UUID, major=123, minor=456)


def _advert(address: str, rssi: int, *, minor: int = 456, company_id: int = APPLE_COMPANY_ID):
    payload = b"\x02\x15" + struct.pack(">16sHHb", BEACON_UUID.bytes, 123, minor, -59)
    device = SimpleNamespace(address=address, name=None)
    advertisement = SimpleNamespace(manufacturer_data={company_id: payload}, rssi=rssi)
    return device, advertisement


class FakeScanner:
    instances: list[FakeScanner] = []
    adverts: list[tuple[SimpleNamespace, SimpleNamespace]] = []
    fail_start = False

    def __init__(self, detection_callback) -> None:
        self.detection_callback = detection_callback
        self.started = False
        self.stopped = False
        FakeScanner.instances.append(self)

    async def start(self) -> None:
        if FakeScanner.fail_start:
            raise RuntimeError("adapter hci0 not found")
        self.started = True
        for device, advertisement in FakeScanner.adverts:
            self.detection_callback(device, advertisement)

    async def stop(self) -> None:
        self.stopped = True

    @classmethod
    async def discover(cls, timeout: float, return_adv: bool):
        assert return_adv is True
        return {device.address: (device, advertisement) for device, advertisement in cls.adverts}


@pytest.fixture(autouse=True)
def _reset_fake_scanner() -> None:
    FakeScanner.instances = []
    FakeScanner.adverts = []
    FakeScanner.fail_start = False


def test_authorization_is_always() -> None:
    statuses: list[AuthorizationStatus] = []
    BleakRangingSource(scanner_cls=FakeScanner).request_always_authorization(statuses.append)
    assert statuses == [AuthorizationStatus.AUTHORIZED_ALWAYS]


def test_detection_filters_by_identity() -> None:
    source = BleakRangingSource(scanner_cls=FakeScanner)
    source._identity = IDENTITY

    source._on_detection(*_advert("AA:AA:AA:AA:AA:AA", -60))
    source._on_detection(*_advert("BB:BB:BB:BB:BB:BB", -60, minor=999))
    source._on_detection(*_advert("CC:CC:CC:CC:CC:CC", -60, company_id=0x0006))

    samples = source._drain_cycle()
    assert [s.address for s in samples] == ["AA:AA:AA:AA:AA:AA"]
    assert samples[0].tx_power == -59
    assert source._drain_cycle() == []


def test_range_emits_cycles_until_stopped() -> None:
    FakeScanner.adverts = [_advert("AA:AA:AA:AA:AA:AA", -50)]
    source = BleakRangingSource(RangingSettings(cycle_s=0.01), scanner_cls=FakeScanner)
    cycles: list[list[RangedBeacon]] = []

    def on_ranged(beacons: list[RangedBeacon]) -> None:
        cycles.append(beacons)
        if len(cycles) == 2:
            source.stop()

    asyncio.run(source.range(IDENTITY, on_ranged))

    assert len(cycles) == 2
    assert cycles[0][0].proximity is ProximityClass.IMMEDIATE
    assert cycles[0][0].address == "AA:AA:AA:AA:AA:AA"
    assert cycles[1] == []
    assert FakeScanner.instances[0].stopped is True


def test_scanner_start_failure_is_wrapped() -> None:
    FakeScanner.fail_start = True
    source = BleakRangingSource(scanner_cls=FakeScanner)

    with pytest.raises(ScannerError) as exc:
        asyncio.run(source.range(IDENTITY, lambda beacons: None))
    assert "hci0" in str(exc.value)


def test_discover_ibeacons_sorted_by_signal() -> None:
    FakeScanner.adverts = [
        _advert("AA:AA:AA:AA:AA:AA", -80),
        _advert("BB:BB:BB:BB:BB:BB", -40),
        _advert("CC:CC:CC:CC:CC:CC", -30, company_id=0x0006),
    ]

    beacons = asyncio.run(discover_ibeacons(0.1, scanner_cls=FakeScanner))
    assert [b.address for b in beacons] == ["BB:BB:BB:BB:BB:BB", "AA:AA:AA:AA:AA:AA"]
    assert beacons[0].frame.major == 123
