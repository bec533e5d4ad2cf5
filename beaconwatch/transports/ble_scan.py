"""BLE ranging source built on bleak advertisement scanning."""

from __future__ import annotations

import asyncio
import importlib.util
import logging
from dataclasses import dataclass
from typing import Any

from beaconwatch.core.errors import ScannerError, ScannerUnavailableError
from beaconwatch.core.ibeacon import IBeaconFrame, parse_ibeacon
from beaconwatch.core.model import AuthorizationStatus, BeaconIdentity, RangingSettings
from beaconwatch.core.ranging import BeaconSample, summarize_cycle
from beaconwatch.transports.base import AuthorizationCallback, RangedCallback

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredBeacon:
    address: str
    frame: IBeaconFrame
    rssi: int


def _scanner_cls() -> Any:
    try:
        from bleak import BleakScanner  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise ScannerUnavailableError(
            "BLE ranging requires 'bleak'. Install dependency and retry."
        ) from exc
    return BleakScanner


class BleakRangingSource:
    """Ranges iBeacons by passively scanning advertisements.

    BlueZ and the other bleak backends have no per-application location
    permission, so authorization is reported as ``AUTHORIZED_ALWAYS``; adapter
    problems surface as ``ScannerError`` once scanning starts.
    """

    def __init__(self, settings: RangingSettings | None = None, *, scanner_cls: Any = None) -> None:
        self.settings = settings or RangingSettings()
        self._scanner_cls = scanner_cls
        self._identity: BeaconIdentity | None = None
        self._samples: list[BeaconSample] = []
        self._stop_event: asyncio.Event | None = None
        self._stop_requested = False

    def request_always_authorization(self, on_change: AuthorizationCallback) -> None:
        on_change(AuthorizationStatus.AUTHORIZED_ALWAYS)

    def is_monitoring_available(self) -> bool:
        return self._scanner_cls is not None or importlib.util.find_spec("bleak") is not None

    def is_ranging_available(self) -> bool:
        return self.is_monitoring_available()

    def _on_detection(self, device: Any, advertisement_data: Any) -> None:
        if self._identity is None:
            return
        frame = parse_ibeacon(advertisement_data.manufacturer_data)
        if frame is None or not self._identity.matches(frame.uuid, frame.major, frame.minor):
            return
        self._samples.append(
            BeaconSample(
                address=device.address,
                uuid=frame.uuid,
                major=frame.major,
                minor=frame.minor,
                rssi=advertisement_data.rssi,
                tx_power=frame.tx_power,
            )
        )

    def _drain_cycle(self) -> list[BeaconSample]:
        samples, self._samples = self._samples, []
        return samples

    async def range(self, identity: BeaconIdentity, on_ranged: RangedCallback) -> None:
        scanner_cls = self._scanner_cls or _scanner_cls()
        self._identity = identity
        self._samples = []
        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()

        scanner = scanner_cls(detection_callback=self._on_detection)
        try:
            await scanner.start()
        except Exception as exc:
            raise ScannerError(f"Could not start BLE scanner: {exc}") from exc

        LOGGER.info("Ranging %s every %.1fs", identity.describe(), self.settings.cycle_s)
        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.settings.cycle_s)
                except asyncio.TimeoutError:
                    pass
                if self._stop_event.is_set():
                    break
                beacons = summarize_cycle(self._drain_cycle(), self.settings)
                LOGGER.debug("Cycle ranged %d beacon(s)", len(beacons))
                on_ranged(beacons)
        finally:
            try:
                await scanner.stop()
            except Exception as exc:
                LOGGER.warning("Error stopping BLE scanner: %s", exc)
            self._identity = None
            self._stop_event = None
            self._stop_requested = False

    def stop(self) -> None:
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()


async def discover_ibeacons(timeout_s: float = 5.0, *, scanner_cls: Any = None) -> list[DiscoveredBeacon]:
    """Scan once and return every iBeacon heard, strongest signal first."""
    scanner_cls = scanner_cls or _scanner_cls()
    try:
        found = await scanner_cls.discover(timeout=timeout_s, return_adv=True)
    except Exception as exc:
        raise ScannerError(f"BLE discovery failed: {exc}") from exc

    beacons: list[DiscoveredBeacon] = []
    for device, advertisement_data in found.values():
        frame = parse_ibeacon(advertisement_data.manufacturer_data)
        if frame is None:
            continue
        beacons.append(DiscoveredBeacon(address=device.address, frame=frame, rssi=advertisement_data.rssi))
    beacons.sort(key=lambda b: b.rssi, reverse=True)
    return beacons
