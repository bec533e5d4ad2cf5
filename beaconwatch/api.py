"""Stable public API for building tooling on top of beaconwatch.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from beaconwatch.core.errors import (
    BeaconwatchError,
    RegionLoadError,
    RegionSelectionError,
    RegionValidationError,
    ScannerError,
    ScannerUnavailableError,
)
from beaconwatch.core.model import (
    AlertRequest,
    AuthorizationStatus,
    BackgroundColor,
    BeaconIdentity,
    ClassificationResult,
    DisplayState,
    ProximityClass,
    RangedBeacon,
    RangingSettings,
    Region,
    SessionSummary,
)
from beaconwatch.core.notifier import DISPLAY_TABLE, ProximityNotifier
from beaconwatch.core.region_loader import load_regions
from beaconwatch.core.service import BeaconService, select_region
from beaconwatch.presenters.base import Presenter
from beaconwatch.presenters.console import ConsolePresenter
from beaconwatch.transports.ble_scan import BleakRangingSource, DiscoveredBeacon, discover_ibeacons
from beaconwatch.transports.simulated import SyntheticRangingSource

__all__ = [
    "BeaconwatchError",
    "RegionLoadError",
    "RegionSelectionError",
    "RegionValidationError",
    "ScannerError",
    "ScannerUnavailableError",
    "AlertRequest",
    "AuthorizationStatus",
    "BackgroundColor",
    "BeaconIdentity",
    "ClassificationResult",
    "DisplayState",
    "ProximityClass",
    "RangedBeacon",
    "RangingSettings",
    "Region",
    "SessionSummary",
    "ProximityNotifier",
    "Presenter",
    "ConsolePresenter",
    "BleakRangingSource",
    "SyntheticRangingSource",
    "DiscoveredBeacon",
    "Client",
]


class Client:
    """Public client for interacting with beaconwatch core capabilities.

    A `Client` wraps region loading and selection, the display table, and
    running watch/simulate sessions behind a stable API intended for
    third-party tools (GUI/TUI/services/scripts).
    """

    def __init__(self, *, regions: dict[str, Region] | None = None) -> None:
        if regions is None:
            loaded = load_regions()
            self._regions = loaded.regions
            self._load_warnings = loaded.warnings
        else:
            self._regions = dict(regions)
            self._load_warnings = ()

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._load_warnings

    def list_regions(self) -> list[Region]:
        return sorted(self._regions.values(), key=lambda r: r.id)

    def resolve_region(self, region_id: str | None = None) -> Region:
        return select_region(self._regions, region_id)

    def display_table(self) -> dict[ProximityClass, DisplayState]:
        return dict(DISPLAY_TABLE)

    def new_notifier(self) -> ProximityNotifier:
        return ProximityNotifier()

    def watch(
        self,
        presenter: Presenter,
        *,
        region_id: str | None = None,
        source: BleakRangingSource | None = None,
    ) -> SessionSummary:
        region = self.resolve_region(region_id)
        service = BeaconService(
            source=source or BleakRangingSource(region.ranging),
            presenter=presenter,
            regions=self._regions,
        )
        return asyncio.run(service.run(region.id))

    def simulate(
        self,
        frames: Sequence[ProximityClass | None],
        presenter: Presenter,
        *,
        region_id: str | None = None,
        interval_s: float = 0.0,
        authorization: AuthorizationStatus = AuthorizationStatus.AUTHORIZED_ALWAYS,
    ) -> SessionSummary:
        source = SyntheticRangingSource(frames, interval_s=interval_s, authorization=authorization)
        service = BeaconService(source=source, presenter=presenter, regions=self._regions)
        return asyncio.run(service.run(region_id))

    def scan(self, timeout_s: float = 5.0) -> list[DiscoveredBeacon]:
        return asyncio.run(discover_ibeacons(timeout_s))
