"""Service layer wiring a ranging source, the notifier, and a presenter."""

from __future__ import annotations

import asyncio
import logging

from beaconwatch.core.errors import RegionSelectionError
from beaconwatch.core.model import (
    AuthorizationStatus,
    ClassificationResult,
    ProximityClass,
    RangedBeacon,
    Region,
    SessionSummary,
)
from beaconwatch.core.notifier import DETECTION_ALERT, ProximityNotifier, display_for
from beaconwatch.core.region_loader import load_regions
from beaconwatch.presenters.base import Presenter
from beaconwatch.transports.base import RangingSource

LOGGER = logging.getLogger(__name__)


class BeaconService:
    def __init__(
        self,
        *,
        source: RangingSource,
        presenter: Presenter,
        regions: dict[str, Region] | None = None,
    ) -> None:
        if regions is None:
            loaded = load_regions()
            self.regions = loaded.regions
            self.load_warnings = loaded.warnings
        else:
            self.regions = dict(regions)
            self.load_warnings = ()
        self.source = source
        self.presenter = presenter
        self.notifier = ProximityNotifier()
        self.authorization: AuthorizationStatus | None = None
        self.cycles = 0
        self._start_allowed = False
        self._stop_requested = False
        self._decided: asyncio.Event | None = None

    def list_regions(self) -> list[Region]:
        return sorted(self.regions.values(), key=lambda r: r.id)

    def resolve_region(self, region_id: str | None = None) -> Region:
        return select_region(self.regions, region_id)

    def on_authorization_change(self, status: AuthorizationStatus) -> None:
        """Record an authorization change; any settled status releases a waiting `run`.

        ``NOT_DETERMINED`` keeps waiting for the user's decision. Denial and the
        other non-always statuses are terminal for the session.
        """
        self.authorization = status
        if status is AuthorizationStatus.NOT_DETERMINED:
            LOGGER.debug("Authorization not determined yet; waiting")
            return
        self._start_allowed = self._can_start(status)
        if self._decided is not None:
            self._decided.set()

    def _can_start(self, status: AuthorizationStatus) -> bool:
        if status is not AuthorizationStatus.AUTHORIZED_ALWAYS:
            LOGGER.info("Authorization is %s; monitoring will not start", status.value)
            return False
        if not self.source.is_monitoring_available():
            LOGGER.warning("Beacon monitoring is unavailable; staying idle")
            return False
        if not self.source.is_ranging_available():
            LOGGER.warning("Beacon ranging is unavailable; staying idle")
            return False
        return True

    def on_ranged(self, beacons: list[RangedBeacon]) -> ClassificationResult:
        self.cycles += 1
        proximity = beacons[0].proximity if beacons else ProximityClass.UNKNOWN
        result = self.notifier.on_classification(proximity)
        self.presenter.update_display(result.display)
        if result.fire_alert:
            self.presenter.present_alert(DETECTION_ALERT)
        return result

    async def run(self, region_id: str | None = None) -> SessionSummary:
        region = self.resolve_region(region_id)
        self.presenter.update_display(display_for(ProximityClass.UNKNOWN))

        self._decided = asyncio.Event()
        if self._stop_requested:
            self._decided.set()
        ranging_started = False
        try:
            # The grant may arrive on a later loop turn, after the request returns.
            self.source.request_always_authorization(self.on_authorization_change)
            await self._decided.wait()
            if self._start_allowed and not self._stop_requested:
                ranging_started = True
                LOGGER.info("Monitoring region '%s' (%s)", region.name, region.identity.describe())
                await self.source.range(region.identity, self.on_ranged)
        finally:
            self._decided = None
            self._stop_requested = False

        return SessionSummary(
            region=region,
            authorization=self.authorization,
            ranging_started=ranging_started,
            cycles=self.cycles,
            alerted=self.notifier.alerted,
        )

    def stop(self) -> None:
        self._stop_requested = True
        if self._decided is not None:
            self._decided.set()
        self.source.stop()


def select_region(regions: dict[str, Region], region_id: str | None = None) -> Region:
    if region_id:
        region = regions.get(region_id)
        if region is None:
            raise RegionSelectionError(
                f"Unknown region '{region_id}'. Use 'beaconwatch regions' to inspect configured regions."
            )
        return region

    if not regions:
        raise RegionSelectionError("No beacon regions configured. Add a region file and retry.")
    if len(regions) > 1:
        available = ", ".join(sorted(regions))
        raise RegionSelectionError(
            f"Multiple regions configured: {available}. Use --region to choose one."
        )
    return next(iter(regions.values()))
