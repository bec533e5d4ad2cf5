"""Scripted ranging source for tests and demos without radio hardware."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from beaconwatch.core.model import AuthorizationStatus, BeaconIdentity, ProximityClass, RangedBeacon
from beaconwatch.transports.base import AuthorizationCallback, RangedCallback

LOGGER = logging.getLogger(__name__)


class SyntheticRangingSource:
    """Replays one frame per cycle.

    A frame is a ``ProximityClass`` for a single ranged beacon, or ``None`` for
    a cycle in which no beacon was found.
    """

    def __init__(
        self,
        frames: Sequence[ProximityClass | None],
        *,
        interval_s: float = 0.0,
        authorization: AuthorizationStatus = AuthorizationStatus.AUTHORIZED_ALWAYS,
        monitoring_available: bool = True,
        ranging_available: bool = True,
    ) -> None:
        self.frames = tuple(frames)
        self.interval_s = interval_s
        self.authorization = authorization
        self.monitoring_available = monitoring_available
        self.ranging_available = ranging_available
        self._stopped = False

    def request_always_authorization(self, on_change: AuthorizationCallback) -> None:
        on_change(self.authorization)

    def is_monitoring_available(self) -> bool:
        return self.monitoring_available

    def is_ranging_available(self) -> bool:
        return self.ranging_available

    async def range(self, identity: BeaconIdentity, on_ranged: RangedCallback) -> None:
        try:
            for index, frame in enumerate(self.frames):
                if self._stopped:
                    LOGGER.debug("Synthetic ranging stopped after %d frame(s)", index)
                    return
                if index and self.interval_s > 0:
                    await asyncio.sleep(self.interval_s)
                on_ranged(self._beacons_for(identity, frame, index))
        finally:
            self._stopped = False

    def stop(self) -> None:
        self._stopped = True

    @staticmethod
    def _beacons_for(
        identity: BeaconIdentity,
        frame: ProximityClass | None,
        index: int,
    ) -> list[RangedBeacon]:
        if frame is None:
            return []
        return [
            RangedBeacon(
                uuid=identity.uuid,
                major=identity.major if identity.major is not None else 0,
                minor=identity.minor if identity.minor is not None else 0,
                proximity=frame,
                address=f"synthetic-{index}",
            )
        ]
