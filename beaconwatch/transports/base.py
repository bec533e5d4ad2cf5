"""Ranging source interfaces."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from beaconwatch.core.model import AuthorizationStatus, BeaconIdentity, RangedBeacon

AuthorizationCallback = Callable[[AuthorizationStatus], None]
RangedCallback = Callable[[list[RangedBeacon]], None]


class RangingSource(Protocol):
    def request_always_authorization(self, on_change: AuthorizationCallback) -> None:
        """Ask for background-capable authorization and report the outcome to ``on_change``."""

    def is_monitoring_available(self) -> bool:
        """Whether the source can detect the presence of a beacon region."""

    def is_ranging_available(self) -> bool:
        """Whether the source can classify how far a beacon is."""

    async def range(self, identity: BeaconIdentity, on_ranged: RangedCallback) -> None:
        """Report matching beacons once per cycle until stopped or exhausted."""

    def stop(self) -> None:
        """Ask a running ``range`` call to return."""
