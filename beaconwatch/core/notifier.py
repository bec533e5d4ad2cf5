"""Proximity classification to display state, with a one-shot detection alert."""

from __future__ import annotations

import logging
import threading

from beaconwatch.core.model import (
    AlertRequest,
    BackgroundColor,
    ClassificationResult,
    DisplayState,
    ProximityClass,
)

LOGGER = logging.getLogger(__name__)

DISPLAY_TABLE: dict[ProximityClass, DisplayState] = {
    ProximityClass.UNKNOWN: DisplayState(background=BackgroundColor.GRAY, label="UNKNOWN"),
    ProximityClass.FAR: DisplayState(background=BackgroundColor.BLUE, label="FAR"),
    ProximityClass.NEAR: DisplayState(background=BackgroundColor.ORANGE, label="NEAR"),
    ProximityClass.IMMEDIATE: DisplayState(background=BackgroundColor.RED, label="RIGHT HERE"),
}

ALERT_ELIGIBLE = frozenset({ProximityClass.FAR, ProximityClass.NEAR, ProximityClass.IMMEDIATE})

DETECTION_ALERT = AlertRequest(title="Beacon detected", message="", action_title="Continue")


def coerce_proximity(value: object) -> ProximityClass:
    """Resolve any incoming classification to a known class; unrecognized values are UNKNOWN."""
    if isinstance(value, ProximityClass):
        return value
    # bool and float compare equal to ints, so they would slip into the enum lookup.
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        return ProximityClass.UNKNOWN
    return ProximityClass(value)


def display_for(proximity: object) -> DisplayState:
    return DISPLAY_TABLE[coerce_proximity(proximity)]


class ProximityNotifier:
    """Maps classifications to display states and decides the first-detection alert.

    The ``alerted`` flag starts false and flips to true exactly once, the first
    time an alert-eligible class is observed. It is never reset; create a new
    notifier for a new session.
    """

    def __init__(self) -> None:
        self._alerted = False
        self._lock = threading.Lock()

    @property
    def alerted(self) -> bool:
        return self._alerted

    def on_classification(self, proximity: object) -> ClassificationResult:
        resolved = coerce_proximity(proximity)
        fire_alert = False
        if resolved in ALERT_ELIGIBLE:
            with self._lock:
                if not self._alerted:
                    self._alerted = True
                    fire_alert = True
        if fire_alert:
            LOGGER.info("First detection at proximity %s", resolved.name)
        return ClassificationResult(
            proximity=resolved,
            display=DISPLAY_TABLE[resolved],
            fire_alert=fire_alert,
        )
