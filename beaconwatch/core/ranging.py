"""RSSI to proximity bucketing for one ranging cycle."""

from __future__ import annotations

import math
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from beaconwatch.core.model import ProximityClass, RangedBeacon, RangingSettings


@dataclass(frozen=True)
class BeaconSample:
    address: str
    uuid: uuid.UUID
    major: int
    minor: int
    rssi: int
    tx_power: int | None = None


def estimate_distance(rssi: float | None, tx_power: int, path_loss_exponent: float) -> float | None:
    """Log-distance path loss estimate in metres; ``None`` when the signal is unusable.

    An RSSI of 0 is what scanners report for a beacon they could not measure.
    """
    if rssi is None or rssi == 0 or path_loss_exponent <= 0:
        return None
    return math.pow(10.0, (tx_power - rssi) / (10.0 * path_loss_exponent))


def classify_distance(distance_m: float | None, settings: RangingSettings) -> ProximityClass:
    if distance_m is None or distance_m < 0:
        return ProximityClass.UNKNOWN
    if distance_m < settings.immediate_m:
        return ProximityClass.IMMEDIATE
    if distance_m < settings.near_m:
        return ProximityClass.NEAR
    return ProximityClass.FAR


def _summarize_device(samples: Sequence[BeaconSample], settings: RangingSettings) -> RangedBeacon:
    latest = samples[-1]
    usable = [s.rssi for s in samples if s.rssi != 0]
    rssi = round(sum(usable) / len(usable)) if usable else None
    tx_power = latest.tx_power if latest.tx_power is not None else settings.default_tx_power
    distance = estimate_distance(rssi, tx_power, settings.path_loss_exponent)
    return RangedBeacon(
        uuid=latest.uuid,
        major=latest.major,
        minor=latest.minor,
        proximity=classify_distance(distance, settings),
        rssi=rssi,
        accuracy_m=distance,
        address=latest.address,
    )


def summarize_cycle(samples: Iterable[BeaconSample], settings: RangingSettings) -> list[RangedBeacon]:
    """Collapse one cycle's samples into one ranged beacon per device, closest first."""
    by_address: dict[str, list[BeaconSample]] = {}
    for sample in samples:
        by_address.setdefault(sample.address, []).append(sample)

    ranged = [_summarize_device(device_samples, settings) for device_samples in by_address.values()]
    ranged.sort(key=lambda b: (b.accuracy_m is None, b.accuracy_m or 0.0))
    return ranged
