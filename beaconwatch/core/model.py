"""Core data models used across loader, notifier, service, and CLI."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from beaconwatch.core.errors import RegionValidationError

_UINT16_MAX = 0xFFFF


class ProximityClass(Enum):
    """Coarse distance bucket reported once per ranging cycle.

    Values follow the host location framework's numbering. Anything that does
    not name a known member resolves to ``UNKNOWN``.
    """

    UNKNOWN = 0
    IMMEDIATE = 1
    NEAR = 2
    FAR = 3

    @classmethod
    def _missing_(cls, value: object) -> ProximityClass:
        if isinstance(value, str):
            member = cls.__members__.get(value.strip().upper())
            if member is not None:
                return member
        return cls.UNKNOWN


class BackgroundColor(Enum):
    GRAY = "gray"
    BLUE = "blue"
    ORANGE = "orange"
    RED = "red"


class AuthorizationStatus(Enum):
    NOT_DETERMINED = "not_determined"
    RESTRICTED = "restricted"
    DENIED = "denied"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"
    AUTHORIZED_ALWAYS = "authorized_always"


@dataclass(frozen=True)
class BeaconIdentity:
    """Identity constraint for the beacons to monitor.

    ``major`` and ``minor`` are optional wildcards; a minor is only meaningful
    together with a major.
    """

    uuid: uuid.UUID
    major: int | None = None
    minor: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.uuid, uuid.UUID):
            raise RegionValidationError(
                f"Beacon uuid must be a UUID value, got {type(self.uuid).__name__}"
            )
        for name in ("major", "minor"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise RegionValidationError(f"Beacon {name} must be an integer, got {value!r}")
            if not 0 <= value <= _UINT16_MAX:
                raise RegionValidationError(f"Beacon {name} must be 0-65535, got {value}")
        if self.minor is not None and self.major is None:
            raise RegionValidationError("Beacon minor requires a major value")

    def matches(self, beacon_uuid: uuid.UUID, major: int, minor: int) -> bool:
        if beacon_uuid != self.uuid:
            return False
        if self.major is not None and major != self.major:
            return False
        if self.minor is not None and minor != self.minor:
            return False
        return True

    def describe(self) -> str:
        parts = [str(self.uuid).upper()]
        parts.append(f"major={self.major if self.major is not None else '*'}")
        parts.append(f"minor={self.minor if self.minor is not None else '*'}")
        return " ".join(parts)


@dataclass(frozen=True)
class DisplayState:
    background: BackgroundColor
    label: str


@dataclass(frozen=True)
class ClassificationResult:
    proximity: ProximityClass
    display: DisplayState
    fire_alert: bool


@dataclass(frozen=True)
class AlertRequest:
    title: str
    message: str
    action_title: str


@dataclass(frozen=True)
class RangingSettings:
    cycle_s: float = 1.0
    immediate_m: float = 0.5
    near_m: float = 3.0
    path_loss_exponent: float = 2.0
    default_tx_power: int = -59


@dataclass(frozen=True)
class Region:
    id: str
    name: str
    identity: BeaconIdentity
    ranging: RangingSettings = field(default_factory=RangingSettings)


@dataclass(frozen=True)
class RangedBeacon:
    uuid: uuid.UUID
    major: int
    minor: int
    proximity: ProximityClass
    rssi: int | None = None
    accuracy_m: float | None = None
    address: str | None = None


@dataclass(frozen=True)
class SessionSummary:
    region: Region
    authorization: AuthorizationStatus | None
    ranging_started: bool
    cycles: int
    alerted: bool
