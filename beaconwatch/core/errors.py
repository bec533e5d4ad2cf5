"""Domain-specific errors for beaconwatch."""


class BeaconwatchError(Exception):
    """Base error for beaconwatch."""


class RegionValidationError(BeaconwatchError, ValueError):
    """Raised when a region file or beacon identity does not conform to schema or semantics."""


class RegionLoadError(BeaconwatchError):
    """Raised when loading region sources fails."""


class RegionSelectionError(BeaconwatchError):
    """Raised when the configured regions cannot resolve a single target."""


class ScannerError(BeaconwatchError):
    """Base ranging source error."""


class ScannerUnavailableError(ScannerError):
    """Raised when no Bluetooth scanning backend can be used."""
