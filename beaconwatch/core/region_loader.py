"""Region files: YAML documents checked against the packaged region schema.

Regions are read in layers. Packaged regions come first, then the user's
XDG data directory, then the XDG config directory; a later layer replaces a
region with the same ``id`` and records a warning. Two files in one layer
that claim the same ``id`` are an error.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any, NamedTuple

import yaml
from jsonschema import validators
from jsonschema.protocols import Validator

from beaconwatch.core.errors import RegionLoadError, RegionValidationError
from beaconwatch.core.model import BeaconIdentity, RangingSettings, Region

LOGGER = logging.getLogger(__name__)

REGION_SUFFIXES = (".yml", ".yaml")
PACKAGED_LAYER = "packaged"


class UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader without implicit booleans that rejects repeated keys."""

    # "yes"/"no"/"on"/"off" stay strings so schema errors point at them.
    yaml_implicit_resolvers = {
        first_char: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:bool"]
        for first_char, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
    }

    def construct_unique_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        mapping: dict[Any, Any] = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in mapping:
                line = key_node.start_mark.line + 1
                raise RegionValidationError(f"Duplicate key '{key}' at line {line}")
            mapping[key] = self.construct_object(value_node, deep=deep)
        return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    UniqueKeyLoader.construct_unique_mapping,
)


@dataclass(frozen=True)
class LoadedRegions:
    regions: dict[str, Region]
    warnings: tuple[str, ...]


class RegionFile(NamedTuple):
    layer: str
    path: Path | Traversable


@lru_cache(maxsize=1)
def region_validator() -> Validator:
    schema = json.loads(
        resources.files("beaconwatch.schemas").joinpath("region.schema.json").read_text(encoding="utf-8")
    )
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def user_region_dirs() -> tuple[Path, Path]:
    """Return the user region directories, lowest precedence first."""
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_data / "beaconwatch/regions", xdg_config / "beaconwatch/regions"


def _region_files() -> Iterator[RegionFile]:
    packaged = resources.files("beaconwatch.regions").iterdir()
    for item in sorted(packaged, key=lambda p: p.name):
        if item.name.endswith(REGION_SUFFIXES):
            yield RegionFile(PACKAGED_LAYER, item)

    seen: set[Path] = set()
    for directory in user_region_dirs():
        if directory in seen or not directory.is_dir():
            continue
        seen.add(directory)
        for path in sorted(directory.iterdir()):
            if path.suffix in REGION_SUFFIXES:
                yield RegionFile(str(directory), path)


def read_region_document(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RegionLoadError(f"Could not read region file {path}: {exc}") from exc

    try:
        document = yaml.load(content, Loader=UniqueKeyLoader)
    except RegionValidationError as exc:
        raise RegionValidationError(f"{path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RegionValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if document is None:
        raise RegionValidationError(f"Region file {path} is empty")
    if not isinstance(document, dict):
        raise RegionValidationError(f"Region file {path} must contain a mapping at root")
    return document


def _check_schema(document: dict[str, Any], path: Path | Traversable) -> None:
    errors = sorted(region_validator().iter_errors(document), key=lambda e: [str(p) for p in e.path])
    if not errors:
        return
    problems = []
    for error in errors:
        location = ".".join(str(p) for p in error.path) or "<root>"
        problems.append(f"{location}: {error.message}")
    raise RegionValidationError(f"Region file {path} is invalid: " + "; ".join(problems))


def _identity(region_id: str, beacon: dict[str, Any]) -> BeaconIdentity:
    raw_uuid = beacon["uuid"]
    try:
        beacon_uuid = uuid.UUID(raw_uuid.strip())
    except ValueError as exc:
        raise RegionValidationError(
            f"{region_id}.beacon.uuid must be a 128-bit UUID string, got '{raw_uuid}'"
        ) from exc
    return BeaconIdentity(uuid=beacon_uuid, major=beacon.get("major"), minor=beacon.get("minor"))


def _ranging(region_id: str, overrides: dict[str, Any]) -> RangingSettings:
    defaults = RangingSettings()
    settings = RangingSettings(
        cycle_s=float(overrides.get("cycle_s", defaults.cycle_s)),
        immediate_m=float(overrides.get("immediate_m", defaults.immediate_m)),
        near_m=float(overrides.get("near_m", defaults.near_m)),
        path_loss_exponent=float(overrides.get("path_loss_exponent", defaults.path_loss_exponent)),
        default_tx_power=int(overrides.get("default_tx_power", defaults.default_tx_power)),
    )
    if settings.immediate_m >= settings.near_m:
        raise RegionValidationError(
            f"{region_id}.ranging.immediate_m must be smaller than near_m "
            f"({settings.immediate_m} >= {settings.near_m})"
        )
    return settings


def parse_region(document: dict[str, Any], path: Path | Traversable) -> Region:
    _check_schema(document, path)
    region_id = document["id"]
    return Region(
        id=region_id,
        name=document["name"],
        identity=_identity(region_id, document["beacon"]),
        ranging=_ranging(region_id, document.get("ranging", {})),
    )


def load_regions() -> LoadedRegions:
    regions: dict[str, Region] = {}
    origins: dict[str, RegionFile] = {}
    warnings: list[str] = []

    for region_file in _region_files():
        region = parse_region(read_region_document(region_file.path), region_file.path)
        previous = origins.get(region.id)
        if previous is not None:
            if previous.layer == region_file.layer:
                raise RegionValidationError(
                    f"Region '{region.id}' is defined twice: {previous.path} and {region_file.path}"
                )
            source = "packaged region" if previous.layer == PACKAGED_LAYER else str(previous.path)
            warning = f"User region '{region.id}' from {region_file.path} overrides {source}"
            LOGGER.warning(warning)
            warnings.append(warning)
        else:
            LOGGER.debug("Loaded region '%s' from %s", region.id, region_file.path)
        regions[region.id] = region
        origins[region.id] = region_file

    return LoadedRegions(regions=regions, warnings=tuple(warnings))
