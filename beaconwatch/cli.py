"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import replace

import typer

from beaconwatch.core.errors import BeaconwatchError
from beaconwatch.core.model import AuthorizationStatus, ProximityClass, SessionSummary
from beaconwatch.core.notifier import ALERT_ELIGIBLE, DISPLAY_TABLE
from beaconwatch.core.region_loader import LoadedRegions, load_regions
from beaconwatch.core.service import BeaconService, select_region
from beaconwatch.presenters.console import ConsolePresenter
from beaconwatch.transports.ble_scan import BleakRangingSource, discover_ibeacons
from beaconwatch.transports.simulated import SyntheticRangingSource

app = typer.Typer(help="Watch a single iBeacon region and show how close it is")

_NO_BEACON_TOKENS = {"none", "-"}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _load() -> LoadedRegions:
    loaded = load_regions()
    for warning in loaded.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    return loaded


def _parse_frame(token: str) -> ProximityClass | None:
    lowered = token.strip().lower()
    if lowered in _NO_BEACON_TOKENS:
        return None
    if lowered.upper() not in ProximityClass.__members__:
        choices = ", ".join([m.lower() for m in ProximityClass.__members__] + sorted(_NO_BEACON_TOKENS))
        raise typer.BadParameter(f"Unknown proximity '{token}'. Use one of: {choices}")
    return ProximityClass[lowered.upper()]


def _parse_authorization(value: str) -> AuthorizationStatus:
    normalized = value.strip().lower().replace("-", "_")
    aliases = {
        "always": AuthorizationStatus.AUTHORIZED_ALWAYS,
        "when_in_use": AuthorizationStatus.AUTHORIZED_WHEN_IN_USE,
    }
    if normalized in aliases:
        return aliases[normalized]
    try:
        return AuthorizationStatus(normalized)
    except ValueError:
        choices = ", ".join(sorted(list(aliases) + [s.value for s in AuthorizationStatus]))
        raise typer.BadParameter(f"Unknown authorization '{value}'. Use one of: {choices}") from None


async def _run_until_signalled(service: BeaconService, region_id: str | None) -> SessionSummary:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, service.stop)
        except (NotImplementedError, RuntimeError):
            pass
    return await service.run(region_id)


def _echo_summary(summary: SessionSummary) -> None:
    if not summary.ranging_started:
        status = summary.authorization.value if summary.authorization else "unknown"
        typer.echo(f"Monitoring not started for {summary.region.id} (authorization: {status})")
        return
    alerted = "yes" if summary.alerted else "no"
    typer.echo(f"Ranged {summary.cycles} cycle(s) for {summary.region.id}; beacon detected: {alerted}")


@app.command("regions")
def list_regions() -> None:
    """List configured beacon regions."""
    try:
        loaded = _load()
        if not loaded.regions:
            typer.echo("No regions configured")
            raise typer.Exit(code=1)

        for region in sorted(loaded.regions.values(), key=lambda r: r.id):
            typer.echo(f"{region.id}: {region.name}")
            typer.echo(f"  beacon: {region.identity.describe()}")
            typer.echo(
                f"  ranging: cycle={region.ranging.cycle_s}s immediate<{region.ranging.immediate_m}m "
                f"near<{region.ranging.near_m}m"
            )
    except BeaconwatchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("table")
def show_table() -> None:
    """Show how each proximity is displayed."""
    for proximity in (ProximityClass.UNKNOWN, ProximityClass.FAR, ProximityClass.NEAR, ProximityClass.IMMEDIATE):
        state = DISPLAY_TABLE[proximity]
        alert = "alert" if proximity in ALERT_ELIGIBLE else "-"
        typer.echo(f"{proximity.name.lower():<10} {state.background.value:<7} {state.label:<11} {alert}")


@app.command("scan")
def scan(
    timeout: float = typer.Option(5.0, "--timeout", "-t", help="Scan duration in seconds"),
) -> None:
    """List iBeacons heard during a single scan."""
    try:
        beacons = asyncio.run(discover_ibeacons(timeout))
        if not beacons:
            typer.echo("No iBeacons found")
            return
        for beacon in beacons:
            frame = beacon.frame
            typer.echo(
                f"{beacon.address} {str(frame.uuid).upper()} major={frame.major} "
                f"minor={frame.minor} rssi={beacon.rssi} tx={frame.tx_power}"
            )
    except BeaconwatchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("watch")
def watch(
    region: str | None = typer.Option(None, "--region", help="Region ID"),
    cycle: float | None = typer.Option(None, "--cycle", help="Ranging cycle in seconds"),
) -> None:
    """Range the configured region over BLE until interrupted."""
    try:
        loaded = _load()
        target = select_region(loaded.regions, region)
        settings = target.ranging
        if cycle is not None:
            if cycle <= 0:
                raise typer.BadParameter("--cycle must be positive")
            settings = replace(settings, cycle_s=cycle)
        service = BeaconService(
            source=BleakRangingSource(settings),
            presenter=ConsolePresenter(only_changes=True),
            regions=loaded.regions,
        )
        typer.echo(f"Watching {target.name} ({target.identity.describe()}). Press Ctrl+C to stop.")
        summary = asyncio.run(_run_until_signalled(service, target.id))
        _echo_summary(summary)
    except BeaconwatchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("simulate")
def simulate(
    frames: list[str] = typer.Argument(..., help="Proximity per cycle: unknown, far, near, immediate or none"),
    region: str | None = typer.Option(None, "--region", help="Region ID"),
    interval: float = typer.Option(0.0, "--interval", help="Seconds between cycles"),
    authorization: str = typer.Option("always", "--authorization", help="Authorization the source grants"),
) -> None:
    """Replay synthetic proximity frames through the notifier."""
    parsed = [_parse_frame(token) for token in frames]
    status = _parse_authorization(authorization)
    try:
        loaded = _load()
        service = BeaconService(
            source=SyntheticRangingSource(parsed, interval_s=interval, authorization=status),
            presenter=ConsolePresenter(),
            regions=loaded.regions,
        )
        summary = asyncio.run(_run_until_signalled(service, region))
        _echo_summary(summary)
    except BeaconwatchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
