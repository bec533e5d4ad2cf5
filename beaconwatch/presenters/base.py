"""Presenter interfaces."""

from __future__ import annotations

from typing import Protocol

from beaconwatch.core.model import AlertRequest, DisplayState


class Presenter(Protocol):
    def update_display(self, state: DisplayState) -> None:
        """Show the background color and label for the latest classification."""

    def present_alert(self, alert: AlertRequest) -> None:
        """Show a one-shot informational dialog with a single acknowledgement action."""
