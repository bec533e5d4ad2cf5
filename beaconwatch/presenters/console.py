"""Terminal presenter rendering display states with typer styling."""

from __future__ import annotations

import typer

from beaconwatch.core.model import AlertRequest, BackgroundColor, DisplayState

# Terminals have no orange; bright yellow is the closest standard color.
_TERMINAL_COLORS: dict[BackgroundColor, str] = {
    BackgroundColor.GRAY: typer.colors.BRIGHT_BLACK,
    BackgroundColor.BLUE: typer.colors.BLUE,
    BackgroundColor.ORANGE: typer.colors.BRIGHT_YELLOW,
    BackgroundColor.RED: typer.colors.RED,
}

_LABEL_WIDTH = 14


class ConsolePresenter:
    def __init__(self, *, only_changes: bool = False) -> None:
        self.only_changes = only_changes
        self._last: DisplayState | None = None

    def update_display(self, state: DisplayState) -> None:
        if self.only_changes and state == self._last:
            return
        self._last = state
        typer.secho(
            f" {state.label:^{_LABEL_WIDTH}} ",
            fg=typer.colors.WHITE,
            bg=_TERMINAL_COLORS[state.background],
            bold=True,
        )

    def present_alert(self, alert: AlertRequest) -> None:
        lines = [alert.title]
        if alert.message:
            lines.append(alert.message)
        lines.append(f"[ {alert.action_title} ]")
        width = max(len(line) for line in lines) + 4
        border = "+" + "-" * width + "+"
        typer.echo(border)
        for line in lines:
            typer.echo(f"|{line:^{width}}|")
        typer.echo(border)
