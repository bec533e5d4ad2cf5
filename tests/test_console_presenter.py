from __future__ import annotations

import pytest

from beaconwatch.core.model import BackgroundColor, DisplayState
from beaconwatch.core.notifier import DETECTION_ALERT
from beaconwatch.presenters.console import ConsolePresenter


def test_update_display_prints_label(capsys: pytest.CaptureFixture[str]) -> None:
    ConsolePresenter().update_display(DisplayState(background=BackgroundColor.RED, label="RIGHT HERE"))
    assert "RIGHT HERE" in capsys.readouterr().out


def test_only_changes_suppresses_repeats(capsys: pytest.CaptureFixture[str]) -> None:
    presenter = ConsolePresenter(only_changes=True)
    far = DisplayState(background=BackgroundColor.BLUE, label="FAR")
    presenter.update_display(far)
    presenter.update_display(far)
    presenter.update_display(DisplayState(background=BackgroundColor.ORANGE, label="NEAR"))

    out = capsys.readouterr().out
    assert out.count("FAR") == 1
    assert out.count("NEAR") == 1


def test_alert_shows_title_and_action(capsys: pytest.CaptureFixture[str]) -> None:
    ConsolePresenter().present_alert(DETECTION_ALERT)
    out = capsys.readouterr().out
    assert "Beacon detected" in out
    assert "[ Continue ]" in out
