from __future__ import annotations

import threading

import pytest

from beaconwatch.core.model import BackgroundColor, ProximityClass
from beaconwatch.core.notifier import DETECTION_ALERT, ProximityNotifier, display_for


@pytest.mark.parametrize(
    ("proximity", "background", "label"),
    [
        (ProximityClass.UNKNOWN, BackgroundColor.GRAY, "UNKNOWN"),
        (ProximityClass.FAR, BackgroundColor.BLUE, "FAR"),
        (ProximityClass.NEAR, BackgroundColor.ORANGE, "NEAR"),
        (ProximityClass.IMMEDIATE, BackgroundColor.RED, "RIGHT HERE"),
    ],
)
def test_display_table(proximity: ProximityClass, background: BackgroundColor, label: str) -> None:
    result = ProximityNotifier().on_classification(proximity)
    assert result.proximity is proximity
    assert result.display.background is background
    assert result.display.label == label


def test_unknown_never_alerts() -> None:
    notifier = ProximityNotifier()
    fired = [notifier.on_classification(ProximityClass.UNKNOWN).fire_alert for _ in range(2)]
    assert fired == [False, False]
    assert notifier.alerted is False


def test_alert_fires_only_on_first_detection() -> None:
    notifier = ProximityNotifier()
    sequence = [ProximityClass.FAR, ProximityClass.NEAR, ProximityClass.IMMEDIATE]
    assert [notifier.on_classification(p).fire_alert for p in sequence] == [True, False, False]
    assert notifier.alerted is True


def test_unknown_between_detections_does_not_rearm() -> None:
    notifier = ProximityNotifier()
    sequence = [ProximityClass.UNKNOWN, ProximityClass.FAR, ProximityClass.UNKNOWN, ProximityClass.NEAR]
    assert [notifier.on_classification(p).fire_alert for p in sequence] == [False, True, False, False]


@pytest.mark.parametrize("value", [None, 7, -1, "sideways", object(), True, False, 1.0, 3.0])
def test_unrecognized_values_map_to_unknown(value: object) -> None:
    notifier = ProximityNotifier()
    result = notifier.on_classification(value)
    assert result.proximity is ProximityClass.UNKNOWN
    assert result.display.label == "UNKNOWN"
    assert result.fire_alert is False


def test_raw_values_and_names_are_accepted() -> None:
    assert display_for(3).label == "FAR"
    assert display_for("near").label == "NEAR"
    assert display_for("Immediate").label == "RIGHT HERE"


def test_concurrent_detections_fire_exactly_once() -> None:
    notifier = ProximityNotifier()
    workers = 16
    barrier = threading.Barrier(workers)
    fired: list[bool] = []
    fired_lock = threading.Lock()

    def worker(index: int) -> None:
        proximity = (ProximityClass.FAR, ProximityClass.NEAR, ProximityClass.IMMEDIATE)[index % 3]
        barrier.wait()
        for _ in range(50):
            result = notifier.on_classification(proximity)
            with fired_lock:
                fired.append(result.fire_alert)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert fired.count(True) == 1
    assert len(fired) == workers * 50


def test_detection_alert_content() -> None:
    assert DETECTION_ALERT.title == "Beacon detected"
    assert DETECTION_ALERT.message == ""
    assert DETECTION_ALERT.action_title == "Continue"
