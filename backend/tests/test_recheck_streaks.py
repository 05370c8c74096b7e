from datetime import date, timedelta

import pytest

from app.clock import FixedClock
from app.db import MemoryStorage
from app.models import StreakData
from app.stores import STREAK_DATA_KEY
from scripts.recheck_streaks import recheck_device

TODAY = date(2026, 2, 27)  # Friday
DEVICE_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"


def storage_with(last: date, freezes: int = 0) -> MemoryStorage:
    return MemoryStorage({STREAK_DATA_KEY: StreakData(
        current_streak=9, longest_streak=9, last_workout_date=last, streak_freezes=freezes,
    ).model_dump_json(by_alias=True)})


@pytest.mark.parametrize("freezes", [0, 2])
def test_gap_outcome_counts_as_change(freezes):
    storage = storage_with(TODAY - timedelta(days=3), freezes)
    assert recheck_device(storage, DEVICE_ID, FixedClock(TODAY)) is True


def test_streak_on_track_is_unchanged():
    assert recheck_device(storage_with(TODAY - timedelta(days=1)), DEVICE_ID, FixedClock(TODAY)) is False


def test_corrupt_record_warning_is_not_a_change(capsys):
    storage = MemoryStorage({STREAK_DATA_KEY: "{not json"})
    assert recheck_device(storage, DEVICE_ID, FixedClock(TODAY)) is False
    assert "Streak Data Unavailable" in capsys.readouterr().out
