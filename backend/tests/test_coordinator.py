from datetime import date, timedelta

import pytest

from app.clock import FixedClock
from app.coordinator import WorkoutLogCoordinator
from app.db import MemoryStorage, StorageError
from app.models import StreakData, Workout
from app.notify import NoticeCollector
from app.stores import StreakStore, XPStore, STREAK_DATA_KEY, XP_KEY

START = date(2026, 2, 2)  # Monday


def make_workout(day: date) -> Workout:
    return Workout(
        workout_date=day,
        exercise_type="cycling",
        duration=45,
        intensity="high",
        user_weight_kg=80,
        calories_burned=540,
    )


def make_coordinator(storage, today: date, notifier=None) -> WorkoutLogCoordinator:
    notifier = notifier or NoticeCollector()
    clock = FixedClock(today)
    coordinator = WorkoutLogCoordinator(StreakStore(storage, clock, notifier), XPStore(storage, notifier))
    coordinator.load()
    return coordinator


class TestLogWorkout:
    def test_first_workout(self):
        coordinator = make_coordinator(MemoryStorage(), START)
        streak, xp = coordinator.log_workout(make_workout(START))
        assert streak.current_streak == 1
        assert xp == 10

    def test_six_to_seven_awards_milestone_and_freeze(self):
        storage = MemoryStorage()
        notifier = NoticeCollector()
        coordinator = make_coordinator(storage, START, notifier)
        for i in range(7):
            streak, xp = coordinator.log_workout(make_workout(START + timedelta(days=i)))
        assert streak.current_streak == 7
        assert streak.streak_freezes == 1
        assert xp == 7 * 10 + 50
        titles = [n.title for n in notifier.notices]
        assert titles.count("7-Day Streak Milestone!") == 1
        assert titles.count("Streak Freeze Earned!") == 1
        assert storage.get(XP_KEY) == "120"

    def test_same_day_relog_awards_base_xp_only(self):
        coordinator = make_coordinator(MemoryStorage(), START)
        coordinator.log_workout(make_workout(START))
        streak, xp = coordinator.log_workout(make_workout(START))
        assert streak.current_streak == 1
        assert xp == 20

    def test_longest_never_below_current(self):
        coordinator = make_coordinator(MemoryStorage(), START)
        days = [0, 1, 2, 5, 6, 3, 7, 8, 9, 20]
        for offset in days:
            streak, _ = coordinator.log_workout(make_workout(START + timedelta(days=offset)))
            assert streak.longest_streak >= streak.current_streak

    def test_state_survives_reload(self):
        storage = MemoryStorage()
        coordinator = make_coordinator(storage, START)
        coordinator.log_workout(make_workout(START))
        coordinator.log_workout(make_workout(START + timedelta(days=1)))

        reloaded = make_coordinator(storage, START + timedelta(days=1))
        assert reloaded.streak.current_streak == 2
        assert reloaded.xp == 20

    def test_unreadable_storage_is_not_overwritten(self):
        class DownForReads(MemoryStorage):
            def get(self, key):
                raise StorageError("timeout")

        record = StreakData(
            current_streak=30, longest_streak=30, last_workout_date=START - timedelta(days=1),
        ).model_dump_json(by_alias=True)
        storage = DownForReads({STREAK_DATA_KEY: record, XP_KEY: "5000"})
        coordinator = make_coordinator(storage, START)
        streak, xp = coordinator.log_workout(make_workout(START))
        assert (streak.current_streak, xp) == (1, 10)
        assert storage.data == {STREAK_DATA_KEY: record, XP_KEY: "5000"}


class TestGoalCompletion:
    def test_goal_awards_xp_and_leaves_streak(self):
        storage = MemoryStorage()
        coordinator = make_coordinator(storage, START)
        coordinator.log_workout(make_workout(START))
        before = coordinator.streak
        xp = coordinator.log_goal_completion("goal_1", "Ride 100km", 2)
        assert xp == 10 + 200
        assert coordinator.streak == before


class TestResetAll:
    def test_reset_all_restores_defaults(self):
        storage = MemoryStorage()
        coordinator = make_coordinator(storage, START)
        coordinator.log_workout(make_workout(START))
        streak, xp = coordinator.reset_all()
        assert streak == StreakData()
        assert xp == 0
        assert storage.get(STREAK_DATA_KEY) is None
        assert storage.get(XP_KEY) is None

        reloaded = make_coordinator(storage, START)
        assert reloaded.streak == StreakData()
        assert reloaded.xp == 0


@pytest.mark.parametrize("freezes,expected_streak", [(2, 9), (1, 0)])
def test_gap_on_load_then_workout(freezes, expected_streak):
    """A three-day gap is bridged by two freezes, otherwise the streak restarts."""
    storage = MemoryStorage()
    last = date(2026, 2, 24)  # Tuesday
    storage.set(STREAK_DATA_KEY, StreakData(
        current_streak=9, longest_streak=9, last_workout_date=last, streak_freezes=freezes,
    ).model_dump_json(by_alias=True))
    today = date(2026, 2, 27)  # Friday

    coordinator = make_coordinator(storage, today)
    assert coordinator.streak.current_streak == expected_streak

    streak, _ = coordinator.log_workout(make_workout(today))
    assert streak.current_streak == (10 if freezes == 2 else 1)
