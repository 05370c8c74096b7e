"""
Streak tracking — pure functions, no storage access.

Every transition returns (new_state, notices) and leaves its input untouched.
"""
from datetime import date, datetime, timedelta

from ..models import StreakData
from ..notify import Notice, Severity

FREEZE_MILESTONE_DAYS = 7
REST_WEEKDAY = 6  # Sunday

STREAK_SAVED = "Streak Saved!"
STREAK_RESET = "Streak Reset"


def default_streak() -> StreakData:
    return StreakData()


def _as_day(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def record_workout(current: StreakData, workout_date: date) -> tuple[StreakData, list[Notice]]:
    """
    Streak state after a workout on workout_date.
    Gaps here always restart the streak at 1; freezes are only spent by resolve_gap.
    """
    day = _as_day(workout_date)
    last = current.last_workout_date
    notices: list[Notice] = []

    if last == day:
        longest = max(current.longest_streak, current.current_streak)
        return current.model_copy(update={"longest_streak": longest}), notices

    new_streak = current.current_streak
    if last is None:
        new_streak = 1
    else:
        gap = (day - last).days
        if gap == 1:
            new_streak += 1
        elif gap > 1:
            new_streak = 1
        # gap < 0: past-dated log, streak untouched

    updates: dict = {
        "current_streak": new_streak,
        "longest_streak": max(current.longest_streak, new_streak),
    }
    if last is None or day > last:
        updates["last_workout_date"] = day

    freezes = current.streak_freezes
    reached_milestone = (
        new_streak > current.current_streak
        and new_streak % FREEZE_MILESTONE_DAYS == 0
    )
    if reached_milestone and current.last_freeze_earned_date != day:
        freezes += 1
        updates["streak_freezes"] = freezes
        updates["last_freeze_earned_date"] = day
        notices.append(Notice(
            "Streak Freeze Earned!",
            f"You reached a {new_streak}-day streak! You now have {freezes} freeze(s).",
            Severity.SUCCESS,
        ))

    return current.model_copy(update=updates), notices


def is_rest_day_gap(last: date, today: date) -> bool:
    """Exactly one skipped day, and it was a Sunday."""
    yesterday = today - timedelta(days=1)
    return (today - last).days == 2 and yesterday.weekday() == REST_WEEKDAY


def resolve_gap(data: StreakData, today: date) -> tuple[StreakData, list[Notice]]:
    """
    Apply elapsed-time consequences since the last credited day:
    spend freezes to bridge missed days, or break the streak.
    Today is never counted as missed since a workout may still arrive.
    """
    last = data.last_workout_date
    if last is None:
        return data, []

    gap = (today - last).days
    if gap <= 1 or is_rest_day_gap(last, today):
        return data, []

    missed = gap - 1
    if data.streak_freezes >= missed:
        remaining = data.streak_freezes - missed
        saved = data.model_copy(update={
            "streak_freezes": remaining,
            "last_workout_date": today - timedelta(days=1),
        })
        return saved, [Notice(
            STREAK_SAVED,
            f"Used {missed} freeze(s) to cover missed days. Your streak continues! Remaining: {remaining}.",
            Severity.SUCCESS,
        )]

    broken = data.model_copy(update={"current_streak": 0})
    return broken, [Notice(
        STREAK_RESET,
        f"You missed {missed} day(s) and didn't have enough freezes. Keep going!",
        Severity.WARNING,
    )]
