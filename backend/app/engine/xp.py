"""
XP computation rules — pure functions, no storage access.
"""
import math
from dataclasses import dataclass
from typing import Optional

from ..models import StreakData
from ..notify import Notice, Severity

LOG_WORKOUT = "log_workout"
COMPLETE_GOAL = "complete_goal"
COMPLETE_DAILY_TARGET = "complete_daily_target"

BASE_WORKOUT_XP = 10
DAILY_TARGET_XP = 5
GOAL_COMPLETION_BASE_XP = 100
STREAK_MILESTONE_XP: dict[int, int] = {
    7: 50,
    14: 100,
    30: 250,
    60: 500,
}


@dataclass(frozen=True)
class XpEvent:
    type: str
    goal_id: Optional[str] = None
    goal_title: str = ""
    difficulty_multiplier: float = 1.0

    @classmethod
    def log_workout(cls) -> "XpEvent":
        return cls(LOG_WORKOUT)

    @classmethod
    def complete_goal(cls, goal_id: str, goal_title: str, difficulty_multiplier: float = 1.0) -> "XpEvent":
        return cls(COMPLETE_GOAL, goal_id, goal_title, difficulty_multiplier)

    @classmethod
    def complete_daily_target(cls, goal_id: str) -> "XpEvent":
        return cls(COMPLETE_DAILY_TARGET, goal_id)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def milestone_crossed(previous: int, current: int) -> int | None:
    """Smallest milestone threshold t with previous < t <= current, or None."""
    for threshold in sorted(STREAK_MILESTONE_XP):
        if previous < threshold <= current:
            return threshold
    return None


def compute_xp(
    event: XpEvent,
    current_streak: StreakData | None = None,
    previous_streak: StreakData | None = None,
) -> tuple[int, list[Notice]]:
    """
    Returns (xp_delta, notices) for one event.
    Streak snapshots only matter for log_workout; at most one milestone bonus
    is granted per call even when the streak jumped past several thresholds.
    Returns (0, []) for unknown event types.
    """
    notices: list[Notice] = []

    if event.type == LOG_WORKOUT:
        xp = BASE_WORKOUT_XP
        if current_streak is not None and previous_streak is not None:
            milestone = milestone_crossed(previous_streak.current_streak, current_streak.current_streak)
            if milestone is not None:
                bonus = STREAK_MILESTONE_XP[milestone]
                xp += bonus
                notices.append(Notice(
                    f"{milestone}-Day Streak Milestone!",
                    f"Awesome job! +{bonus} XP",
                    Severity.SUCCESS,
                ))
        return xp, notices

    if event.type == COMPLETE_GOAL:
        xp = round_half_up(GOAL_COMPLETION_BASE_XP * (event.difficulty_multiplier or 1))
        notices.append(Notice("Goal Completed!", f'"{event.goal_title}" +{xp} XP', Severity.SUCCESS))
        return xp, notices

    if event.type == COMPLETE_DAILY_TARGET:
        return DAILY_TARGET_XP, notices

    return 0, notices
