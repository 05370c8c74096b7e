"""
Workout-log coordination: streak first, then XP from before/after snapshots.
"""
import logging

from .engine.streak import default_streak
from .engine.xp import XpEvent
from .models import StreakData, Workout
from .stores import StreakStore, XPStore

logger = logging.getLogger(__name__)


class WorkoutLogCoordinator:
    """
    Holds one session's in-memory streak and XP values.
    The values stay authoritative for the session even if a write fails.
    """

    def __init__(self, streak_store: StreakStore, xp_store: XPStore) -> None:
        self.streak_store = streak_store
        self.xp_store = xp_store
        self.streak: StreakData = default_streak()
        self.xp = 0

    def load(self) -> tuple[StreakData, int]:
        self.streak = self.streak_store.load()
        self.xp = self.xp_store.load()
        return self.streak, self.xp

    def log_workout(self, workout: Workout) -> tuple[StreakData, int]:
        previous = self.streak
        current = self.streak_store.record_workout(previous, workout.workout_date)
        self.xp = self.xp_store.award(self.xp, XpEvent.log_workout(), current, previous)
        self.streak = current
        logger.info("Workout %s on %s: streak %d -> %d, xp %d",
                    workout.id, workout.workout_date, previous.current_streak,
                    current.current_streak, self.xp)
        return current, self.xp

    def log_goal_completion(self, goal_id: str, goal_title: str, difficulty_multiplier: float = 1.0) -> int:
        event = XpEvent.complete_goal(goal_id, goal_title, difficulty_multiplier)
        self.xp = self.xp_store.award(self.xp, event)
        return self.xp

    def reset_all(self) -> tuple[StreakData, int]:
        self.streak = self.streak_store.reset()
        self.xp = self.xp_store.reset()
        return self.streak, self.xp
