import re
import secrets
import time
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

UUID4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def validate_device_id(v: str) -> str:
    if not UUID4_RE.match(v.lower()):
        raise ValueError("must be a valid UUID v4")
    return v.lower()


def new_workout_id() -> str:
    return f"workout_{int(time.time() * 1000)}_{secrets.token_hex(6)}"


class StreakData(BaseModel):
    """
    Single per-device streak record.
    Stored and returned with camelCase keys; dates serialize as YYYY-MM-DD.
    """
    current_streak: int = Field(0, ge=0, alias="currentStreak")
    longest_streak: int = Field(0, ge=0, alias="longestStreak")
    # May be advanced to "yesterday" by a freeze without a real workout on that day
    last_workout_date: Optional[date] = Field(None, alias="lastWorkoutDate")
    streak_freezes: int = Field(0, ge=0, alias="streakFreezes")
    last_freeze_earned_date: Optional[date] = Field(None, alias="lastFreezeEarnedDate")
    model_config = {"populate_by_name": True, "extra": "ignore"}

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Workout(BaseModel):
    id: str = Field(default_factory=new_workout_id, min_length=1, max_length=100)
    workout_date: date = Field(alias="date")
    exercise_type: str = Field(alias="exerciseType", min_length=1, max_length=50)
    duration: float = Field(gt=0)   # minutes
    intensity: Literal["low", "medium", "high"]
    user_weight_kg: float = Field(alias="userWeightKg", gt=0)
    calories_burned: float = Field(alias="caloriesBurned", ge=0)
    notes: Optional[str] = Field(None, max_length=500)
    model_config = {"populate_by_name": True, "extra": "ignore", "frozen": True}

    @field_validator("workout_date", mode="before")
    @classmethod
    def strip_time_of_day(cls, v):
        # Clients may send full ISO timestamps ("2026-02-27T18:45:00.000Z"); only the day counts
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return datetime.fromisoformat(v.replace("Z", "+00:00")).date()
        return v

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class GoalCompletion(BaseModel):
    goal_id: str = Field(alias="goalId", min_length=1, max_length=100)
    goal_title: str = Field(alias="goalTitle", min_length=1, max_length=100)
    difficulty_multiplier: float = Field(1.0, alias="difficultyMultiplier", gt=0, le=10)
    model_config = {"populate_by_name": True, "extra": "ignore"}
