"""
Persisted streak, XP and workout-history state for one device.

Stores run the pure engine transitions, hand the resulting notices to the
notifier, and persist. Storage failures never propagate: they are logged,
reported to the user, and the in-memory value is returned unchanged.
"""
import logging
from datetime import date

from pydantic import TypeAdapter, ValidationError

from .clock import Clock
from .db import KeyValueStorage, StorageError
from .engine.streak import default_streak, record_workout, resolve_gap
from .engine.xp import XpEvent, compute_xp
from .models import StreakData, Workout
from .notify import Notifier, Severity, dispatch

logger = logging.getLogger(__name__)

STREAK_DATA_KEY = "fitTrackStreakData"
XP_KEY = "fitTrackUserXP"
WORKOUTS_KEY = "fitTrackWorkouts"

_workout_list = TypeAdapter(list[Workout])


class _Store:
    label = ""
    noun = ""

    def __init__(self, storage: KeyValueStorage, notifier: Notifier) -> None:
        self.storage = storage
        self.notifier = notifier
        # set once a read fails; later writes would replace data this session never saw
        self.read_failed = False

    def _get(self, key: str) -> str | None:
        try:
            return self.storage.get(key)
        except StorageError as e:
            logger.error("Error reading %s: %s", key, e)
            self.read_failed = True
            self._unreadable()
            return None

    def _set(self, key: str, value: str) -> None:
        if self.read_failed:
            logger.warning("Not saving %s: stored value could not be read", key)
            self.notifier.notify(
                f"{self.label} Not Saved",
                f"Your saved {self.noun} data could not be loaded, so this change was not stored.",
                Severity.ERROR,
            )
            return
        try:
            self.storage.set(key, value)
        except StorageError as e:
            logger.error("Error saving %s: %s", key, e)
            self.notifier.notify(
                f"{self.label} Save Error",
                f"Could not save your latest {self.noun} progress.",
                Severity.ERROR,
            )

    def _delete(self, key: str) -> None:
        try:
            self.storage.delete(key)
        except StorageError as e:
            logger.error("Error removing %s: %s", key, e)
            return
        self.read_failed = False

    def _unreadable(self) -> None:
        self.notifier.notify(
            f"{self.label} Data Unavailable",
            f"Could not load previous {self.noun} data. Starting fresh.",
            Severity.WARNING,
        )


class StreakStore(_Store):
    label = "Streak"
    noun = "streak"

    def __init__(self, storage: KeyValueStorage, clock: Clock, notifier: Notifier) -> None:
        super().__init__(storage, notifier)
        self.clock = clock

    def load(self) -> StreakData:
        """Stored streak (zero default if absent or corrupt), after the gap check."""
        raw = self._get(STREAK_DATA_KEY)
        if self.read_failed:
            return default_streak()
        return self.check_and_resolve_gap(self._parse(raw))

    def record_workout(self, current: StreakData, workout_date: date) -> StreakData:
        updated, notices = record_workout(current, workout_date)
        dispatch(self.notifier, notices)
        self._save(updated)
        return updated

    def check_and_resolve_gap(self, data: StreakData) -> StreakData:
        today = self.clock.today()
        resolved, notices = resolve_gap(data, today)
        if resolved != data:
            logger.info(
                "Gap check on %s: streak %d -> %d, freezes %d -> %d",
                today, data.current_streak, resolved.current_streak,
                data.streak_freezes, resolved.streak_freezes,
            )
        dispatch(self.notifier, notices)
        self._save(resolved)
        return resolved

    def reset(self) -> StreakData:
        self._delete(STREAK_DATA_KEY)
        return default_streak()

    def _parse(self, raw: str | None) -> StreakData:
        if raw is None:
            return default_streak()
        try:
            return StreakData.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable streak record: %s", e)
            self._unreadable()
            return default_streak()

    def _save(self, data: StreakData) -> None:
        self._set(STREAK_DATA_KEY, data.model_dump_json(by_alias=True))


class XPStore(_Store):
    label = "XP"
    noun = "XP"

    def load(self) -> int:
        raw = self._get(XP_KEY)
        if raw is None:
            return 0
        try:
            xp = int(raw.strip())
        except ValueError:
            xp = -1
        if xp < 0:
            logger.warning("Discarding unreadable XP value: %r", raw)
            self._unreadable()
            return 0
        return xp

    def award(
        self,
        current_xp: int,
        event: XpEvent,
        current_streak: StreakData | None = None,
        previous_streak: StreakData | None = None,
    ) -> int:
        delta, notices = compute_xp(event, current_streak, previous_streak)
        new_total = current_xp + delta
        dispatch(self.notifier, notices)
        self._set(XP_KEY, str(new_total))
        return new_total

    def reset(self) -> int:
        self._delete(XP_KEY)
        return 0


class WorkoutHistory(_Store):
    """The device's logged workouts, newest first."""
    label = "Workout"
    noun = "workout"

    def load(self) -> list[Workout]:
        raw = self._get(WORKOUTS_KEY)
        if raw is None:
            return []
        try:
            workouts = _workout_list.validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable workout history: %s", e)
            self._unreadable()
            return []
        return sorted(workouts, key=lambda w: w.workout_date, reverse=True)

    def append(self, workout: Workout, workouts: list[Workout] | None = None) -> list[Workout]:
        """Store workout alongside workouts (the already-loaded history, read here if omitted)."""
        if workouts is None:
            workouts = self.load()
        workouts = sorted([*workouts, workout], key=lambda w: w.workout_date, reverse=True)
        self._set(WORKOUTS_KEY, _workout_list.dump_json(workouts, by_alias=True, exclude_none=True).decode())
        return workouts

    def clear(self) -> None:
        self._delete(WORKOUTS_KEY)
