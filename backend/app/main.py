"""
FitTrack — FastAPI backend
"""
import logging

from fastapi import FastAPI, Header, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .clock import SystemClock
from .coordinator import WorkoutLogCoordinator
from .db import get_client, get_storage, KV_TABLE
from .models import GoalCompletion, Workout, validate_device_id
from .notify import NoticeCollector, Severity
from .stores import StreakStore, XPStore, WorkoutHistory

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
app = FastAPI(title="FitTrack API")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:9002",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

clock = SystemClock()


@app.get("/health")
def health():
    try:
        db = get_client()
        db.table(KV_TABLE).select("device_id").limit(1).execute()
        return {"status": "ok", "db": "ok"}
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
        raise HTTPException(status_code=503, detail="DB unavailable")


# ── Auth ──────────────────────────────────────────────────────────────────────

def get_device_id(authorization: str = Header(...)) -> str:
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")
    try:
        return validate_device_id(authorization.removeprefix("Bearer ").strip())
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid device id")


# ── Session ───────────────────────────────────────────────────────────────────

class Session:
    """Per-request wiring of one device's stores around a shared notifier."""

    def __init__(self, device_id: str) -> None:
        storage = get_storage(device_id)
        self.device_id = device_id
        self.notifier = NoticeCollector()
        self.history = WorkoutHistory(storage, self.notifier)
        self.coordinator = WorkoutLogCoordinator(
            StreakStore(storage, clock, self.notifier),
            XPStore(storage, self.notifier),
        )
        self.coordinator.load()

    def progress(self) -> dict:
        return {
            "streak": self.coordinator.streak.to_json_dict(),
            "xp": self.coordinator.xp,
            "notifications": self.notifier.as_dicts(),
        }


def open_session(device_id: str = Depends(get_device_id)) -> Session:
    return Session(device_id)


# ── Progress ──────────────────────────────────────────────────────────────────

@app.get("/api/progress")
def get_progress(session: Session = Depends(open_session)):
    return session.progress()


# ── Workouts ──────────────────────────────────────────────────────────────────

@app.post("/api/workouts", status_code=200)
@limiter.limit("60/minute")
def log_workout(request: Request, body: Workout, session: Session = Depends(open_session)):
    workouts = session.history.load()
    if any(w.id == body.id for w in workouts):
        return {"status": "duplicate", **session.progress()}

    xp_before = session.coordinator.xp
    session.coordinator.log_workout(body)
    session.history.append(body, workouts)
    session.notifier.notify(
        "Workout Logged!",
        f"Logged {body.exercise_type} ({body.duration:g} min, {body.calories_burned:g} kcal) "
        f"on {body.workout_date:%B %d, %Y}.",
    )
    logger.info("Workout logged for %s...: +%d XP", session.device_id[:8], session.coordinator.xp - xp_before)
    return {
        "status": "ok",
        "workout": body.to_json_dict(),
        "xp_awarded": session.coordinator.xp - xp_before,
        **session.progress(),
    }


@app.get("/api/workouts")
def list_workouts(session: Session = Depends(open_session)):
    return {"workouts": [w.to_json_dict() for w in session.history.load()]}


# ── Goals ─────────────────────────────────────────────────────────────────────

@app.post("/api/goals/complete", status_code=200)
@limiter.limit("30/minute")
def complete_goal(request: Request, body: GoalCompletion, session: Session = Depends(open_session)):
    xp_before = session.coordinator.xp
    xp = session.coordinator.log_goal_completion(body.goal_id, body.goal_title, body.difficulty_multiplier)
    return {
        "status": "ok",
        "xp_awarded": xp - xp_before,
        **session.progress(),
    }


# ── Reset ─────────────────────────────────────────────────────────────────────

@app.delete("/api/me", status_code=200)
def reset_me(session: Session = Depends(open_session)):
    session.coordinator.reset_all()
    session.history.clear()
    session.notifier.notify("Stats Reset", "All workout, streak, and XP data has been cleared.", Severity.INFO)
    logger.info("Device reset: %s...", session.device_id[:8])
    return {"status": "reset", **session.progress()}
