"""
Run the streak gap check for one device or for every device with a stored
streak record. Spends freezes or breaks streaks for days that passed without
the device loading its progress. Safe to run multiple times (idempotent
within a day).

Usage:
    cd backend
    SUPABASE_URL=... SUPABASE_SERVICE_KEY=... python scripts/recheck_streaks.py [device_id]

Or with a .env file:
    pip install python-dotenv  # if needed
    python scripts/recheck_streaks.py [device_id]
"""
import os
import sys

# Load .env if present
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

# Add project root to path so we can import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.clock import Clock, SystemClock
from app.db import KeyValueStorage, SupabaseStorage, get_client, list_device_ids_with_key
from app.engine.streak import STREAK_SAVED, STREAK_RESET
from app.notify import NoticeCollector
from app.stores import STREAK_DATA_KEY, StreakStore


def recheck_device(storage: KeyValueStorage, device_id: str, clock: Clock) -> bool:
    """
    Run the gap check for one device.
    Returns True only when a freeze was spent or the streak was reset; storage
    warnings are printed but do not count as a change.
    """
    notifier = NoticeCollector()
    streak = StreakStore(storage, clock, notifier).load()
    print(f"  {device_id[:8]}... streak={streak.current_streak} freezes={streak.streak_freezes}")
    for n in notifier.notices:
        print(f"    [{n.severity.value}] {n.title}: {n.description}")
    return any(n.title in (STREAK_SAVED, STREAK_RESET) for n in notifier.notices)


def main(argv: list[str]) -> int:
    db = get_client()
    clock = SystemClock()
    if len(argv) > 1:
        device_ids = [argv[1]]
    else:
        device_ids = list_device_ids_with_key(db, STREAK_DATA_KEY)

    print(f"Checking {len(device_ids)} device(s) for {clock.today().isoformat()}")
    changed = 0
    for device_id in device_ids:
        if recheck_device(SupabaseStorage(db, device_id), device_id, clock):
            changed += 1
    print(f"Done: {changed} device(s) had a freeze spent or a streak reset")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
