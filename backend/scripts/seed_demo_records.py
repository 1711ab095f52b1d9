from datetime import datetime, time, timedelta
import random

from weeklyfocus.core.config import settings
from weeklyfocus.core.time_utils import start_of_day
from weeklyfocus.db import init_storage
from weeklyfocus.services.tracker import FocusTracker


def clear_current_week(tracker: FocusTracker) -> None:
    """Delete this week's records so we can reseed cleanly."""
    for record in tracker.snapshot().current_week_records:
        tracker.delete_record(record.id)


def seed_demo_records(tracker: FocusTracker) -> int:
    """Insert focus blocks for every past day of the current cycle."""
    snap = tracker.snapshot()
    goal_id = snap.current_goal.id
    today = start_of_day(tracker.now())
    added = 0

    for day in snap.cycle.days():
        if day >= today:
            continue

        # Morning and afternoon blocks, e.g. 09:00-11:30 and 14:00-17:00
        for start_hour, notes in [(9, "Deep work"), (14, "Afternoon focus")]:
            start = datetime.combine(day.date(), time(start_hour, 0))
            length = random.choice([60, 90, 120, 150, 180])
            tracker.add_timed_record(goal_id, start, start + timedelta(minutes=length), notes)
            added += 1

    # A short manual entry for today
    tracker.add_manual_record(goal_id, 30, "Reading")
    return added + 1


def main():
    tracker = FocusTracker.from_settings(settings, init_storage(settings.database_url))
    try:
        tracker.start()
        clear_current_week(tracker)
        added = seed_demo_records(tracker)
        print(f"Seeded {added} demo records")
    finally:
        tracker.close()


if __name__ == "__main__":
    main()
