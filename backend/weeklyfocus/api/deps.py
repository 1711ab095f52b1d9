from fastapi import HTTPException, Request

from weeklyfocus.core.time_utils import hhmm_to_time, on_day
from weeklyfocus.services.tracker import FocusTracker


# Dependency we will use in FastAPI routes
def get_tracker(request: Request) -> FocusTracker:
    return request.app.state.tracker


def resolve_clock_time(tracker: FocusTracker, hhmm):
    """'HH:MM' today -> datetime; None means now."""
    now = tracker.now()
    try:
        parsed = hhmm_to_time(hhmm)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if parsed is None:
        return now
    return on_day(now.date(), parsed)


def current_goal_id(tracker: FocusTracker) -> str:
    goal = tracker.snapshot().current_goal
    if goal is None:
        goal = tracker.load_current_goal()
    return goal.id
