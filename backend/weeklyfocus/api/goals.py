from fastapi import APIRouter, Depends

from weeklyfocus.api.deps import get_tracker
from weeklyfocus.schemas.goal import GoalRead, GoalUpdate
from weeklyfocus.services.tracker import FocusTracker


router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("/current", response_model=GoalRead)
def get_current_goal(tracker: FocusTracker = Depends(get_tracker)):
    goal = tracker.snapshot().current_goal
    if goal is None:
        goal = tracker.load_current_goal()
    return goal


@router.put("/current", response_model=GoalRead)
def update_current_goal(payload: GoalUpdate, tracker: FocusTracker = Depends(get_tracker)):
    snap = tracker.update_goal(payload.weekly_target_minutes, payload.week_start_day)
    return snap.current_goal


@router.post("/reset", response_model=GoalRead)
def reset_all_data(tracker: FocusTracker = Depends(get_tracker)):
    """Delete every goal and record and start again from the default goal."""
    return tracker.reset_all_data().current_goal


@router.delete("/{goal_id}")
def delete_goal(goal_id: str, tracker: FocusTracker = Depends(get_tracker)):
    tracker.delete_goal(goal_id)
    return {"status": "deleted", "id": goal_id}
