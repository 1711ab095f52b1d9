from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from weeklyfocus.api.deps import current_goal_id, get_tracker, resolve_clock_time
from weeklyfocus.core.constants import CLOCK_NONE
from weeklyfocus.schemas.record import ClockAction, ClockStatus, RecordRead
from weeklyfocus.services.tracker import FocusTracker

router = APIRouter(prefix="/clock", tags=["clock"])


def _target_record_id(tracker: FocusTracker, payload: Optional[ClockAction]) -> str:
    if payload is not None and payload.record_id:
        return payload.record_id
    record = tracker.todays_clock_record(current_goal_id(tracker))
    if record is None:
        raise HTTPException(status_code=409, detail="No clock session today. Please clock in first.")
    return record.id


@router.get("/today", response_model=ClockStatus)
def get_clock_status(tracker: FocusTracker = Depends(get_tracker)):
    return tracker.clock_status(current_goal_id(tracker))


@router.post("/in", response_model=RecordRead)
def clock_in(payload: Optional[ClockAction] = None, tracker: FocusTracker = Depends(get_tracker)):
    """
    Clock in for today.

    Without a record_id, today's reset session is clocked in again when
    there is one, otherwise a new record is created. With a record_id that
    record is clocked in.
    """
    at = resolve_clock_time(tracker, payload.time if payload else None)
    if payload is not None and payload.record_id:
        return tracker.clock_in(payload.record_id, at)
    goal_id = current_goal_id(tracker)
    record = tracker.todays_clock_record(goal_id)
    if record is not None and record.clock_state == CLOCK_NONE:
        return tracker.clock_in(record.id, at)
    return tracker.create_and_clock_in(goal_id, at)


@router.post("/out", response_model=RecordRead)
def clock_out(payload: Optional[ClockAction] = None, tracker: FocusTracker = Depends(get_tracker)):
    at = resolve_clock_time(tracker, payload.time if payload else None)
    return tracker.clock_out(_target_record_id(tracker, payload), at)


@router.post("/reset", response_model=RecordRead)
def reset_clock(payload: Optional[ClockAction] = None, tracker: FocusTracker = Depends(get_tracker)):
    return tracker.reset_clock(_target_record_id(tracker, payload))
