from fastapi import APIRouter, Depends

from weeklyfocus.api.deps import current_goal_id, get_tracker
from weeklyfocus.schemas.record import (
    DayRecords,
    ManualRecordCreate,
    RecordRead,
    TimedRecordCreate,
)
from weeklyfocus.services import aggregation
from weeklyfocus.services.tracker import FocusTracker

router = APIRouter(prefix="/records", tags=["records"])


@router.get("/today", response_model=list[RecordRead])
def list_todays_records(tracker: FocusTracker = Depends(get_tracker)):
    """Today's records for the active goal, newest first."""
    return list(tracker.snapshot().todays_records)


@router.get("/week", response_model=list[RecordRead])
def list_week_records(tracker: FocusTracker = Depends(get_tracker)):
    """
    Records of the current cycle, oldest first.

    The cycle follows the goal's week-start day, e.g. Monday..Sunday.
    """
    return list(tracker.snapshot().current_week_records)


@router.get("/week/by_day", response_model=list[DayRecords])
def list_week_records_by_day(tracker: FocusTracker = Depends(get_tracker)):
    grouped = aggregation.group_by_day(tracker.snapshot().current_week_records)
    return [DayRecords(day=day, records=records) for day, records in grouped]


@router.post("/manual", response_model=RecordRead)
def add_manual_record(payload: ManualRecordCreate, tracker: FocusTracker = Depends(get_tracker)):
    return tracker.add_manual_record(current_goal_id(tracker), payload.duration_minutes, payload.notes)


@router.post("/timed", response_model=RecordRead)
def add_timed_record(payload: TimedRecordCreate, tracker: FocusTracker = Depends(get_tracker)):
    return tracker.add_timed_record(current_goal_id(tracker), payload.start_time, payload.end_time, payload.notes)


@router.delete("/{record_id}")
def delete_record(record_id: str, tracker: FocusTracker = Depends(get_tracker)):
    tracker.delete_record(record_id)
    return {"status": "deleted", "id": record_id}
