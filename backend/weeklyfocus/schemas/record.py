from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class RecordRead(BaseModel):
    """Read-only copy of a record, safe to hand out of the tracker."""

    id: str
    goal_id: str
    date: datetime
    duration_minutes: int
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    work_duration_minutes: int = 0
    clock_session: bool = False
    notes: Optional[str] = None
    created_at: datetime

    # Derived on the model, copied for display
    is_manual_entry: bool
    is_clock_entry: bool
    clock_state: str
    display_time: str
    work_duration_display: str

    model_config = ConfigDict(from_attributes=True, frozen=True)


class ManualRecordCreate(BaseModel):
    duration_minutes: int
    notes: Optional[str] = None


class TimedRecordCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = None


class ClockAction(BaseModel):
    """Clock in/out request. `time` is 'HH:MM' today; omitted means now."""

    time: Optional[str] = None
    # Target an existing record (e.g. after a reset); defaults to today's
    record_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ClockStatus(BaseModel):
    state: str
    record: Optional[RecordRead] = None
    clock_in: str
    clock_out: str
    # Running minutes of an open session, or the final work duration
    elapsed_minutes: int


class DayRecords(BaseModel):
    day: date
    records: list[RecordRead]
