from datetime import datetime

from pydantic import BaseModel


class DailyMinutes(BaseModel):
    date: datetime
    weekday: str
    minutes: int


class WeekSummary(BaseModel):
    cycle_start: datetime
    cycle_end: datetime
    cycle_name: str
    week_number: int
    target_minutes: int
    progress_minutes: int
    remaining_minutes: int
    progress: float  # fraction of target, may exceed 1.0
    progress_display: str
    remaining_display: str
    today_minutes: int
    today_work_minutes: int
    record_count: int
    daily: list[DailyMinutes]
    daily_work: list[DailyMinutes]
