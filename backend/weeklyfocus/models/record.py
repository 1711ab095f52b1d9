import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from weeklyfocus.core.constants import CLOCK_IN, CLOCK_NONE, CLOCK_OUT
from weeklyfocus.core.time_utils import clock_display, floor_minutes, format_duration
from weeklyfocus.db import Base


class Record(Base):
    __tablename__ = "records"
    __table_args__ = (Index("ix_records_goal_date", "goal_id", "date"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Plain column, no FK: records are matched to goals by equality
    goal_id = Column(String(36), nullable=False)

    # Day the record is credited to (naive local time)
    date = Column(DateTime, nullable=False)

    # Total minutes credited towards the weekly goal
    duration_minutes = Column(Integer, nullable=False, default=0)

    # Explicit span (timed entries)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)

    # Clock session
    clock_in_time = Column(DateTime, nullable=True)
    clock_out_time = Column(DateTime, nullable=True)

    # Set once the clock flow owns this record; survives a reset
    clock_session = Column(Boolean, nullable=False, default=False)

    # Derived from the clock pair, see calculate_work_duration()
    work_duration_minutes = Column(Integer, nullable=False, default=0)

    notes = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)

    @property
    def is_manual_entry(self) -> bool:
        return self.start_time is None and self.end_time is None

    @property
    def is_clock_entry(self) -> bool:
        return self.clock_in_time is not None or self.clock_out_time is not None

    @property
    def clock_state(self) -> str:
        if self.clock_in_time is None:
            return CLOCK_NONE
        if self.clock_out_time is None:
            return CLOCK_IN
        return CLOCK_OUT

    @property
    def display_time(self) -> str:
        return format_duration(self.duration_minutes or 0)

    @property
    def work_duration_display(self) -> str:
        return format_duration(self.work_duration_minutes or 0)

    @property
    def clock_in_display(self) -> str:
        return clock_display(self.clock_in_time)

    @property
    def clock_out_display(self) -> str:
        return clock_display(self.clock_out_time)

    def calculate_work_duration(self) -> int:
        """Recompute work minutes from the clock pair, clamped at zero."""
        if self.clock_in_time is None or self.clock_out_time is None:
            self.work_duration_minutes = 0
        else:
            self.work_duration_minutes = max(0, floor_minutes(self.clock_in_time, self.clock_out_time))
        return self.work_duration_minutes
