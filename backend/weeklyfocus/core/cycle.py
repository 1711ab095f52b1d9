"""Weekly cycle calculation.

A cycle is the concrete 7-day window that a week-start-day preference
carves out around a reference date. All bounds are naive local
start-of-day datetimes; range queries use the half-open window
``[start, end_exclusive)`` so that a record stamped exactly at midnight
after the last day never leaks into the week.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import IntEnum

from weeklyfocus.core.constants import DAYS_PER_CYCLE
from weeklyfocus.core.time_utils import start_of_day


class WeekDay(IntEnum):
    sunday = 0
    monday = 1
    tuesday = 2
    wednesday = 3
    thursday = 4
    friday = 5
    saturday = 6

    @property
    def display_name(self) -> str:
        return self.name.capitalize()

    @property
    def short_name(self) -> str:
        return self.name[:3].capitalize()

    @classmethod
    def of(cls, value) -> "WeekDay":
        """Weekday of a date/datetime in Sunday=0 numbering."""
        # date.weekday() is Monday=0 .. Sunday=6
        return cls((value.weekday() + 1) % DAYS_PER_CYCLE)


@dataclass(frozen=True)
class WeeklyCycle:
    start: datetime
    end: datetime

    @property
    def end_exclusive(self) -> datetime:
        return self.end + timedelta(days=1)

    @property
    def week_number(self) -> int:
        return self.start.isocalendar()[1]

    @property
    def display_name(self) -> str:
        return f"{self.start:%m/%d} - {self.end:%m/%d}"

    def days(self) -> list[datetime]:
        return [self.start + timedelta(days=i) for i in range(DAYS_PER_CYCLE)]

    def contains(self, value) -> bool:
        return contains(self, value)


def cycle_containing(value, week_start_day) -> WeeklyCycle:
    """Return the cycle starting on `week_start_day` that contains `value`.

    The day offset back to the start day is always taken non-negative, so
    ``start <= value <= end`` holds for every input.
    """
    week_start_day = WeekDay(week_start_day)
    offset = WeekDay.of(value) - week_start_day
    if offset < 0:
        offset += DAYS_PER_CYCLE
    start = start_of_day(value) - timedelta(days=offset)
    return WeeklyCycle(start=start, end=start + timedelta(days=DAYS_PER_CYCLE - 1))


def current_cycle(week_start_day, now: datetime) -> WeeklyCycle:
    return cycle_containing(now, week_start_day)


def contains(cycle: WeeklyCycle, value) -> bool:
    """Inclusive on both ends at day granularity."""
    if isinstance(value, datetime):
        return cycle.start <= value < cycle.end_exclusive
    if isinstance(value, date):
        return cycle.start.date() <= value <= cycle.end.date()
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")
