"""Pure queries over the record set.

Nothing here touches the store or the clock: callers pass the records,
the goal and "now". Records may be ORM rows or RecordRead copies; only
attribute access is used.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from weeklyfocus.core.cycle import WeekDay, WeeklyCycle, current_cycle
from weeklyfocus.core.time_utils import same_day, start_of_day


@dataclass(frozen=True)
class DailyTotal:
    date: datetime
    minutes: int

    @property
    def weekday(self) -> WeekDay:
        return WeekDay.of(self.date)


def todays_records(all_records, goal, now: datetime) -> list:
    """Goal's records in [start of today, start of tomorrow), newest first."""
    day_start = start_of_day(now)
    day_end = day_start + timedelta(days=1)
    matches = [
        r for r in all_records
        if r.goal_id == goal.id and day_start <= r.date < day_end
    ]
    return sorted(matches, key=lambda r: r.date, reverse=True)


def current_week_records(all_records, goal, now: datetime) -> list:
    """Goal's records inside the current cycle, oldest first."""
    cycle = current_cycle(goal.week_start_day, now)
    matches = [
        r for r in all_records
        if r.goal_id == goal.id and cycle.start <= r.date < cycle.end_exclusive
    ]
    return sorted(matches, key=lambda r: r.date)


def week_progress_minutes(week_records) -> int:
    return sum(r.duration_minutes or 0 for r in week_records)


def _per_day(week_records, cycle: WeeklyCycle, field: str) -> list[DailyTotal]:
    totals = []
    for day in cycle.days():
        minutes = sum(
            getattr(r, field) or 0 for r in week_records if same_day(r.date, day)
        )
        totals.append(DailyTotal(date=day, minutes=minutes))
    return totals


def daily_stats(week_records, cycle: WeeklyCycle) -> list[DailyTotal]:
    """Credited minutes for each of the cycle's 7 days."""
    return _per_day(week_records, cycle, "duration_minutes")


def daily_work_stats(week_records, cycle: WeeklyCycle) -> list[DailyTotal]:
    """Clocked work minutes for each of the cycle's 7 days."""
    return _per_day(week_records, cycle, "work_duration_minutes")


def today_work_duration(todays, goal_id) -> int:
    # At most one clock-bearing record per goal per day; other records
    # never carry work minutes
    for r in todays:
        if r.goal_id == goal_id and r.is_clock_entry:
            return r.work_duration_minutes or 0
    return 0


def group_by_day(records) -> list[tuple[date, list]]:
    """Bucket records by calendar day, newest day first, newest record first."""
    buckets: dict = {}
    for r in sorted(records, key=lambda r: r.date, reverse=True):
        buckets.setdefault(r.date.date(), []).append(r)
    return list(buckets.items())
